"""
Local disk storage for mail photos.

Uploads are decoded with Pillow, rotated according to EXIF, downscaled and
re-encoded as JPEG under `<UPLOADS_DIR>/mails/`. The stored URL is the public
path served by the `/static/uploads` mount.
"""

from __future__ import annotations

import io
import logging
import os
import secrets
import time
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from mailroom.core.config import get_settings

logger = logging.getLogger(__name__)

PHOTO_FOLDER = "mails"
PUBLIC_PREFIX = "/static/uploads/"
MAX_DIMENSIONS = (1600, 1600)


class PhotoError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class PhotoUpload:
    filename: str
    content_type: str
    data: bytes


def _uploads_dir() -> str:
    return get_settings().uploads_dir


def validate_photo(upload: PhotoUpload) -> None:
    content_type = (upload.content_type or "").lower()
    if not content_type.startswith("image/"):
        raise PhotoError(f"{upload.filename or '檔案'} 不是圖片")
    if not upload.data:
        raise PhotoError(f"{upload.filename or '圖片'} 是空檔案")
    if len(upload.data) > get_settings().max_upload_bytes:
        limit_mb = get_settings().max_upload_bytes // (1024 * 1024)
        raise PhotoError(f"{upload.filename or '圖片'} 超過 {limit_mb}MB")


def _encode_jpeg(data: bytes) -> bytes:
    try:
        image = Image.open(io.BytesIO(data))
        image = ImageOps.exif_transpose(image)
    except (UnidentifiedImageError, OSError) as exc:
        raise PhotoError("圖片格式無效") from exc
    image = image.convert("RGB")
    image.thumbnail(MAX_DIMENSIONS, Image.LANCZOS)
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=85, optimize=True)
    return buffer.getvalue()


def save_photo(upload: PhotoUpload) -> str:
    """Store one upload and return its public URL."""
    validate_photo(upload)
    payload = _encode_jpeg(upload.data)
    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}.jpg"
    dest_path = os.path.join(_uploads_dir(), PHOTO_FOLDER, filename)
    os.makedirs(os.path.dirname(dest_path), exist_ok=True)
    with open(dest_path, "wb") as f:
        f.write(payload)
    logger.info("Stored mail photo %s (%d bytes)", filename, len(payload))
    return f"{PUBLIC_PREFIX}{PHOTO_FOLDER}/{filename}"


def save_photos(uploads: list[PhotoUpload]) -> list[str]:
    """Validate every upload first so a bad file does not leave partial writes."""
    for upload in uploads:
        validate_photo(upload)
    urls: list[str] = []
    try:
        for upload in uploads:
            urls.append(save_photo(upload))
    except PhotoError:
        remove_photos(urls)
        raise
    return urls


def local_path_for(url: str) -> str | None:
    """Filesystem path for a URL this module produced; None for foreign URLs."""
    if not url or not url.startswith(PUBLIC_PREFIX):
        return None
    relative = url[len(PUBLIC_PREFIX):].split("?", 1)[0]
    parts = [p for p in relative.split("/") if p]
    if len(parts) != 2 or parts[0] != PHOTO_FOLDER or parts[1] in {".", ".."}:
        return None
    return os.path.join(_uploads_dir(), *parts)


def remove_photos(urls: list[str] | None) -> int:
    removed = 0
    for url in urls or []:
        path = local_path_for(url)
        if not path or not os.path.exists(path):
            continue
        os.remove(path)
        removed += 1
    return removed
