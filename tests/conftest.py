"""
Shared fixtures: a temporary SQLite database and uploads directory per test.
"""
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest

# make the mailroom package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mailroom.core import config as core_config  # noqa: E402
from mailroom.db import models  # noqa: E402
from mailroom.db import session as db_session  # noqa: E402


def _clear_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def db_env(tmp_path, monkeypatch):
    """Point DATABASE_URL/UPLOADS_DIR at tmp_path and build a fresh schema."""
    db_file = tmp_path / "test.db"
    uploads = tmp_path / "uploads"
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_file}")
    monkeypatch.setenv("UPLOADS_DIR", str(uploads))
    monkeypatch.setenv("APP_TIMEZONE", "Asia/Hong_Kong")
    monkeypatch.delenv("ALLOW_SIGNUP", raising=False)
    monkeypatch.delenv("CUSTOMER_ID_PREFIX", raising=False)
    _clear_caches()

    engine = db_session.get_engine()
    models.Base.metadata.create_all(bind=engine)

    yield tmp_path

    engine.dispose()
    _clear_caches()


@pytest.fixture()
def make_image():
    """Return PNG bytes generated with Pillow."""
    from PIL import Image

    def _make(size=(32, 24), color=(200, 30, 30)) -> bytes:
        buffer = io.BytesIO()
        Image.new("RGB", size, color).save(buffer, format="PNG")
        return buffer.getvalue()

    return _make
