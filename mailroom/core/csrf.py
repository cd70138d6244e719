"""
Double-submit CSRF protection for the staff forms.

Every rendered page sets a readable `csrf_token` cookie and embeds the same
value in its forms. A POST passes when the form field (or the X-CSRF-Token
header) equals the cookie and the Origin/Referer, when sent, points at this
host.
"""
from __future__ import annotations

import secrets
from urllib import parse as urlparse

from fastapi import HTTPException, Request, Response

from mailroom.core.config import get_settings

CSRF_COOKIE_NAME = "csrf_token"
CSRF_HEADER_NAME = "x-csrf-token"
CSRF_COOKIE_MAX_AGE = 7 * 24 * 60 * 60
MIN_TOKEN_LENGTH = 16


def _reject(detail: str) -> None:
    raise HTTPException(403, detail)


def ensure_csrf_token(request: Request) -> str:
    """Reuse the visitor's token, or mint one for the first page view."""
    token = request.cookies.get(CSRF_COOKIE_NAME) or ""
    if len(token) < MIN_TOKEN_LENGTH:
        token = secrets.token_urlsafe(32)
    return token


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        max_age=CSRF_COOKIE_MAX_AGE,
        httponly=False,
        secure=get_settings().app_env == "prod",
        samesite="strict",
        path="/",
    )


def _check_origin(request: Request) -> None:
    source = request.headers.get("origin") or request.headers.get("referer") or ""
    if not source:
        return
    try:
        parsed = urlparse.urlparse(source)
    except ValueError:
        _reject("來源無效")
    host = (request.headers.get("host") or "").split(":", 1)[0].lower()
    source_host = (parsed.hostname or "").lower()
    if (source_host and host and source_host != host) or (parsed.scheme and parsed.scheme != request.url.scheme):
        _reject("來源無效")


def validate_csrf(request: Request, supplied_token: str | None) -> None:
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    token = (supplied_token or "").strip() or (request.headers.get(CSRF_HEADER_NAME) or "").strip()
    if not cookie_token or not token:
        _reject("缺少 CSRF token")
    if not secrets.compare_digest(cookie_token, token):
        _reject("CSRF token 無效")
    _check_origin(request)
