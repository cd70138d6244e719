"""
Staff login sessions.

A session is a random token stored in the `sessions` table with an expiry
(SESSION_TTL_SECONDS) and mirrored in an httponly cookie. Expired rows are
deleted when they are presented and whenever the same staff member logs in
again.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone

from fastapi import Request, Response
from sqlalchemy import delete

from mailroom.core.config import get_settings
from mailroom.core.utils import as_utc, utcnow
from mailroom.db.models import UserSession
from mailroom.db.session import get_session

SESSION_COOKIE_NAME = "session"
MIN_TTL_SECONDS = 60


def _is_expired(entity: UserSession, now: datetime) -> bool:
    expires_at = as_utc(entity.expires_at)
    return expires_at is not None and expires_at < now


def issue_session(email: str) -> str:
    """Persist a fresh token for `email`, dropping its expired ones."""
    token = secrets.token_urlsafe(32)
    now = utcnow()
    ttl = max(MIN_TTL_SECONDS, get_settings().session_ttl_seconds)
    with get_session() as session:
        session.execute(
            delete(UserSession).where(UserSession.user_email == email, UserSession.expires_at < now)
        )
        session.add(UserSession(token=token, user_email=email, expires_at=now + timedelta(seconds=ttl)))
        session.commit()
    return token


def current_user_email(request: Request) -> str | None:
    """E-mail of the logged-in staff member, or None."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if not token:
        return None
    with get_session() as session:
        entity = session.get(UserSession, token)
        if not entity:
            return None
        if _is_expired(entity, datetime.now(timezone.utc)):
            session.delete(entity)
            session.commit()
            return None
        return entity.user_email


def set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.app_env == "prod",
        samesite="lax",
        max_age=settings.session_ttl_seconds,
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")


def delete_session(token: str) -> None:
    if not token:
        return
    with get_session() as session:
        session.execute(delete(UserSession).where(UserSession.token == token))
        session.commit()
