"""
Engine and session factory for the mailroom database.

DATABASE_URL selects the backend (Postgres in deployment, a SQLite file for
local runs and tests). Repository methods open one short session each and
hand detached ORM rows to services and templates, so sessions are created
with `expire_on_commit=False`.
"""
from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from mailroom.core.config import get_settings

Base = declarative_base()


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


@lru_cache
def get_engine():
    url = (get_settings().database_url or "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL must be configured (e.g. sqlite:///./mailroom.db).")
    return create_engine(url, future=True, **_engine_options(url))


@lru_cache
def _get_sessionmaker():
    return sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False, future=True)


@contextmanager
def get_session() -> Session:
    """Yield a session that is always closed; callers commit explicitly."""
    session: Session = _get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()
