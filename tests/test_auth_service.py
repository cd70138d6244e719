from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import update
from starlette.requests import Request

from mailroom.core import config as core_config
from mailroom.core.security import hash_password, verify_password
from mailroom.db.models import UserSession
from mailroom.db.session import get_session
from mailroom.repositories.sql_repository import SQLRepository
from mailroom.services.auth_service import (
    AccountExistsError,
    AuthService,
    InvalidCredentialsError,
    RegistrationError,
    SignupDisabledError,
)
from mailroom.services.session_service import SESSION_COOKIE_NAME, current_user_email


def test_register_then_login(db_env):
    svc = AuthService()
    registered = svc.register("Staff@Example.com ", "secret1")

    assert registered.email == "staff@example.com"
    assert registered.session_token
    stored = SQLRepository().get_user("staff@example.com")
    assert stored.password_hash.startswith("argon2$")

    logged_in = svc.login("STAFF@example.com", "secret1")
    assert logged_in.email == "staff@example.com"
    assert logged_in.session_token != registered.session_token


def test_register_rejects_duplicates(db_env):
    svc = AuthService()
    svc.register("staff@example.com", "secret1")
    with pytest.raises(AccountExistsError) as exc:
        svc.register("staff@example.com", "another1")
    assert exc.value.message == "此電郵已註冊"


@pytest.mark.parametrize("email, password", [("not-an-email", "secret1"), ("staff@example.com", "12345")])
def test_register_validation(db_env, email, password):
    with pytest.raises(RegistrationError):
        AuthService().register(email, password)


def test_register_can_be_disabled(db_env, monkeypatch):
    monkeypatch.setenv("ALLOW_SIGNUP", "false")
    core_config.get_settings.cache_clear()
    with pytest.raises(SignupDisabledError):
        AuthService().register("staff@example.com", "secret1")


@pytest.mark.parametrize("email, password", [("staff@example.com", "wrong"), ("ghost@example.com", "secret1"), ("", "x")])
def test_login_failures_share_one_message(db_env, email, password):
    svc = AuthService()
    svc.register("staff@example.com", "secret1")
    with pytest.raises(InvalidCredentialsError) as exc:
        svc.login(email, password)
    assert exc.value.message == "電郵或密碼錯誤"


def test_password_hash_roundtrip():
    hashed = hash_password("secret1")
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", "plain-text")
    assert not verify_password("secret1", None)


def _request_with_session(token: str) -> Request:
    cookie = f"{SESSION_COOKIE_NAME}={token}".encode()
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [(b"cookie", cookie)]})


def test_session_resolves_until_it_expires(db_env):
    token = AuthService().register("staff@example.com", "secret1").session_token
    assert current_user_email(_request_with_session(token)) == "staff@example.com"

    with get_session() as session:
        session.execute(
            update(UserSession)
            .where(UserSession.token == token)
            .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        session.commit()

    assert current_user_email(_request_with_session(token)) is None
    with get_session() as session:
        assert session.get(UserSession, token) is None


def test_unknown_session_token(db_env):
    assert current_user_email(_request_with_session("no-such-token")) is None


def test_login_prunes_expired_sessions(db_env):
    svc = AuthService()
    stale = svc.register("staff@example.com", "secret1").session_token
    with get_session() as session:
        session.execute(
            update(UserSession)
            .where(UserSession.token == stale)
            .values(expires_at=datetime.now(timezone.utc) - timedelta(days=1))
        )
        session.commit()

    fresh = svc.login("staff@example.com", "secret1").session_token

    with get_session() as session:
        assert session.get(UserSession, stale) is None
        assert session.get(UserSession, fresh) is not None


def test_logout_deletes_the_session(db_env):
    svc = AuthService()
    token = svc.register("staff@example.com", "secret1").session_token
    svc.logout(token)
    assert current_user_email(_request_with_session(token)) is None
