"""
Staff authentication use cases: sign-up, login and logout.

Staff accounts sign in straight after sign-up; there is no e-mail
verification step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError

from mailroom.core.config import get_settings
from mailroom.core.security import hash_password, needs_rehash, verify_password
from mailroom.repositories.sql_repository import SQLRepository
from mailroom.services.session_service import delete_session, issue_session

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Base class for authentication-related exceptions."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RegistrationError(AuthError):
    pass


class SignupDisabledError(RegistrationError):
    pass


class AccountExistsError(RegistrationError):
    pass


class InvalidCredentialsError(AuthError):
    pass


@dataclass
class LoginSuccess:
    email: str
    session_token: str


@dataclass
class AuthService:
    """Handles staff registration, login and logout."""

    def __post_init__(self):
        self.repository = SQLRepository()

    @property
    def settings(self):
        return get_settings()

    def _normalize_email(self, email: str | None) -> str:
        return (email or "").strip().lower()

    def register(self, email: str, password: str) -> LoginSuccess:
        if not self.settings.allow_signup:
            raise SignupDisabledError("註冊功能已停用")
        raw_email = self._normalize_email(email)
        if not raw_email or "@" not in raw_email:
            raise RegistrationError("請輸入有效的電郵地址")
        if len(password or "") < self.settings.min_password_length:
            raise RegistrationError(f"密碼最少需要 {self.settings.min_password_length} 個字元")
        if self.repository.get_user(raw_email):
            raise AccountExistsError("此電郵已註冊")
        try:
            self.repository.create_user(raw_email, hash_password(password))
        except IntegrityError as exc:
            raise AccountExistsError("此電郵已註冊") from exc
        logger.info("Staff account created: %s", raw_email)
        return LoginSuccess(email=raw_email, session_token=issue_session(raw_email))

    def login(self, email: str, password: str) -> LoginSuccess:
        raw_email = self._normalize_email(email)
        if not raw_email:
            raise InvalidCredentialsError("電郵或密碼錯誤")
        user = self.repository.get_user(raw_email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", raw_email)
            raise InvalidCredentialsError("電郵或密碼錯誤")
        if needs_rehash(user.password_hash):
            self.repository.update_user_password(raw_email, hash_password(password))
        return LoginSuccess(email=raw_email, session_token=issue_session(raw_email))

    def logout(self, session_token: Optional[str]) -> None:
        if not session_token:
            return
        delete_session(session_token)
