"""Security helpers for password hashing and session token signing."""
from __future__ import annotations

import secrets

from itsdangerous import BadSignature, URLSafeSerializer
from passlib.context import CryptContext

from .config import get_settings


_password_context = CryptContext(schemes=["argon2"], deprecated="auto")


class PasswordHasher:
    """Hash and verify user passwords using Argon2id."""

    @staticmethod
    def hash(password: str) -> str:
        return _password_context.hash(password)

    @staticmethod
    def verify(password: str, hashed: str) -> bool:
        return _password_context.verify(password, hashed)

    @staticmethod
    def dummy_verify() -> None:
        """Spend the same time as a real verification when there is nothing to verify."""
        _password_context.dummy_verify()

    @staticmethod
    def needs_update(hashed: str) -> bool:
        return _password_context.needs_update(hashed)


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


class SessionSigner:
    """Sign and unsign the opaque session token stored in the cookie.

    Expiry lives server side in the session store, so the signature is not timed.
    """

    def __init__(self, salt: str = "ebooks-session") -> None:
        settings = get_settings()
        self._serializer = URLSafeSerializer(settings.secret_key, salt=salt)

    def dumps(self, token: str) -> str:
        return self._serializer.dumps(token)

    def loads(self, value: str) -> str:
        try:
            token = self._serializer.loads(value)
        except BadSignature as exc:
            raise ValueError("Invalid session cookie") from exc
        if not isinstance(token, str):
            raise ValueError("Invalid session cookie")
        return token
