"""Server-side session store keyed by opaque tokens.

The cookie only carries a signed token. Identity and flash messages stay in
process memory, and each token has its own lock so that overlapping requests
from one browser session run one after another.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.security import new_session_token
from app.db.base import utcnow
from app.models.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: int
    display_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.admin


@dataclass(slots=True)
class SessionData:
    token: str
    expires_at: datetime
    identity: Identity | None = None
    flash_success: str | None = None
    flash_error: str | None = None

    @property
    def expired(self) -> bool:
        return self.expires_at <= utcnow()

    def flash(self, *, success: str | None = None, error: str | None = None) -> None:
        if success is not None:
            self.flash_success = success
        if error is not None:
            self.flash_error = error

    def pop_flash(self) -> tuple[str | None, str | None]:
        """Return and clear both flash slots."""
        messages = (self.flash_success, self.flash_error)
        self.flash_success = None
        self.flash_error = None
        return messages


class SessionStore:
    def __init__(self, lifetime: timedelta) -> None:
        self._lifetime = lifetime
        self._sessions: dict[str, SessionData] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def lifetime(self) -> timedelta:
        return self._lifetime

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self, identity: Identity | None = None) -> SessionData:
        token = new_session_token()
        data = SessionData(token=token, expires_at=utcnow() + self._lifetime, identity=identity)
        self._sessions[token] = data
        return data

    def get(self, token: str) -> SessionData | None:
        data = self._sessions.get(token)
        if data is None:
            return None
        if data.expired:
            self.destroy(token)
            return None
        return data

    def rotate(self, current: SessionData | None, identity: Identity) -> SessionData:
        """Issue a fresh token for ``identity``; whatever the old token held is dropped."""
        if current is not None:
            self.destroy(current.token)
        return self.create(identity)

    def destroy(self, token: str) -> None:
        self._sessions.pop(token, None)
        lock = self._locks.get(token)
        if lock is not None and not lock.locked():
            del self._locks[token]

    def lock_for(self, token: str) -> asyncio.Lock:
        lock = self._locks.get(token)
        if lock is None:
            lock = self._locks[token] = asyncio.Lock()
        return lock

    def purge_expired(self) -> int:
        expired = [token for token, data in self._sessions.items() if data.expired]
        for token in expired:
            self.destroy(token)
        # Locks left behind by tokens destroyed mid-request
        for token in [t for t, lock in self._locks.items() if t not in self._sessions and not lock.locked()]:
            del self._locks[token]
        if expired:
            logger.info("Purged %d expired session(s)", len(expired))
        return len(expired)
