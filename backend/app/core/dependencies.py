"""Reusable dependencies for FastAPI routes."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import Forbidden, Unauthorized
from app.core.sessions import Identity, SessionData, SessionStore
from app.db.session import get_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncIterator[AsyncSession]:
    async with get_session() as session:
        yield session


def get_session_store(request: Request) -> SessionStore:
    return request.state.session_store


def get_request_session(request: Request) -> SessionData | None:
    return request.state.session


async def require_session(request: Request) -> SessionData:
    session = get_request_session(request)
    if session is None or session.identity is None:
        raise Unauthorized()
    return session


async def require_authenticated(session: SessionData = Depends(require_session)) -> Identity:
    return session.identity


async def require_admin(request: Request, identity: Identity = Depends(require_authenticated)) -> Identity:
    if not identity.is_admin:
        logger.warning(
            "Access denied: user %s (%s) requested %s without admin role",
            identity.user_id,
            identity.role.value,
            request.url.path,
        )
        raise Forbidden()
    return identity
