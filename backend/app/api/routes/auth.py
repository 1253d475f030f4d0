"""Authentication endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.dependencies import (
    get_db,
    get_request_session,
    get_session_store,
    require_authenticated,
    require_session,
)
from app.core.security import SessionSigner
from app.core.sessions import Identity, SessionData, SessionStore
from app.schemas.auth import FlashMessages, IdentityRead, LoginRequest
from app.services.users import authenticate_user

router = APIRouter(prefix="/auth", tags=["auth"])


def _identity_read(identity: Identity) -> IdentityRead:
    return IdentityRead(user_id=identity.user_id, display_name=identity.display_name, role=identity.role)


@router.post("/login", response_model=IdentityRead)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> IdentityRead:
    identity = await authenticate_user(session, payload.username, payload.password)

    # Never reuse a token that existed before authentication
    session_data = store.rotate(get_request_session(request), identity)
    request.state.session = session_data

    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=SessionSigner().dumps(session_data.token),
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        max_age=int(store.lifetime.total_seconds()),
    )
    return _identity_read(identity)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
) -> None:
    current = get_request_session(request)
    if current is not None:
        store.destroy(current.token)
        request.state.session = None
    response.delete_cookie(get_settings().session_cookie_name)


@router.get("/me", response_model=IdentityRead)
async def get_current_identity(identity: Identity = Depends(require_authenticated)) -> IdentityRead:
    return _identity_read(identity)


@router.get("/flash", response_model=FlashMessages)
async def pop_flash(session_data: SessionData = Depends(require_session)) -> FlashMessages:
    success, error = session_data.pop_flash()
    return FlashMessages(success=success, error=error)
