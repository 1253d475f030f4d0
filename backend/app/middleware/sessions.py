"""Middleware that attaches the server-side session to each request."""
from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.config import get_settings
from app.core.security import SessionSigner
from app.core.sessions import SessionStore


class SessionMiddleware(BaseHTTPMiddleware):
    """Load ``request.state.session`` from the signed cookie token.

    The token's lock is held until the response is produced.
    """

    def __init__(self, app, store: SessionStore):
        super().__init__(app)
        self.store = store
        self.settings = get_settings()
        self.signer = SessionSigner()

    async def dispatch(self, request: Request, call_next):
        request.state.session_store = self.store
        request.state.session = None

        token = self._read_token(request)
        if token is None:
            return await call_next(request)

        async with self.store.lock_for(token):
            request.state.session = self.store.get(token)
            return await call_next(request)

    def _read_token(self, request: Request) -> str | None:
        cookie = request.cookies.get(self.settings.session_cookie_name)
        if not cookie:
            return None
        try:
            return self.signer.loads(cookie)
        except ValueError:
            return None
