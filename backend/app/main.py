"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import api_router
from app.core.config import get_settings
from app.core.exceptions import (
    AuthError,
    BusinessRuleError,
    Forbidden,
    LibraryError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.core.sessions import SessionStore
from app.db import session as db_session
from app.db.base import Base
from app.middleware.sessions import SessionMiddleware
from app.services.scheduler import schedule_session_purge, shutdown_scheduler, start_scheduler
from app.services.seed import seed_database

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

session_store = SessionStore(lifetime=timedelta(minutes=settings.session_lifetime_minutes))


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with db_session.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if settings.seed_on_startup:
        async with db_session.get_session() as session:
            await seed_database(session)

    start_scheduler()
    schedule_session_purge(app.state.session_store)
    logger.info("%s ready", settings.app_name)
    try:
        yield
    finally:
        shutdown_scheduler()
        await db_session.engine.dispose()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.state.session_store = session_store

app.add_middleware(SessionMiddleware, store=session_store)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


def _error(status_code: int, exc: LibraryError) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": exc.detail})


@app.exception_handler(ValidationError)
async def _validation_error(_: Request, exc: ValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, exc)


@app.exception_handler(BusinessRuleError)
async def _business_rule_error(_: Request, exc: BusinessRuleError) -> JSONResponse:
    return _error(status.HTTP_409_CONFLICT, exc)


@app.exception_handler(NotFoundError)
async def _not_found(_: Request, exc: NotFoundError) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, exc)


@app.exception_handler(AuthError)
async def _auth_error(_: Request, exc: AuthError) -> JSONResponse:
    code = status.HTTP_403_FORBIDDEN if isinstance(exc, Forbidden) else status.HTTP_401_UNAUTHORIZED
    return _error(code, exc)


@app.exception_handler(StorageError)
async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    # Details were logged where the transaction was rolled back
    logger.error("Storage error while handling %s %s", request.method, request.url.path)
    return _error(status.HTTP_503_SERVICE_UNAVAILABLE, exc)
