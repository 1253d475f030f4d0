"""API router aggregator."""
from fastapi import APIRouter

from app.api.routes import admin, auth, books, loans

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(books.router)
api_router.include_router(loans.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]
