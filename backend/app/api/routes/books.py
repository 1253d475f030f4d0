"""Catalog endpoints for signed-in users."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_authenticated, require_session
from app.core.sessions import SessionData
from app.schemas.auth import FlashMessages
from app.schemas.book import BookDetail, BookRead, BookSummary
from app.services import books as book_service
from app.services.loans import has_active_loan

router = APIRouter(prefix="/books", tags=["books"], dependencies=[Depends(require_authenticated)])


@router.get("/", response_model=list[BookSummary])
async def list_catalog(session: AsyncSession = Depends(get_db)) -> list[BookSummary]:
    books = await book_service.list_catalog(session)
    return [BookSummary.model_validate(book) for book in books]


@router.get("/upcoming", response_model=list[BookSummary])
async def list_upcoming(session: AsyncSession = Depends(get_db)) -> list[BookSummary]:
    books = await book_service.list_upcoming(session)
    return [BookSummary.model_validate(book) for book in books]


@router.get("/{book_id}", response_model=BookDetail)
async def get_book(
    book_id: int,
    session: AsyncSession = Depends(get_db),
    session_data: SessionData = Depends(require_session),
) -> BookDetail:
    book = await book_service.get_book(session, book_id)
    user_has_loan = await has_active_loan(session, session_data.identity.user_id, book.id)
    success, error = session_data.pop_flash()
    return BookDetail(
        book=BookRead.model_validate(book),
        user_has_loan=user_has_loan,
        flash=FlashMessages(success=success, error=error),
    )
