"""Service layer for the catalog and admin book management."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BookHasLoans, BookNotFound
from app.db.base import utcnow
from app.models.book import Book
from app.models.loan import Loan
from app.schemas.book import BookCreate, BookUpdate
from app.services.storage import AssetKind, remove_asset

logger = logging.getLogger(__name__)

UPCOMING_OFFSET = timedelta(days=30)


def _release_date(data: BookUpdate) -> datetime:
    if data.release_date is not None:
        return data.release_date
    if data.is_upcoming:
        return utcnow() + UPCOMING_OFFSET
    return utcnow()


async def list_catalog(session: AsyncSession) -> list[Book]:
    """Released books, by title."""
    result = await session.execute(select(Book).where(Book.release_date <= utcnow()).order_by(Book.title))
    return list(result.scalars().all())


async def list_upcoming(session: AsyncSession) -> list[Book]:
    result = await session.execute(select(Book).where(Book.release_date > utcnow()).order_by(Book.release_date))
    return list(result.scalars().all())


async def list_books(session: AsyncSession, title_query: str | None = None) -> list[Book]:
    query = select(Book)
    if title_query:
        query = query.where(Book.title.ilike(f"%{title_query}%"))
    result = await session.execute(query.order_by(Book.id.desc()))
    return list(result.scalars().all())


async def count_books(session: AsyncSession) -> int:
    return await session.scalar(select(func.count(Book.id)))


async def get_book(session: AsyncSession, book_id: int) -> Book:
    book = await session.get(Book, book_id)
    if book is None:
        raise BookNotFound()
    return book


async def create_book(session: AsyncSession, data: BookCreate) -> Book:
    book = Book(
        title=data.title,
        author=data.author,
        genre=data.genre,
        description=data.description,
        stock=data.stock,
        release_date=_release_date(data),
    )
    session.add(book)
    await session.flush()
    return book


async def update_book(session: AsyncSession, book_id: int, data: BookUpdate) -> Book:
    book = await get_book(session, book_id)
    book.title = data.title
    book.author = data.author
    book.genre = data.genre
    book.description = data.description
    book.release_date = _release_date(data)
    await session.flush()
    return book


async def set_asset(session: AsyncSession, book_id: int, kind: AssetKind, name: str) -> Book:
    """Point the book at a newly stored asset and drop the file it replaces."""
    book = await get_book(session, book_id)
    if kind is AssetKind.cover:
        previous, book.cover_image_path = book.cover_image_path, name
    else:
        previous, book.pdf_file_path = book.pdf_file_path, name
    await session.flush()
    if previous and previous != name:
        remove_asset(previous, kind)
    return book


async def delete_book(session: AsyncSession, book_id: int) -> None:
    book = await get_book(session, book_id)
    if await session.scalar(select(exists().where(Loan.book_id == book.id))):
        raise BookHasLoans()
    cover, pdf = book.cover_image_path, book.pdf_file_path
    await session.delete(book)
    await session.flush()
    remove_asset(cover, AssetKind.cover)
    remove_asset(pdf, AssetKind.pdf)
    logger.info("Deleted book %s (%s)", book_id, book.title)
