"""Loan workflow: borrowing and returning books.

Both operations run as a single transaction that touches the book's stock
and the loan row together. Nothing here takes in-process locks; the
transaction's isolation is what keeps concurrent requests consistent:

* on PostgreSQL the book row is read ``FOR UPDATE`` before a borrow, so
  borrows of one book queue on the row lock;
* on SQLite every transaction starts with ``BEGIN IMMEDIATE`` (see
  :mod:`app.db.session`), so transactions run one at a time.

In both cases the conditional updates (``stock > 0`` and ``status = 'active'``)
decide whether a change happened, and the stock is touched only when it did.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import get_settings
from app.core.exceptions import (
    AlreadyBorrowed,
    AlreadyReturned,
    NoActiveLoan,
    OutOfStock,
    StorageError,
)
from app.db.base import utcnow
from app.models.book import Book
from app.models.loan import Loan, LoanStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def borrow_book(session: AsyncSession, user_id: int, book_id: int) -> Loan:
    """Open a new active loan and take one copy out of stock.

    Raises :class:`AlreadyBorrowed` or :class:`OutOfStock` without changing
    anything, or :class:`StorageError` after rolling back.
    """

    loan = await _atomic(session, lambda: _borrow(session, user_id, book_id))
    logger.info("User %s borrowed book %s (loan %s)", user_id, book_id, loan.id)
    return loan


async def return_book(session: AsyncSession, user_id: int, book_id: int) -> Loan:
    """Close the user's most recent active loan of the book and put the copy back.

    Raises :class:`NoActiveLoan` or :class:`AlreadyReturned` without changing
    anything, or :class:`StorageError` after rolling back.
    """

    loan = await _atomic(session, lambda: _return(session, user_id, book_id))
    logger.info("User %s returned book %s (loan %s)", user_id, book_id, loan.id)
    return loan


async def _atomic(session: AsyncSession, operation: Callable[[], Awaitable[T]]) -> T:
    """Run ``operation`` in one transaction; commit only if it finishes cleanly.

    ``session`` must not already be inside a transaction.
    """

    timeout = get_settings().loan_transaction_timeout_seconds
    try:
        async with session.begin():
            async with asyncio.timeout(timeout):
                return await operation()
    except TimeoutError as exc:
        logger.error("Loan transaction exceeded %.1fs and was rolled back", timeout)
        raise StorageError() from exc
    except SQLAlchemyError as exc:
        logger.exception("Loan transaction failed and was rolled back: %s", exc)
        raise StorageError() from exc


async def _borrow(session: AsyncSession, user_id: int, book_id: int) -> Loan:
    # Row lock on the book; SQLite ignores FOR UPDATE and relies on BEGIN IMMEDIATE
    await session.execute(select(Book.id).where(Book.id == book_id).with_for_update())

    if await has_active_loan(session, user_id, book_id):
        logger.info("Borrow refused: user %s already has book %s", user_id, book_id)
        raise AlreadyBorrowed()

    result = await session.execute(
        update(Book)
        .where(Book.id == book_id, Book.stock > 0)
        .values(stock=Book.stock - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.info("Borrow refused: book %s has no stock", book_id)
        raise OutOfStock()

    loan = Loan(user_id=user_id, book_id=book_id, status=LoanStatus.active, loan_date=utcnow())
    session.add(loan)
    await session.flush()
    return loan


async def _return(session: AsyncSession, user_id: int, book_id: int) -> Loan:
    loan_id = await _find_active_loan(session, user_id, book_id)
    if loan_id is None:
        logger.info("Return refused: user %s has no active loan of book %s", user_id, book_id)
        raise NoActiveLoan()

    if not await _close_loan(session, loan_id):
        logger.warning("Return refused: loan %s was closed by another request", loan_id)
        raise AlreadyReturned()

    await session.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(stock=Book.stock + 1)
        .execution_options(synchronize_session=False)
    )
    return await session.get(Loan, loan_id, populate_existing=True)


async def _find_active_loan(session: AsyncSession, user_id: int, book_id: int) -> int | None:
    return await session.scalar(
        select(Loan.id)
        .where(Loan.user_id == user_id, Loan.book_id == book_id, Loan.status == LoanStatus.active)
        .order_by(Loan.loan_date.desc(), Loan.id.desc())
        .limit(1)
    )


async def _close_loan(session: AsyncSession, loan_id: int) -> bool:
    """Mark the loan returned; False when it was no longer active."""
    result = await session.execute(
        update(Loan)
        .where(Loan.id == loan_id, Loan.status == LoanStatus.active)
        .values(status=LoanStatus.returned, return_date=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def has_active_loan(session: AsyncSession, user_id: int, book_id: int) -> bool:
    return await session.scalar(
        select(
            exists().where(
                Loan.user_id == user_id,
                Loan.book_id == book_id,
                Loan.status == LoanStatus.active,
            )
        )
    )


async def list_user_loans(session: AsyncSession, user_id: int) -> list[Loan]:
    result = await session.execute(
        select(Loan)
        .options(selectinload(Loan.book))
        .where(Loan.user_id == user_id)
        .order_by(Loan.loan_date.desc(), Loan.id.desc())
    )
    return list(result.scalars().all())


async def count_loans(session: AsyncSession) -> int:
    return await session.scalar(select(func.count(Loan.id)))
