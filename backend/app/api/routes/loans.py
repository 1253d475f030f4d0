"""Borrow and return endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_session
from app.core.exceptions import BusinessRuleError, StorageError
from app.core.sessions import SessionData
from app.schemas.auth import FlashMessages
from app.schemas.loan import LoanRead, LoanRequest, LoanWithBook, MyLoans
from app.services import loans as loan_service

router = APIRouter(prefix="/loans", tags=["loans"])


def _refuse(session_data: SessionData, exc: BusinessRuleError) -> HTTPException:
    session_data.flash(error=str(exc))
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.detail)


@router.post("/borrow", response_model=LoanRead, status_code=status.HTTP_201_CREATED)
async def borrow(
    payload: LoanRequest,
    session: AsyncSession = Depends(get_db),
    session_data: SessionData = Depends(require_session),
) -> LoanRead:
    try:
        loan = await loan_service.borrow_book(session, session_data.identity.user_id, payload.book_id)
    except BusinessRuleError as exc:
        raise _refuse(session_data, exc) from exc
    except StorageError as exc:
        session_data.flash(error=str(exc))
        raise
    session_data.flash(success="Book borrowed successfully!")
    return LoanRead.model_validate(loan)


@router.post("/return", response_model=LoanRead)
async def return_loan(
    payload: LoanRequest,
    session: AsyncSession = Depends(get_db),
    session_data: SessionData = Depends(require_session),
) -> LoanRead:
    try:
        loan = await loan_service.return_book(session, session_data.identity.user_id, payload.book_id)
    except BusinessRuleError as exc:
        raise _refuse(session_data, exc) from exc
    except StorageError as exc:
        session_data.flash(error=str(exc))
        raise
    session_data.flash(success="Book returned successfully!")
    return LoanRead.model_validate(loan)


@router.get("/mine", response_model=MyLoans)
async def my_loans(
    session: AsyncSession = Depends(get_db),
    session_data: SessionData = Depends(require_session),
) -> MyLoans:
    loans = await loan_service.list_user_loans(session, session_data.identity.user_id)
    success, error = session_data.pop_flash()
    return MyLoans(
        loans=[LoanWithBook.model_validate(loan) for loan in loans],
        flash=FlashMessages(success=success, error=error),
    )
