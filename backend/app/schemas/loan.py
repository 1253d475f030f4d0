"""Pydantic schemas for loan operations."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.loan import LoanStatus
from app.schemas.auth import FlashMessages
from app.schemas.book import BookSummary


class LoanRequest(BaseModel):
    book_id: int = Field(..., ge=1)


class LoanRead(BaseModel):
    id: int
    user_id: int
    book_id: int
    loan_date: datetime
    return_date: datetime | None = None
    status: LoanStatus

    model_config = ConfigDict(from_attributes=True)


class LoanWithBook(LoanRead):
    book: BookSummary


class MyLoans(BaseModel):
    loans: list[LoanWithBook]
    flash: FlashMessages = FlashMessages()
