"""Pydantic schemas for catalog entries."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.auth import FlashMessages


class BookBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    genre: str = Field(default="", max_length=64)
    description: str = ""


class BookUpdate(BookBase):
    # Stock is not editable; only borrows and returns move it after creation
    release_date: datetime | None = None
    is_upcoming: bool = False


class BookCreate(BookUpdate):
    stock: int = Field(default=0, ge=0)


class BookSummary(BaseModel):
    id: int
    title: str
    author: str
    cover_image_path: str
    release_date: datetime

    model_config = ConfigDict(from_attributes=True)


class BookRead(BookBase):
    id: int
    stock: int
    cover_image_path: str
    pdf_file_path: str
    release_date: datetime
    is_available: bool

    model_config = ConfigDict(from_attributes=True)


class BookDetail(BaseModel):
    book: BookRead
    user_has_loan: bool
    flash: FlashMessages = FlashMessages()
