"""Database model for catalog entries and their stock."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, as_utc, utcnow


class Book(Base):
    """Catalog entry. ``stock`` is only decremented through the loan workflow."""

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[str] = mapped_column(String(64), default="")
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    cover_image_path: Mapped[str] = mapped_column(String(512), default="")
    pdf_file_path: Mapped[str] = mapped_column(String(512), default="")
    release_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    loans: Mapped[list["Loan"]] = relationship("Loan", back_populates="book", passive_deletes="all")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_books_stock_non_negative"),
    )

    @property
    def is_available(self) -> bool:
        """Released books are in the active catalog; future releases are upcoming."""
        return as_utc(self.release_date) <= utcnow()
