"""SQLAlchemy models exposed for metadata creation and imports."""
from .book import Book
from .loan import Loan, LoanStatus
from .user import Role, User

__all__ = ["User", "Role", "Book", "Loan", "LoanStatus"]
