"""Error taxonomy shared by services and the HTTP layer.

Every error carries a stable ``code`` so the HTTP layer can report which
outcome occurred without parsing messages.
"""
from __future__ import annotations


class LibraryError(Exception):
    """Base class for all application errors."""

    code = "library_error"
    message = "Unexpected error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def detail(self) -> dict[str, str]:
        return {"code": self.code, "message": str(self)}


class ValidationError(LibraryError):
    code = "validation_error"
    message = "Invalid input"


class BusinessRuleError(LibraryError):
    """Expected, user-facing outcome. Never retried and never partially applied."""

    code = "business_rule"


class AlreadyBorrowed(BusinessRuleError):
    code = "already_borrowed"
    message = "You already have this book on loan."


class OutOfStock(BusinessRuleError):
    code = "out_of_stock"
    message = "No copies of this book are available."


class NoActiveLoan(BusinessRuleError):
    code = "no_active_loan"
    message = "No active loan was found for this book."


class AlreadyReturned(BusinessRuleError):
    code = "already_returned"
    message = "This loan was already returned."


class SelfDeleteForbidden(BusinessRuleError):
    code = "self_delete"
    message = "You cannot delete your own account."


class UsernameTaken(BusinessRuleError):
    code = "username_taken"
    message = "Username already taken"


class BookHasLoans(BusinessRuleError):
    code = "book_has_loans"
    message = "Books with loan history cannot be deleted."


class UserHasLoans(BusinessRuleError):
    code = "user_has_loans"
    message = "Users with loan history cannot be deleted."


class NotFoundError(LibraryError):
    code = "not_found"
    message = "Not found"


class BookNotFound(NotFoundError):
    code = "book_not_found"
    message = "Book not found"


class UserNotFound(NotFoundError):
    code = "user_not_found"
    message = "User not found"


class StorageError(LibraryError):
    """Database failure. The enclosing transaction has been rolled back; safe to retry."""

    code = "storage_error"
    message = "Server error, please try again."


class AuthError(LibraryError):
    code = "auth_error"


class InvalidCredentials(AuthError):
    code = "invalid_credentials"
    message = "Invalid credentials"


class Unauthorized(AuthError):
    code = "not_authenticated"
    message = "Not authenticated"


class Forbidden(AuthError):
    code = "forbidden"
    message = "Administrator access required"
