"""Route modules for the library API."""
from . import admin, auth, books, loans

__all__ = ["auth", "books", "loans", "admin"]
