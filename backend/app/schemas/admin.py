"""Schemas for the admin dashboard."""
from __future__ import annotations

from pydantic import BaseModel


class DashboardCounts(BaseModel):
    users: int
    books: int
    loans: int
