"""Shared fixtures: a fresh SQLite file database per test."""
from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from app.core.config import get_settings
from app.core.security import PasswordHasher
from app.db import session as db_session
from app.db.base import Base, utcnow
from app.models import Book, Loan, Role, User


@pytest.fixture
def settings(tmp_path, monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "media_dir", tmp_path / "media")
    monkeypatch.setattr(settings, "seed_on_startup", False)
    monkeypatch.setattr(settings, "legacy_password_length", None)
    return settings


@pytest.fixture
def database_url(tmp_path, settings):
    return f"sqlite+aiosqlite:///{tmp_path / 'library.db'}"


@pytest.fixture
async def engine(database_url):
    engine = db_session.init_engine(database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with db_session.get_session() as session:
        yield session


@pytest.fixture
def client(database_url, settings, monkeypatch):
    """HTTP client against a seeded database (admin/admin123, usuario1/user123, usuario2/user123)."""
    monkeypatch.setattr(settings, "seed_on_startup", True)
    db_session.init_engine(database_url)

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


def login(client: TestClient, username: str, password: str):
    return client.post("/api/auth/login", json={"username": username, "password": password})


async def make_user(username: str = "reader", password: str = "secret1", role: Role = Role.user) -> int:
    async with db_session.get_session() as session:
        user = User(
            username=username.lower(),
            name=username.title(),
            email=f"{username}@example.com",
            password_hash=PasswordHasher.hash(password),
            role=role,
        )
        session.add(user)
        await session.commit()
        return user.id


async def make_book(title: str = "1984", stock: int = 1, upcoming: bool = False) -> int:
    async with db_session.get_session() as session:
        offset = timedelta(days=30)
        book = Book(
            title=title,
            author="George Orwell",
            genre="Distopía",
            stock=stock,
            release_date=utcnow() + offset if upcoming else utcnow() - offset,
        )
        session.add(book)
        await session.commit()
        return book.id


async def fetch_stock(book_id: int) -> int:
    async with db_session.get_session() as session:
        return await session.scalar(select(Book.stock).where(Book.id == book_id))


async def fetch_loans(user_id: int, book_id: int) -> list[Loan]:
    async with db_session.get_session() as session:
        result = await session.execute(
            select(Loan).where(Loan.user_id == user_id, Loan.book_id == book_id).order_by(Loan.id)
        )
        return list(result.scalars().all())
