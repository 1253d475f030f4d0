"""Populate an empty database with demo users, books and loans.

Each table is seeded only when it is empty, so running the seeder twice is
harmless.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import PasswordHasher
from app.db.base import utcnow
from app.models.book import Book
from app.models.loan import Loan, LoanStatus
from app.models.user import Role, User

logger = logging.getLogger(__name__)

INITIAL_STOCK = 20

DEMO_USERS = [
    ("admin", "Administrador", "admin@example.com", "admin123", Role.admin),
    ("usuario1", "Usuario Prueba Uno", "user1@example.com", "user123", Role.user),
    ("usuario2", "Usuario Prueba Dos", "user2@example.com", "user123", Role.user),
]

# slug, author, genre, upcoming
DEMO_BOOKS = [
    ("1984", "George Orwell", "Distopía", False),
    ("alicia_en_el_pais_de_las_maravillas", "Lewis Carroll", "Fantasía", False),
    ("cien_anos_de_soledad", "Gabriel García Márquez", "Realismo Mágico", False),
    ("el_hobbit", "J.R.R. Tolkien", "Fantasía", False),
    ("el_principito", "Antoine de Saint-Exupéry", "Infantil", False),
    ("el_problema_de_los_tres_cuerpos", "Liu Cixin", "Ciencia Ficción", False),
    ("fahrenheit_451", "Ray Bradbury", "Ciencia Ficción", False),
    ("ficciones", "Jorge Luis Borges", "Ficción Corta", False),
    ("maus", "Art Spiegelman", "Novela Gráfica", False),
    ("el_resplandor", "Stephen King", "Terror", False),
    ("dracula", "Bram Stoker", "Terror", True),
    ("hamlet", "William Shakespeare", "Clásico", True),
    ("ulises", "James Joyce", "Clásico", True),
]


def title_from_slug(slug: str) -> str:
    return slug.replace("_", " ").title()


async def seed_database(session: AsyncSession) -> None:
    logger.info("Seeding database...")
    await seed_users(session)
    await seed_books(session)
    await seed_loans(session)
    await session.commit()
    logger.info("Seeding complete")


async def _is_empty(session: AsyncSession, model) -> bool:
    return not await session.scalar(select(func.count()).select_from(model))


async def seed_users(session: AsyncSession) -> None:
    if not await _is_empty(session, User):
        logger.info("Table 'users' already has rows; skipping")
        return
    for username, name, email, password, role in DEMO_USERS:
        session.add(
            User(
                username=username,
                name=name,
                email=email,
                password_hash=PasswordHasher.hash(password),
                role=role,
            )
        )
    await session.flush()
    logger.info("Seeded %d users", len(DEMO_USERS))


async def seed_books(session: AsyncSession) -> None:
    if not await _is_empty(session, Book):
        logger.info("Table 'books' already has rows; skipping")
        return
    now = utcnow()
    for slug, author, genre, upcoming in DEMO_BOOKS:
        title = title_from_slug(slug)
        session.add(
            Book(
                title=title,
                author=author,
                genre=genre,
                stock=INITIAL_STOCK,
                description=f"Descripción de {title}",
                cover_image_path=f"{slug}.jpg",
                pdf_file_path=f"{slug}.pdf",
                release_date=now + timedelta(days=30) if upcoming else now - timedelta(days=30),
            )
        )
    await session.flush()
    logger.info("Seeded %d books", len(DEMO_BOOKS))


async def seed_loans(session: AsyncSession) -> None:
    if not await _is_empty(session, Loan):
        logger.info("Table 'loans' already has rows; skipping")
        return
    user_id = await session.scalar(select(User.id).where(User.username == "usuario1"))
    if user_id is None:
        logger.warning("User 'usuario1' not found; skipping demo loans")
        return

    now = utcnow()
    # title, borrowed days ago, returned days ago
    plan = [("1984", 7, None), ("El Principito", 30, 15), ("Maus", 2, None)]
    for title, borrowed, returned in plan:
        book_id = await session.scalar(select(Book.id).where(Book.title == title))
        if book_id is None:
            logger.warning("Book %r not found; skipping its demo loan", title)
            continue
        if returned is None:
            session.add(Loan(user_id=user_id, book_id=book_id, loan_date=now - timedelta(days=borrowed)))
            await session.execute(
                update(Book)
                .where(Book.id == book_id, Book.stock > 0)
                .values(stock=Book.stock - 1)
                .execution_options(synchronize_session=False)
            )
        else:
            session.add(
                Loan(
                    user_id=user_id,
                    book_id=book_id,
                    loan_date=now - timedelta(days=borrowed),
                    return_date=now - timedelta(days=returned),
                    status=LoanStatus.returned,
                )
            )
    await session.flush()
    logger.info("Seeded demo loans for usuario1")
