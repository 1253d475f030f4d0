from sqlalchemy import func, select

from app.db import session as db_session
from app.models import Book, Loan, LoanStatus, User
from app.services.seed import DEMO_BOOKS, INITIAL_STOCK, seed_database, title_from_slug

from conftest import make_user


async def _seed() -> None:
    async with db_session.get_session() as session:
        await seed_database(session)


async def _count(model) -> int:
    async with db_session.get_session() as session:
        return await session.scalar(select(func.count()).select_from(model))


def test_title_from_slug():
    assert title_from_slug("el_principito") == "El Principito"
    assert title_from_slug("1984") == "1984"


async def test_seeding_twice_adds_nothing(engine):
    await _seed()
    await _seed()

    assert await _count(User) == 3
    assert await _count(Book) == len(DEMO_BOOKS)
    assert await _count(Loan) == 3


async def test_demo_loans_hold_stock(engine):
    await _seed()

    async with db_session.get_session() as session:
        stock = dict((await session.execute(select(Book.title, Book.stock))).all())
        statuses = dict(
            (await session.execute(select(Book.title, Loan.status).join(Loan, Loan.book_id == Book.id))).all()
        )

    assert stock["1984"] == INITIAL_STOCK - 1
    assert stock["Maus"] == INITIAL_STOCK - 1
    assert stock["El Principito"] == INITIAL_STOCK
    assert statuses == {
        "1984": LoanStatus.active,
        "Maus": LoanStatus.active,
        "El Principito": LoanStatus.returned,
    }


async def test_existing_users_are_left_alone(engine):
    await make_user("librarian")
    await _seed()

    async with db_session.get_session() as session:
        usernames = list((await session.scalars(select(User.username))).all())

    assert usernames == ["librarian"]
    # Without usuario1 there is nobody to lend the demo books to
    assert await _count(Loan) == 0
    assert await _count(Book) == len(DEMO_BOOKS)
