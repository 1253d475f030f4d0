"""Administration endpoints for books and users."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, require_admin
from app.core.sessions import Identity
from app.schemas.admin import DashboardCounts
from app.schemas.book import BookCreate, BookRead, BookUpdate
from app.schemas.user import UserCreate, UserRead, UserUpdate
from app.services import books as book_service
from app.services import users as user_service
from app.services.loans import count_loans
from app.services.storage import AssetKind, save_upload

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/dashboard", response_model=DashboardCounts)
async def dashboard(session: AsyncSession = Depends(get_db)) -> DashboardCounts:
    return DashboardCounts(
        users=await user_service.count_users(session),
        books=await book_service.count_books(session),
        loans=await count_loans(session),
    )


# Books


@router.get("/books", response_model=list[BookRead])
async def list_books(q: str | None = None, session: AsyncSession = Depends(get_db)) -> list[BookRead]:
    books = await book_service.list_books(session, q)
    return [BookRead.model_validate(book) for book in books]


@router.post("/books", response_model=BookRead, status_code=status.HTTP_201_CREATED)
async def create_book(payload: BookCreate, session: AsyncSession = Depends(get_db)) -> BookRead:
    book = await book_service.create_book(session, payload)
    await session.commit()
    return BookRead.model_validate(book)


@router.get("/books/{book_id}", response_model=BookRead)
async def get_book(book_id: int, session: AsyncSession = Depends(get_db)) -> BookRead:
    return BookRead.model_validate(await book_service.get_book(session, book_id))


@router.put("/books/{book_id}", response_model=BookRead)
async def update_book(book_id: int, payload: BookUpdate, session: AsyncSession = Depends(get_db)) -> BookRead:
    book = await book_service.update_book(session, book_id, payload)
    await session.commit()
    return BookRead.model_validate(book)


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_book(book_id: int, session: AsyncSession = Depends(get_db)) -> Response:
    await book_service.delete_book(session, book_id)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _upload(session: AsyncSession, book_id: int, upload: UploadFile, kind: AssetKind) -> BookRead:
    await book_service.get_book(session, book_id)
    name = await save_upload(upload, kind)
    book = await book_service.set_asset(session, book_id, kind, name)
    await session.commit()
    return BookRead.model_validate(book)


@router.post("/books/{book_id}/cover", response_model=BookRead)
async def upload_cover(
    book_id: int,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
) -> BookRead:
    return await _upload(session, book_id, file, AssetKind.cover)


@router.post("/books/{book_id}/pdf", response_model=BookRead)
async def upload_pdf(
    book_id: int,
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_db),
) -> BookRead:
    return await _upload(session, book_id, file, AssetKind.pdf)


# Users


@router.get("/users", response_model=list[UserRead])
async def list_users(session: AsyncSession = Depends(get_db)) -> list[UserRead]:
    users = await user_service.list_users(session)
    return [UserRead.model_validate(user) for user in users]


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = await user_service.create_user(session, payload)
    await session.commit()
    return UserRead.model_validate(user)


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(user_id: int, session: AsyncSession = Depends(get_db)) -> UserRead:
    return UserRead.model_validate(await user_service.get_user(session, user_id))


@router.put("/users/{user_id}", response_model=UserRead)
async def update_user(user_id: int, payload: UserUpdate, session: AsyncSession = Depends(get_db)) -> UserRead:
    user = await user_service.update_user(session, user_id, payload)
    await session.commit()
    return UserRead.model_validate(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_db),
    current: Identity = Depends(require_admin),
) -> Response:
    await user_service.delete_user(session, user_id, current)
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
