"""User service functions for CRUD and authentication."""
from __future__ import annotations

import logging

from sqlalchemy import exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import (
    InvalidCredentials,
    SelfDeleteForbidden,
    UserHasLoans,
    UserNotFound,
    UsernameTaken,
)
from app.core.security import PasswordHasher
from app.core.sessions import Identity
from app.models.loan import Loan
from app.models.user import User
from app.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


async def get_user_by_username(session: AsyncSession, username: str) -> User | None:
    normalized = username.lower()
    result = await session.execute(select(User).where(User.username == normalized))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def list_users(session: AsyncSession) -> list[User]:
    result = await session.execute(select(User).order_by(User.id.desc()))
    return list(result.scalars().all())


async def count_users(session: AsyncSession) -> int:
    return await session.scalar(select(func.count(User.id)))


async def create_user(session: AsyncSession, user_in: UserCreate) -> User:
    username = user_in.username.lower()
    if await get_user_by_username(session, username):
        raise UsernameTaken()
    user = User(
        username=username,
        name=user_in.name,
        email=user_in.email,
        password_hash=PasswordHasher.hash(user_in.password),
        role=user_in.role,
    )
    session.add(user)
    await session.flush()
    return user


async def update_user(session: AsyncSession, user_id: int, user_in: UserUpdate) -> User:
    user = await get_user(session, user_id)
    username = user_in.username.lower()
    existing = await get_user_by_username(session, username)
    if existing and existing.id != user.id:
        raise UsernameTaken()

    user.username = username
    user.name = user_in.name
    user.email = user_in.email
    user.role = user_in.role
    if user_in.password:
        user.password_hash = PasswordHasher.hash(user_in.password)
    await session.flush()
    return user


async def delete_user(session: AsyncSession, user_id: int, current: Identity) -> None:
    # Deleting the last remaining admin is allowed; only self-deletion is refused.
    if user_id == current.user_id:
        raise SelfDeleteForbidden()
    user = await get_user(session, user_id)
    if await session.scalar(select(exists().where(Loan.user_id == user.id))):
        raise UserHasLoans()
    await session.delete(user)
    await session.flush()
    logger.info("Deleted user %s (%s)", user_id, user.username)


async def authenticate_user(session: AsyncSession, username: str, password: str) -> Identity:
    """Check credentials; unknown user and wrong password fail identically."""

    settings = get_settings()
    user = await get_user_by_username(session, username)

    legacy_length = settings.legacy_password_length
    if user is None or (legacy_length is not None and len(password) != legacy_length):
        PasswordHasher.dummy_verify()
        logger.info("Failed login for %r", username)
        raise InvalidCredentials()

    if not PasswordHasher.verify(password, user.password_hash):
        logger.info("Failed login for %r", username)
        raise InvalidCredentials()

    if PasswordHasher.needs_update(user.password_hash):
        user.password_hash = PasswordHasher.hash(password)
        await session.commit()

    logger.info("Successful login for %s (%s)", user.username, user.role.value)
    return Identity(user_id=user.id, display_name=user.name, role=user.role)
