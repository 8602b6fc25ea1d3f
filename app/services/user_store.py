"""
Credential store: the only code that reads or writes `users` rows.

Username uniqueness is owned by the database's unique index.  A
pre-check in the registration flow gives a friendly error for the
common case; two racing inserts are settled here by translating the
constraint violation into DuplicateUser.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateUser
from app.models.user import User

logger = logging.getLogger(__name__)


async def find_by_username(username: str, db: AsyncSession) -> User | None:
    stmt = select(User).where(User.username == username)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def save(user: User, db: AsyncSession) -> User:
    """Insert a new user and return it with its generated id."""
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        logger.info("Rejected duplicate username %r", user.username)
        raise DuplicateUser(user.username) from exc
    await db.refresh(user)
    return user
