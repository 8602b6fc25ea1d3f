"""
Authentication service.

Handles:
- Login: look the user up, verify the password, admit a session
- Registration: confirm the password, check uniqueness, hash, persist

All business logic lives here: controllers call service methods and
turn the domain exceptions into redirects or form errors.  The
controllers collapse every login failure into the same response, so
the distinct exception types never reach the user.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    DuplicateUser,
    InvalidCredentials,
    PasswordMismatch,
    UserNotFound,
)
from app.core.security import burn_password_check, hash_password, verify_password
from app.models.user import User
from app.services import user_details_service, user_store
from app.services.session_manager import LoginSession, SessionManager

logger = logging.getLogger(__name__)


# ── Login ────────────────────────────────────────────────────────────

async def authenticate(
    username: str,
    password: str,
    db: AsyncSession,
    sessions: SessionManager,
    *,
    rounds: int | None = None,
) -> LoginSession:
    """
    Validate credentials and admit a new session.

    Raises UserNotFound, InvalidCredentials or TooManySessions.
    """
    try:
        identity = await user_details_service.load_by_username(username, db)
    except UserNotFound:
        burn_password_check(password, rounds)
        logger.info("Login failed for unknown user %r", username)
        raise

    if not verify_password(password, identity.password_hash):
        logger.info("Login failed for %r: bad credentials", username)
        raise InvalidCredentials()

    sess = sessions.create(identity)
    logger.info("User %r logged in", username)
    return sess


def logout(session_id: str, sessions: SessionManager) -> bool:
    return sessions.invalidate(session_id)


# ── Registration ─────────────────────────────────────────────────────

async def register_user(
    username: str,
    password: str,
    confirm_password: str,
    db: AsyncSession,
    *,
    default_role: str | None = None,
    rounds: int | None = None,
) -> User:
    """
    Create a user with the baseline role.

    Raises PasswordMismatch, DuplicateUser or PasswordTooLong.
    """
    if password != confirm_password:
        raise PasswordMismatch("Passwords do not match")

    if await user_store.find_by_username(username, db) is not None:
        raise DuplicateUser(username)

    user = User(
        username=username,
        password_hash=hash_password(password, rounds),
        role=default_role or settings.DEFAULT_ROLE,
    )
    user = await user_store.save(user, db)
    logger.info("Registered user %r with role %s", user.username, user.role)
    return user
