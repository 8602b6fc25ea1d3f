"""
User lookup adapter.

Turns a stored user row into the identity the login flow checks
credentials against.  No hashing or comparison happens here; the
caller verifies the password against `identity.password_hash`.
"""

from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UserNotFound
from app.models.user import User
from app.services import user_store


class Authenticatable(Protocol):
    """Anything the login flow can authenticate and authorise."""

    @property
    def username(self) -> str: ...

    @property
    def password_hash(self) -> str: ...

    @property
    def authorities(self) -> frozenset[str]: ...


@dataclass(frozen=True)
class AuthenticatedIdentity:
    username: str
    password_hash: str
    authorities: frozenset[str]

    @classmethod
    def from_user(cls, user: User) -> "AuthenticatedIdentity":
        authorities = frozenset({user.role}) if user.role else frozenset()
        return cls(
            username=user.username,
            password_hash=user.password_hash,
            authorities=authorities,
        )


async def load_by_username(username: str, db: AsyncSession) -> AuthenticatedIdentity:
    user = await user_store.find_by_username(username, db)
    if user is None:
        raise UserNotFound(username)
    return AuthenticatedIdentity.from_user(user)
