"""
User model: the credential store's single relation.

Design decisions:
- The password column holds the bcrypt hash, never plaintext.  The
  attribute is named `password_hash` so no caller mistakes it for a
  raw password; the column keeps the historical name `password`.
- One role per user, stored as a plain label ("ROLE_USER", "ROLE_ADMIN").
  The column is nullable for legacy rows, but registration always sets it.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IntegerPrimaryKeyMixin


class User(Base, IntegerPrimaryKeyMixin):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)
    role: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.username}>"
