"""
Declarative base & shared mixins for all models.

Every table gets an integer `id` primary key generated by the database.
Using a mixin keeps individual model files focused on domain fields.
"""

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base: all models inherit from this."""
    pass


class IntegerPrimaryKeyMixin:
    """Adds an autoincrement integer `id` primary key."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
