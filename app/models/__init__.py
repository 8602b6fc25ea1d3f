"""
Models package: import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for `create_all` / Alembic).
"""

from app.models.base import Base, IntegerPrimaryKeyMixin
from app.models.user import User
from app.models.product import Product
from app.models.alumno import Alumno

__all__ = [
    "Base",
    "IntegerPrimaryKeyMixin",
    "User",
    "Product",
    "Alumno",
]
