"""Alumno (student) record: managed from the admin-only pages."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, IntegerPrimaryKeyMixin


class Alumno(Base, IntegerPrimaryKeyMixin):
    __tablename__ = "alumnos"

    nombre: Mapped[str] = mapped_column(String(128), nullable=False)
    apellido: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Alumno {self.nombre} {self.apellido}>"
