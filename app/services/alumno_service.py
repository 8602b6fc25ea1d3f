"""
Alumno service: CRUD helpers for the admin pages.

Only create and read are exposed; the admin pages never edit or
delete students.
"""

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.alumno import Alumno


async def list_alumnos(db: AsyncSession, skip: int = 0, limit: int = 50) -> list[Alumno]:
    stmt = select(Alumno).order_by(Alumno.apellido, Alumno.nombre).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_alumno(alumno_id: int, db: AsyncSession) -> Alumno:
    alumno = await db.get(Alumno, alumno_id)
    if alumno is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Alumno not found")
    return alumno


async def create_alumno(nombre: str, apellido: str, email: str, db: AsyncSession) -> Alumno:
    alumno = Alumno(nombre=nombre, apellido=apellido, email=email)
    db.add(alumno)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An alumno with this email already exists",
        )
    return alumno
