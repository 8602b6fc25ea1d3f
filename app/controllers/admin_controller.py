"""
Admin controller: student (alumno) administration.

The access policy already limits `/alumnos/**` to ADMIN; every route
also declares `require_role("ADMIN")` so the guard survives a policy
misconfiguration.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.rbac.dependencies import require_role
from app.schemas import AlumnoOut, CreateAlumnoRequest
from app.services import alumno_service

router = APIRouter(
    prefix="/alumnos",
    tags=["Admin"],
    dependencies=[Depends(require_role("ADMIN"))],
)


@router.get("", response_model=list[AlumnoOut])
async def list_alumnos(
    db: AsyncSession = Depends(get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    alumnos = await alumno_service.list_alumnos(db, skip, limit)
    return [AlumnoOut.model_validate(a) for a in alumnos]


@router.post("", response_model=AlumnoOut, status_code=201)
async def create_alumno(body: CreateAlumnoRequest, db: AsyncSession = Depends(get_db)):
    alumno = await alumno_service.create_alumno(body.nombre, body.apellido, body.email, db)
    return AlumnoOut.model_validate(alumno)


@router.get("/{alumno_id}", response_model=AlumnoOut)
async def get_alumno(alumno_id: int, db: AsyncSession = Depends(get_db)):
    return AlumnoOut.model_validate(await alumno_service.get_alumno(alumno_id, db))
