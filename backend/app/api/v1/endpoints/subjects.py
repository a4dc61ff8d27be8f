from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.modules.auth.dependencies import get_current_principal, require_teacher
from app.modules.auth.role_resolver import Principal
from app.schemas.subject import SubjectCreate, SubjectResponse, SubjectUpdate
from app.services.subject_service import SubjectService


router = APIRouter()


@router.get("", response_model=List[SubjectResponse])
async def list_subjects(
    teacher_id: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """All subjects, or one teacher's; students browse these to pick a block"""
    return await SubjectService(db).list_subjects(teacher_id)


@router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    data: SubjectCreate,
    teacher: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    return await SubjectService(db).create_subject(
        teacher, data.name, data.year_level, data.academic_year, data.semester, data.blocks
    )


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(
    subject_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await SubjectService(db).get_subject(subject_id)


@router.patch("/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    subject_id: str,
    data: SubjectUpdate,
    teacher: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    return await SubjectService(db).update_subject(
        teacher, subject_id, data.model_dump(exclude_unset=True)
    )


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(
    subject_id: str,
    teacher: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    await SubjectService(db).delete_subject(teacher, subject_id)
