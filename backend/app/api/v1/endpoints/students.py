from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.modules.auth.dependencies import require_student, require_teacher
from app.modules.auth.role_resolver import Principal
from app.schemas.student import (
    GroupSelection,
    MembershipOutcomeResponse,
    StudentResponse,
    StudentWithMembership,
)
from app.services.student_service import StudentService


router = APIRouter()


def _with_membership(student, outcome) -> StudentWithMembership:
    return StudentWithMembership(
        student=StudentResponse.model_validate(student),
        membership=MembershipOutcomeResponse(**outcome.to_dict()),
    )


@router.get("/me", response_model=StudentResponse)
async def get_my_profile(
    student: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).get_student(student.id)


@router.put("/me/group", response_model=StudentWithMembership)
async def set_my_group(
    data: GroupSelection,
    student: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """
    Register subject, block and group number (once).

    The student becomes Pending Approval and, if their group already has an
    active project, is added to it.
    """
    updated, outcome = await StudentService(db).set_group(
        student, data.subject_id, data.block, data.group_number
    )
    return _with_membership(updated, outcome)


@router.get("/pending", response_model=List[StudentResponse])
async def list_pending_students(
    teacher: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).list_pending(teacher)


@router.post("/{student_id}/approve", response_model=StudentWithMembership)
async def approve_student(
    student_id: str,
    teacher: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    updated, outcome = await StudentService(db).approve(teacher, student_id)
    return _with_membership(updated, outcome)


@router.post("/{student_id}/reconcile", response_model=MembershipOutcomeResponse)
async def reconcile_student(
    student_id: str,
    teacher: Principal = Depends(require_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Retry adding an approved student to their group's project"""
    outcome = await StudentService(db).reconcile(teacher, student_id)
    return MembershipOutcomeResponse(**outcome.to_dict())
