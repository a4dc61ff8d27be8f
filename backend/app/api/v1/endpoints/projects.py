from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_current_principal, require_adviser, require_role, require_student
from app.modules.auth.role_resolver import Principal
from app.schemas.project import ProjectReject, ProjectResponse, ProjectSubmit
from app.services.project_service import ProjectService


router = APIRouter()

require_gatekeeper = require_role(UserRole.TEACHER, UserRole.ADVISER)


def _many(projects, principal: Principal) -> List[ProjectResponse]:
    return [ProjectResponse.for_principal(p, principal) for p in projects]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def submit_project(
    data: ProjectSubmit,
    student: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Submit the group's capstone project for teacher approval"""
    project = await ProjectService(db).submit(student, data.title, data.details, data.adviser_id)
    return ProjectResponse.for_principal(project, student)


@router.get("/mine", response_model=List[ProjectResponse])
async def list_my_projects(
    student: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    return _many(await ProjectService(db).list_mine(student), student)


@router.get("/pending", response_model=List[ProjectResponse])
async def list_pending_projects(
    principal: Principal = Depends(require_gatekeeper),
    db: AsyncSession = Depends(get_db)
):
    """Projects waiting at the caller's approval gate"""
    return _many(await ProjectService(db).list_pending(principal), principal)


@router.get("/advised", response_model=List[ProjectResponse])
async def list_advised_projects(
    adviser: Principal = Depends(require_adviser),
    db: AsyncSession = Depends(get_db)
):
    return _many(await ProjectService(db).list_advised(adviser), adviser)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    project = await ProjectService(db).get_project(principal, project_id)
    return ProjectResponse.for_principal(project, principal)


@router.post("/{project_id}/approve", response_model=ProjectResponse)
async def approve_project(
    project_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    project = await ProjectService(db).approve(principal, project_id)
    return ProjectResponse.for_principal(project, principal)


@router.post("/{project_id}/reject", response_model=ProjectResponse)
async def reject_project(
    project_id: str,
    data: ProjectReject,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    project = await ProjectService(db).reject(principal, project_id, data.rejection_reason)
    return ProjectResponse.for_principal(project, principal)
