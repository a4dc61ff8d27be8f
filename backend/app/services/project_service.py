"""
Project Service - capstone project registration and the two approval gates

    student submits  -> Pending Teacher Approval
    teacher approves -> Pending Adviser Approval   (or rejects with a reason)
    adviser approves -> Approved                   (or rejects with a reason)

Rejected projects stay as history and do not block a new submission for the
same group.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AdviserNotFoundError,
    AuthorizationError,
    DuplicateActiveProjectError,
    ProjectNotFoundError,
    RegistrationIncompleteError,
    StudentNotFoundError,
    SubjectNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.project import CapstoneProject, ProjectStatus
from app.models.subject import Subject
from app.models.user import Adviser, Student, UserRole
from app.modules.auth.role_resolver import Principal
from app.modules.workflow.state_machine import ProjectAction, project_transition
from app.services.document_store import DocumentStore


def validate_submission(title: str, details: str) -> Dict[str, str]:
    """Trimmed title and details, or ValidationError listing every bad field"""
    title = (title or "").strip()
    details = (details or "").strip()
    errors: Dict[str, str] = {}
    if len(title) < settings.PROJECT_TITLE_MIN_LENGTH:
        errors["title"] = f"Title must be at least {settings.PROJECT_TITLE_MIN_LENGTH} characters"
    if len(details) < settings.PROJECT_DETAILS_MIN_LENGTH:
        errors["details"] = f"Details must be at least {settings.PROJECT_DETAILS_MIN_LENGTH} characters"
    if errors:
        raise ValidationError("Invalid project submission", fields=errors)
    return {"title": title, "details": details}


def require_reason(reason: Optional[str], field: str = "rejection_reason") -> str:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A reason is required when rejecting", field=field)
    return reason


def can_view_project(project: CapstoneProject, principal: Principal) -> bool:
    if principal.role == UserRole.STUDENT:
        return principal.id in project.student_ids
    if principal.role == UserRole.TEACHER:
        return project.teacher_id == principal.id
    return project.adviser_id == principal.id


def check_gatekeeper(project: CapstoneProject, principal: Principal) -> None:
    """Teacher and adviser may only act on projects assigned to them"""
    if principal.role == UserRole.TEACHER and project.teacher_id != principal.id:
        raise AuthorizationError("You are not the teacher assigned to this project")
    if principal.role == UserRole.ADVISER and project.adviser_id != principal.id:
        raise AuthorizationError("You are not the adviser assigned to this project")
    if principal.role == UserRole.STUDENT:
        raise AuthorizationError("Students cannot approve or reject projects")


class ProjectService:
    """Submission and approval of capstone projects"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def submit(self, principal: Principal, title: str, details: str, adviser_id: str) -> CapstoneProject:
        fields = validate_submission(title, details)
        status = project_transition(None, ProjectAction.SUBMIT, principal.role)

        student = await self.store.require(Student, principal.id, StudentNotFoundError)
        if not student.has_group:
            missing = [
                name for name, value in (
                    ("subject_id", student.subject_id),
                    ("block", student.block),
                    ("group_number", student.group_number),
                ) if value in (None, "")
            ]
            raise RegistrationIncompleteError(missing)

        await self.store.require(Adviser, adviser_id, AdviserNotFoundError)
        # teacher_id always comes from the subject, never from the caller
        subject = await self.store.require(Subject, student.subject_id, SubjectNotFoundError)

        existing = await self.store.first(
            CapstoneProject,
            CapstoneProject.subject_id == student.subject_id,
            CapstoneProject.block == student.block,
            CapstoneProject.group_number == student.group_number,
            CapstoneProject.status != ProjectStatus.rejected,
        )
        if existing is not None:
            logger.log_guard_rejection("project", existing.id, "DUPLICATE_ACTIVE_PROJECT",
                                       f"submission by student {student.id}")
            raise DuplicateActiveProjectError(existing.id)

        project = CapstoneProject(
            title=fields["title"],
            details=fields["details"],
            student_ids=[student.id],
            subject_id=subject.id,
            teacher_id=subject.teacher_id,
            adviser_id=adviser_id,
            block=student.block,
            group_number=student.group_number,
            status=status,
            submitted_by=student.id,
        )
        project = await self.store.create(project)
        logger.log_transition("project", project.id, None, status.value,
                              actor_id=principal.id, actor_role=principal.role.value)
        return project

    async def _decide(self, principal: Principal, project_id: str, action: ProjectAction,
                      reason: Optional[str] = None) -> CapstoneProject:
        def mutate(current: CapstoneProject) -> Dict[str, Any]:
            check_gatekeeper(current, principal)
            new_status = project_transition(current.status, action, principal.role)
            changes: Dict[str, Any] = {"status": new_status}
            if reason is not None:
                changes["rejection_reason"] = reason
            return changes

        before, project = await self.store.apply(
            CapstoneProject, project_id, mutate, ProjectNotFoundError, "project"
        )
        logger.log_transition("project", project_id, before["status"].value, project.status.value,
                              actor_id=principal.id, actor_role=principal.role.value)
        return project

    async def approve(self, principal: Principal, project_id: str) -> CapstoneProject:
        """Teacher gate or adviser gate, picked by the caller's role"""
        return await self._decide(principal, project_id, ProjectAction.APPROVE)

    async def reject(self, principal: Principal, project_id: str, reason: Optional[str]) -> CapstoneProject:
        reason = require_reason(reason)
        return await self._decide(principal, project_id, ProjectAction.REJECT, reason)

    async def get_project(self, principal: Principal, project_id: str) -> CapstoneProject:
        project = await self.store.require(CapstoneProject, project_id, ProjectNotFoundError)
        if not can_view_project(project, principal):
            raise AuthorizationError("You do not have access to this project")
        return project

    async def list_mine(self, principal: Principal) -> List[CapstoneProject]:
        """Every project the student belongs to, rejected history included"""
        student = await self.store.require(Student, principal.id, StudentNotFoundError)
        if not student.subject_id:
            return []
        projects = await self.store.query(
            CapstoneProject,
            CapstoneProject.subject_id == student.subject_id,
            order_by=CapstoneProject.created_at,
        )
        return [p for p in projects if student.id in p.student_ids]

    async def list_pending(self, principal: Principal) -> List[CapstoneProject]:
        """Projects waiting at the caller's gate"""
        if principal.role == UserRole.TEACHER:
            criteria = (
                CapstoneProject.teacher_id == principal.id,
                CapstoneProject.status == ProjectStatus.pending_teacher_approval,
            )
        elif principal.role == UserRole.ADVISER:
            criteria = (
                CapstoneProject.adviser_id == principal.id,
                CapstoneProject.status == ProjectStatus.pending_adviser_approval,
            )
        else:
            raise AuthorizationError("Only teachers and advisers review projects")
        return await self.store.query(CapstoneProject, *criteria, order_by=CapstoneProject.created_at)

    async def list_advised(self, principal: Principal) -> List[CapstoneProject]:
        return await self.store.query(
            CapstoneProject,
            CapstoneProject.adviser_id == principal.id,
            CapstoneProject.status == ProjectStatus.approved,
            order_by=CapstoneProject.title,
        )

    async def list_advisers(self) -> List[Adviser]:
        return await self.store.query(Adviser, order_by=Adviser.name)
