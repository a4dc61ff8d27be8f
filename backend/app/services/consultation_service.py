"""
Consultation Service - consultation lifecycle

    student request       -> Pending Approval
    adviser direct        -> Scheduled
    Pending Approval      -> Scheduled   (adviser sets date, times, venue)
    Pending Approval      -> Cancelled   (adviser declines)
    Scheduled             -> Cancelled   (adviser or the project's teacher)
    Scheduled             -> Completed   (adviser; no discussion point pending review)

A project has at most one open (Pending Approval / Scheduled) consultation.
Project and subject fields are copied into the consultation at creation and
never refreshed.
"""

from dataclasses import dataclass
from functools import partial
from datetime import date as date_type, datetime
from typing import Any, Callable, Dict, List, Optional, Union
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AuthorizationError,
    ConsultationClosedError,
    ConsultationNotFoundError,
    OpenConsultationExistsError,
    PendingReviewsError,
    ProjectNotApprovedError,
    ProjectNotFoundError,
    ReportNotAvailableError,
    SubjectNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.consultation import (
    CLOSED_CONSULTATION_STATUSES,
    OPEN_CONSULTATION_STATUSES,
    Consultation,
    ConsultationStatus,
    StudentUpdateStatus,
)
from app.models.project import CapstoneProject, ProjectStatus
from app.models.subject import Subject
from app.models.user import UserRole
from app.modules.auth.role_resolver import Principal
from app.modules.workflow.state_machine import ConsultationAction, consultation_transition
from app.services.document_store import DocumentStore


@dataclass
class Schedule:
    date: str
    start_time: str
    end_time: str
    venue: str

    def as_columns(self) -> Dict[str, str]:
        return {
            "date": self.date,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "venue": self.venue,
        }


def _parse_time(value: str) -> Optional[datetime]:
    if not value or len(value) != 5:
        return None
    try:
        return datetime.strptime(value, "%H:%M")
    except ValueError:
        return None


def validate_schedule(date: str, start_time: str, end_time: str, venue: str) -> Schedule:
    """ISO date, HH:MM times with end after start, non-empty venue"""
    errors: Dict[str, str] = {}
    date = (date or "").strip()
    try:
        date_type.fromisoformat(date)
    except ValueError:
        errors["date"] = "Date must be an ISO date (YYYY-MM-DD)"

    start = _parse_time(start_time)
    end = _parse_time(end_time)
    if start is None:
        errors["start_time"] = "Start time must be HH:MM"
    if end is None:
        errors["end_time"] = "End time must be HH:MM"
    if start is not None and end is not None and end <= start:
        errors["end_time"] = "End time must be after start time"

    venue = (venue or "").strip()
    if not venue:
        errors["venue"] = "Venue is required"

    if errors:
        raise ValidationError("Invalid schedule", fields=errors)
    return Schedule(date=date, start_time=start_time, end_time=end_time, venue=venue)


def generate_attendance_code(length: Optional[int] = None) -> str:
    """Random decimal digits, ATTENDANCE_CODE_LENGTH of them by default"""
    length = length or settings.ATTENDANCE_CODE_LENGTH
    return "".join(secrets.choice("0123456789") for _ in range(length))


def pending_point_ids(points: List[Dict[str, Any]]) -> List[str]:
    return [
        p.get("id") for p in points
        if p.get("student_update_status") == StudentUpdateStatus.pending.value
    ]


def snapshot_fields(project: CapstoneProject, subject: Subject) -> Dict[str, Any]:
    """Project/subject fields copied into a new consultation"""
    return {
        "project_id": project.id,
        "capstone_title": project.title,
        "block_group_number": f"{project.block}, Group {project.group_number}",
        "project_details": project.details,
        "semester": subject.semester,
        "academic_year": subject.academic_year,
        "student_ids": list(project.student_ids),
        "advisor_id": project.adviser_id,
    }


def require_open(consultation: Consultation) -> None:
    if consultation.status in CLOSED_CONSULTATION_STATUSES:
        raise ConsultationClosedError(consultation.id, consultation.status.value)


def require_assigned_adviser(consultation: Consultation, principal: Principal) -> None:
    if principal.role != UserRole.ADVISER or consultation.advisor_id != principal.id:
        raise AuthorizationError("Only the consultation's adviser can do this")


def cancel_action(consultation: Consultation, principal: Principal) -> ConsultationAction:
    """An adviser cancelling a pending request is declining it"""
    if consultation.status == ConsultationStatus.pending_approval and principal.role == UserRole.ADVISER:
        return ConsultationAction.DECLINE
    return ConsultationAction.CANCEL


def require_member(consultation: Consultation, principal: Principal) -> None:
    if principal.role != UserRole.STUDENT or principal.id not in consultation.student_ids:
        raise AuthorizationError("You are not a member of this consultation")


class ConsultationService:
    """Create, schedule, cancel and close consultations"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def _load_project(self, project_id: str) -> CapstoneProject:
        return await self.store.require(CapstoneProject, project_id, ProjectNotFoundError)

    async def _ensure_no_open_consultation(self, project_id: str) -> None:
        existing = await self.store.first(
            Consultation,
            Consultation.project_id == project_id,
            Consultation.status.in_(OPEN_CONSULTATION_STATUSES),
        )
        if existing is not None:
            logger.log_guard_rejection("consultation", existing.id, "OPEN_CONSULTATION_EXISTS",
                                       f"new consultation for project {project_id}")
            raise OpenConsultationExistsError(existing.id)

    async def _create(self, principal: Principal, project: CapstoneProject, status: ConsultationStatus,
                      agenda: str, schedule: Optional[Schedule]) -> Consultation:
        if project.status != ProjectStatus.approved:
            raise ProjectNotApprovedError(project.id, project.status.value)
        await self._ensure_no_open_consultation(project.id)

        subject = await self.store.require(Subject, project.subject_id, SubjectNotFoundError)
        consultation = Consultation(
            **snapshot_fields(project, subject),
            **(schedule.as_columns() if schedule else {}),
            status=status,
            agenda=agenda,
            requested_by=principal.id,
            attendance_code=generate_attendance_code(),
            is_attendance_open=False,
            attendees=[],
            discussion_points=[],
        )
        consultation = await self.store.create(consultation)
        logger.log_transition("consultation", consultation.id, None, status.value,
                              actor_id=principal.id, actor_role=principal.role.value,
                              project_id=project.id)
        return consultation

    async def request(self, principal: Principal, project_id: str, agenda: str) -> Consultation:
        """Student asks for a consultation on their approved project"""
        status = consultation_transition(None, ConsultationAction.REQUEST, principal.role)
        agenda = (agenda or "").strip()
        if len(agenda) < settings.CONSULTATION_AGENDA_MIN_LENGTH:
            raise ValidationError(
                f"Agenda must be at least {settings.CONSULTATION_AGENDA_MIN_LENGTH} characters",
                field="agenda"
            )

        project = await self._load_project(project_id)
        if principal.id not in project.student_ids:
            raise AuthorizationError("You are not a member of this project")
        return await self._create(principal, project, status, agenda, None)

    async def schedule_direct(self, principal: Principal, project_id: str, date: str, start_time: str,
                              end_time: str, venue: str, agenda: Optional[str] = None) -> Consultation:
        """Adviser creates an already-scheduled consultation"""
        status = consultation_transition(None, ConsultationAction.SCHEDULE_DIRECT, principal.role)
        schedule = validate_schedule(date, start_time, end_time, venue)

        project = await self._load_project(project_id)
        if project.adviser_id != principal.id:
            raise AuthorizationError("You are not the adviser assigned to this project")
        agenda = (agenda or "").strip() or settings.DEFAULT_ADVISER_AGENDA
        return await self._create(principal, project, status, agenda, schedule)

    async def _transition(self, principal: Principal, consultation_id: str,
                          action: Union[ConsultationAction, Callable[[Consultation], ConsultationAction]],
                          extra_guard=None, extra_changes: Optional[Dict[str, Any]] = None) -> Consultation:
        """Apply one lifecycle step; a callable action is picked from the latest stored row"""
        def mutate(current: Consultation) -> Dict[str, Any]:
            if extra_guard is not None:
                extra_guard(current)
            step = action if isinstance(action, ConsultationAction) else action(current)
            new_status = consultation_transition(current.status, step, principal.role)
            changes = {"status": new_status}
            changes.update(extra_changes or {})
            if step == ConsultationAction.CLOSE:
                pending = pending_point_ids(current.discussion_points)
                if pending:
                    logger.log_guard_rejection("consultation", current.id, "PENDING_REVIEWS",
                                               f"{len(pending)} points pending")
                    raise PendingReviewsError(pending)
            return changes

        before, consultation = await self.store.apply(
            Consultation, consultation_id, mutate, ConsultationNotFoundError, "consultation"
        )
        logger.log_transition("consultation", consultation_id, before["status"].value,
                              consultation.status.value, actor_id=principal.id,
                              actor_role=principal.role.value)
        return consultation

    async def schedule(self, principal: Principal, consultation_id: str, date: str, start_time: str,
                       end_time: str, venue: str) -> Consultation:
        schedule = validate_schedule(date, start_time, end_time, venue)
        return await self._transition(
            principal, consultation_id, ConsultationAction.SCHEDULE,
            extra_guard=partial(require_assigned_adviser, principal=principal),
            extra_changes=schedule.as_columns(),
        )

    async def cancel(self, principal: Principal, consultation_id: str) -> Consultation:
        """Adviser declines a request or cancels a session; the project's teacher may cancel"""
        consultation = await self.store.require(Consultation, consultation_id, ConsultationNotFoundError)

        if principal.role == UserRole.TEACHER:
            project = await self._load_project(consultation.project_id)
            if project.teacher_id != principal.id:
                raise AuthorizationError("You are not the teacher of this project")
            guard = None
        else:
            guard = partial(require_assigned_adviser, principal=principal)

        return await self._transition(
            principal, consultation_id, partial(cancel_action, principal=principal),
            extra_guard=guard,
            extra_changes={"is_attendance_open": False, "closed_at": utcnow()},
        )

    async def close(self, principal: Principal, consultation_id: str) -> Consultation:
        """Scheduled -> Completed; checked against the latest stored points"""
        return await self._transition(
            principal, consultation_id, ConsultationAction.CLOSE,
            extra_guard=partial(require_assigned_adviser, principal=principal),
            extra_changes={"is_attendance_open": False, "closed_at": utcnow()},
        )

    async def update_notes(self, principal: Principal, consultation_id: str, notes: str) -> Consultation:
        def mutate(current: Consultation) -> Dict[str, Any]:
            require_assigned_adviser(current, principal)
            require_open(current)
            return {"notes": notes} if current.notes != notes else {}

        _, consultation = await self.store.apply(
            Consultation, consultation_id, mutate, ConsultationNotFoundError, "consultation"
        )
        return consultation

    async def can_view(self, consultation: Consultation, principal: Principal) -> bool:
        if principal.role == UserRole.STUDENT:
            return principal.id in consultation.student_ids
        if principal.role == UserRole.ADVISER:
            return consultation.advisor_id == principal.id
        project = await self.store.get(CapstoneProject, consultation.project_id)
        return project is not None and project.teacher_id == principal.id

    async def get_consultation(self, principal: Principal, consultation_id: str) -> Consultation:
        consultation = await self.store.require(Consultation, consultation_id, ConsultationNotFoundError)
        if not await self.can_view(consultation, principal):
            raise AuthorizationError("You do not have access to this consultation")
        return consultation

    async def list_consultations(self, principal: Principal, project_id: Optional[str] = None) -> List[Consultation]:
        """Consultations visible to the caller, newest first"""
        criteria = []
        if project_id:
            criteria.append(Consultation.project_id == project_id)

        if principal.role == UserRole.ADVISER:
            criteria.append(Consultation.advisor_id == principal.id)
        elif principal.role == UserRole.TEACHER:
            projects = await self.store.query(CapstoneProject, CapstoneProject.teacher_id == principal.id)
            if not projects:
                return []
            criteria.append(Consultation.project_id.in_([p.id for p in projects]))

        rows = await self.store.query(Consultation, *criteria, order_by=Consultation.created_at.desc())
        if principal.role == UserRole.STUDENT:
            rows = [c for c in rows if principal.id in c.student_ids]
        return rows

    async def report(self, principal: Principal, consultation_id: str) -> Dict[str, Any]:
        """Read-only record of a completed consultation"""
        consultation = await self.get_consultation(principal, consultation_id)
        if consultation.status != ConsultationStatus.completed:
            raise ReportNotAvailableError(consultation.id, consultation.status.value)

        return {
            "consultation_id": consultation.id,
            "project_id": consultation.project_id,
            "capstone_title": consultation.capstone_title,
            "block_group_number": consultation.block_group_number,
            "project_details": consultation.project_details,
            "semester": consultation.semester,
            "academic_year": consultation.academic_year,
            "date": consultation.date,
            "start_time": consultation.start_time,
            "end_time": consultation.end_time,
            "venue": consultation.venue,
            "agenda": consultation.agenda,
            "notes": consultation.notes,
            "attendees": list(consultation.attendees),
            "discussion_points": list(consultation.discussion_points),
            "closed_at": consultation.closed_at,
        }
