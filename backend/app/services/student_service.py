"""
Student Service
Group registration and teacher approval of students.
"""

from typing import Any, Dict, List, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    GroupAlreadySetError,
    StudentNotFoundError,
    SubjectNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.subject import Subject
from app.models.user import Student, StudentStatus
from app.modules.auth.role_resolver import Principal
from app.modules.workflow.events import WorkflowEvent, WorkflowEventType, workflow_events
from app.modules.workflow.state_machine import StudentAction, student_transition
from app.services.document_store import DocumentStore
from app.services.membership_service import MembershipOutcome, outcome_from_hooks


class StudentService:
    """Student placement and approval"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def get_student(self, student_id: str) -> Student:
        return await self.store.require(Student, student_id, StudentNotFoundError)

    async def _run_hooks(self, event_type: WorkflowEventType, student_id: str, actor_id: str) -> MembershipOutcome:
        results = await workflow_events.publish(
            WorkflowEvent(type=event_type, entity_id=student_id, actor_id=actor_id),
            self.db,
        )
        return outcome_from_hooks(results)

    async def _require_owned_subject(self, teacher: Principal, student: Student) -> Subject:
        subject = await self.store.get(Subject, student.subject_id) if student.subject_id else None
        if subject is None or subject.teacher_id != teacher.id:
            raise AuthorizationError("Only the teacher of the student's subject can do this")
        return subject

    async def set_group(self, principal: Principal, subject_id: str, block: str,
                        group_number: int) -> Tuple[Student, MembershipOutcome]:
        """Set subject/block/group once, then try to join the group's project"""
        subject = await self.store.require(Subject, subject_id, SubjectNotFoundError)

        block = (block or "").strip()
        errors: Dict[str, str] = {}
        if block not in subject.blocks:
            errors["block"] = f"Block must be one of: {', '.join(subject.blocks)}"
        if group_number is None or group_number < 1:
            errors["group_number"] = "Group number must be a positive integer"
        if errors:
            raise ValidationError("Invalid group details", fields=errors)

        def mutate(current: Student) -> Dict[str, Any]:
            if current.has_group:
                raise GroupAlreadySetError()
            status = student_transition(current.status, StudentAction.SET_GROUP, principal.role)
            return {
                "subject_id": subject.id,
                "block": block,
                "group_number": group_number,
                "status": status,
            }

        await self.store.apply(Student, principal.id, mutate, StudentNotFoundError, "student")
        logger.log_transition("student", principal.id, None, StudentStatus.pending_approval.value,
                              actor_id=principal.id, actor_role=principal.role.value)

        outcome = await self._run_hooks(WorkflowEventType.STUDENT_GROUP_SET, principal.id, principal.id)
        return await self.get_student(principal.id), outcome

    async def list_pending(self, teacher: Principal) -> List[Student]:
        """Students awaiting approval in the teacher's subjects"""
        subjects = await self.store.query(Subject, Subject.teacher_id == teacher.id)
        if not subjects:
            return []
        return await self.store.query(
            Student,
            Student.status == StudentStatus.pending_approval,
            Student.subject_id.in_([s.id for s in subjects]),
            order_by=Student.created_at,
        )

    async def approve(self, teacher: Principal, student_id: str) -> Tuple[Student, MembershipOutcome]:
        """
        Pending Approval -> Active, then reconcile membership.

        The approval is committed before reconciliation runs; a failed join
        shows up in the returned outcome and never undoes the approval.
        """
        student = await self.get_student(student_id)
        await self._require_owned_subject(teacher, student)

        def mutate(current: Student) -> Dict[str, Any]:
            status = student_transition(current.status, StudentAction.APPROVE, teacher.role)
            return {"status": status, "approved_at": utcnow()}

        before, _ = await self.store.apply(Student, student_id, mutate, StudentNotFoundError, "student")
        from_state = before["status"].value if before["status"] else None
        logger.log_transition("student", student_id, from_state, StudentStatus.active.value,
                              actor_id=teacher.id, actor_role=teacher.role.value)

        outcome = await self._run_hooks(WorkflowEventType.STUDENT_APPROVED, student_id, teacher.id)
        return await self.get_student(student_id), outcome

    async def reconcile(self, teacher: Principal, student_id: str) -> MembershipOutcome:
        """Retry only the membership join"""
        student = await self.get_student(student_id)
        await self._require_owned_subject(teacher, student)
        return await self._run_hooks(WorkflowEventType.RECONCILE_REQUESTED, student_id, teacher.id)
