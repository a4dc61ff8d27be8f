"""
Group Membership Reconciler

Links a student's (subject, block, group) placement to the active capstone
project of that group by adding the student to the project's roster.

Runs as a post-commit hook after a student sets their group and after a
teacher approves a student, and can be re-run on its own. It never raises
for store failures: the outcome says whether the student joined, was already
a member, had no project to join, or could not be joined and why.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CapstoneError, ProjectNotFoundError, StudentNotFoundError
from app.core.logging_config import logger
from app.models.project import CapstoneProject, ProjectStatus
from app.models.user import Student
from app.modules.workflow.events import WorkflowEvent, WorkflowEventType, workflow_events
from app.services.document_store import DocumentStore, append_if_absent


JOINED = "joined"
ALREADY_MEMBER = "already_member"
NO_PROJECT = "no_project"
FAILED = "failed"


@dataclass
class MembershipOutcome:
    """Result of one reconciliation attempt"""
    status: str
    project_id: Optional[str] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != FAILED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MembershipReconciler:
    """Set-union join of a student into their group's active project"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def find_group_project(self, subject_id: str, block: str, group_number: int) -> Optional[CapstoneProject]:
        """Oldest non-rejected project for the group"""
        projects = await self.store.query(
            CapstoneProject,
            CapstoneProject.subject_id == subject_id,
            CapstoneProject.block == block,
            CapstoneProject.group_number == group_number,
            CapstoneProject.status != ProjectStatus.rejected,
            order_by=CapstoneProject.created_at,
        )
        if len(projects) > 1:
            logger.warning(
                f"Group {subject_id}/{block}/{group_number} has {len(projects)} active projects, using the oldest",
                extra={"event_type": "duplicate_group_projects", "project_ids": [p.id for p in projects]}
            )
        return projects[0] if projects else None

    async def reconcile(self, student_id: str) -> MembershipOutcome:
        try:
            outcome = await self._reconcile(student_id)
        except (CapstoneError, SQLAlchemyError) as e:
            await self.db.rollback()
            message = e.message if isinstance(e, CapstoneError) else "Data store error"
            logger.log_error_with_context(e, context=f"membership reconcile for student {student_id}")
            outcome = MembershipOutcome(status=FAILED, message=f"Could not auto-join project: {message}")

        logger.info(
            f"Membership for student {student_id}: {outcome.status}",
            extra={
                "event_type": "membership_reconciled",
                "student_id": student_id,
                "membership_status": outcome.status,
                "project_id": outcome.project_id,
                "membership_message": outcome.message,
            }
        )
        return outcome

    async def _reconcile(self, student_id: str) -> MembershipOutcome:
        student = await self.store.require(Student, student_id, StudentNotFoundError)
        if not student.has_group:
            return MembershipOutcome(status=NO_PROJECT, message="Student has no group yet")

        project = await self.find_group_project(student.subject_id, student.block, student.group_number)
        if project is None:
            return MembershipOutcome(status=NO_PROJECT, message="No active project for this group")

        def mutate(current: CapstoneProject) -> Dict[str, Any]:
            # The project may have been rejected since the lookup
            if current.status == ProjectStatus.rejected:
                return {}
            roster, added = append_if_absent(current.student_ids, student.id)
            return {"student_ids": roster} if added else {}

        before, fresh = await self.store.apply(
            CapstoneProject, project.id, mutate, ProjectNotFoundError, "project"
        )

        if fresh.status == ProjectStatus.rejected:
            return MembershipOutcome(status=NO_PROJECT, project_id=fresh.id, message="Group project was rejected")
        if student.id in before["student_ids"]:
            return MembershipOutcome(status=ALREADY_MEMBER, project_id=fresh.id)
        return MembershipOutcome(status=JOINED, project_id=fresh.id, message=f"Joined '{fresh.title}'")


@workflow_events.on(
    WorkflowEventType.STUDENT_GROUP_SET,
    WorkflowEventType.STUDENT_APPROVED,
    WorkflowEventType.RECONCILE_REQUESTED,
)
async def reconcile_membership(event: WorkflowEvent, db: AsyncSession) -> MembershipOutcome:
    """Post-commit hook: join the student to their group's project"""
    return await MembershipReconciler(db).reconcile(event.entity_id)


def outcome_from_hooks(results) -> MembershipOutcome:
    """Pick the reconciler's outcome out of a publish() result list"""
    for result in results:
        if result.handler != reconcile_membership.__name__:
            continue
        if result.ok:
            return result.value
        return MembershipOutcome(status=FAILED, message=f"Could not auto-join project: {result.error}")
    return MembershipOutcome(status=FAILED, message="Membership reconciler is not registered")
