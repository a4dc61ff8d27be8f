"""
Discussion Point Service

Points are embedded in the consultation. Two independent tracks per point:
the student's task status (To Do / On-going / Done) and the adviser's review
of the student's response (Pending / Approved / Rejected). Nothing can change
once the consultation is completed or cancelled.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConsultationNotFoundError, DiscussionPointNotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.models.consultation import Consultation, PointCategory, PointTaskStatus, StudentUpdateStatus
from app.modules.auth.role_resolver import Principal
from app.modules.workflow.state_machine import ReviewAction, review_transition
from app.services.consultation_service import require_assigned_adviser, require_member, require_open
from app.services.document_store import DocumentStore, copy_list
from app.services.project_service import require_reason


def new_point(comment: str = "", category: PointCategory = PointCategory.documentation) -> Dict[str, Any]:
    return {
        "id": generate_uuid(),
        "adviser_comment": comment,
        "category": category.value,
        "status": PointTaskStatus.to_do.value,
        "student_response": None,
        "student_update_status": None,
        "adviser_feedback": None,
    }


def _find(points: List[Dict[str, Any]], point_id: str) -> Tuple[int, Dict[str, Any]]:
    for index, point in enumerate(points):
        if point.get("id") == point_id:
            return index, point
    raise DiscussionPointNotFoundError(point_id)


def _review_state(point: Dict[str, Any]) -> Optional[StudentUpdateStatus]:
    value = point.get("student_update_status")
    return StudentUpdateStatus(value) if value else None


class DiscussionService:
    """Adviser-authored points, student responses and adviser review"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def _edit_point(self, consultation_id: str, point_id: str, guard, edit) -> Dict[str, Any]:
        """Apply `edit(point) -> dict` to one point; returns the stored point"""
        def mutate(current: Consultation) -> Dict[str, Any]:
            guard(current)
            require_open(current)
            points = copy_list(current.discussion_points)
            index, point = _find(points, point_id)
            updates = edit(point)
            if all(point.get(k) == v for k, v in updates.items()):
                return {}
            points[index] = {**point, **updates}
            return {"discussion_points": points}

        _, consultation = await self.store.apply(
            Consultation, consultation_id, mutate, ConsultationNotFoundError, "consultation"
        )
        return _find(consultation.discussion_points, point_id)[1]

    async def add_point(self, principal: Principal, consultation_id: str, comment: str = "",
                        category: PointCategory = PointCategory.documentation) -> Dict[str, Any]:
        point = new_point(comment or "", category)

        def mutate(current: Consultation) -> Dict[str, Any]:
            require_assigned_adviser(current, principal)
            require_open(current)
            return {"discussion_points": copy_list(current.discussion_points) + [point]}

        await self.store.apply(Consultation, consultation_id, mutate, ConsultationNotFoundError, "consultation")
        logger.info(f"Discussion point {point['id']} added to consultation {consultation_id}")
        return point

    async def edit_point(self, principal: Principal, consultation_id: str, point_id: str,
                         comment: Optional[str] = None, category: Optional[PointCategory] = None) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        if comment is not None:
            updates["adviser_comment"] = comment
        if category is not None:
            updates["category"] = category.value

        return await self._edit_point(
            consultation_id, point_id,
            lambda c: require_assigned_adviser(c, principal),
            lambda point: updates,
        )

    async def respond(self, principal: Principal, consultation_id: str, point_id: str,
                      response: str) -> Dict[str, Any]:
        """A submitted response always (re)opens review"""
        response = (response or "").strip()
        if not response:
            raise ValidationError("Response cannot be empty", field="student_response")

        def edit(point: Dict[str, Any]) -> Dict[str, Any]:
            state = review_transition(_review_state(point), ReviewAction.RESPOND, principal.role, point_id)
            return {"student_response": response, "student_update_status": state.value}

        point = await self._edit_point(consultation_id, point_id, lambda c: require_member(c, principal), edit)
        logger.info(f"Point {point_id} in consultation {consultation_id} awaits review")
        return point

    async def set_task_status(self, principal: Principal, consultation_id: str, point_id: str,
                              status: PointTaskStatus) -> Dict[str, Any]:
        """Student-managed; leaves the review state alone"""
        return await self._edit_point(
            consultation_id, point_id,
            lambda c: require_member(c, principal),
            lambda point: {"status": status.value},
        )

    async def review(self, principal: Principal, consultation_id: str, point_id: str,
                     approve: bool, feedback: Optional[str] = None) -> Dict[str, Any]:
        """Approve clears feedback; reject requires it"""
        action = ReviewAction.APPROVE if approve else ReviewAction.REJECT
        if not approve:
            feedback = require_reason(feedback, field="adviser_feedback")

        def edit(point: Dict[str, Any]) -> Dict[str, Any]:
            state = review_transition(_review_state(point), action, principal.role, point_id)
            return {
                "student_update_status": state.value,
                "adviser_feedback": None if approve else feedback,
            }

        point = await self._edit_point(
            consultation_id, point_id, lambda c: require_assigned_adviser(c, principal), edit
        )
        logger.info(
            f"Point {point_id} in consultation {consultation_id} reviewed: {point['student_update_status']}",
            extra={"event_type": "point_reviewed", "consultation_id": consultation_id, "point_id": point_id}
        )
        return point
