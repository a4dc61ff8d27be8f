"""
Attendance Service

The adviser opens and closes a check-in window; students check in with the
consultation's 6-digit code (typed in or read from its QR code). The code is
generated once and regenerated only if missing. Attendees are appended once
per student; a repeated valid check-in changes nothing.
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AttendanceNotOpenError, ConsultationNotFoundError, InvalidAttendanceCodeError
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.consultation import Consultation
from app.modules.auth.role_resolver import Principal
from app.services.consultation_service import (
    generate_attendance_code,
    require_assigned_adviser,
    require_member,
    require_open,
)
from app.services.document_store import DocumentStore, append_if_absent


class AttendanceService:
    """Attendance window and check-in"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def _apply(self, consultation_id: str, mutate) -> Tuple[Dict[str, Any], Consultation]:
        return await self.store.apply(
            Consultation, consultation_id, mutate, ConsultationNotFoundError, "consultation"
        )

    async def toggle(self, principal: Principal, consultation_id: str,
                     is_open: Optional[bool] = None) -> Consultation:
        """Flip the window, or set it when is_open is given"""
        def mutate(current: Consultation) -> Dict[str, Any]:
            require_assigned_adviser(current, principal)
            require_open(current)
            target = (not current.is_attendance_open) if is_open is None else is_open
            changes: Dict[str, Any] = {}
            if target != current.is_attendance_open:
                changes["is_attendance_open"] = target
            if not current.attendance_code:
                changes["attendance_code"] = generate_attendance_code()
            return changes

        _, consultation = await self._apply(consultation_id, mutate)
        logger.info(
            f"Attendance for consultation {consultation_id} is {'open' if consultation.is_attendance_open else 'closed'}",
            extra={"event_type": "attendance_toggled", "consultation_id": consultation_id,
                   "is_open": consultation.is_attendance_open}
        )
        return consultation

    async def get_code(self, principal: Principal, consultation_id: str) -> str:
        """Adviser-only; the QR payload is this same string"""
        def mutate(current: Consultation) -> Dict[str, Any]:
            require_assigned_adviser(current, principal)
            if current.attendance_code:
                return {}
            return {"attendance_code": generate_attendance_code()}

        _, consultation = await self._apply(consultation_id, mutate)
        return consultation.attendance_code

    async def check_in(self, principal: Principal, consultation_id: str, code: str) -> Tuple[Consultation, bool]:
        """
        Record the student's attendance.

        Returns the consultation and whether a new attendee was added. The
        code is compared exactly as submitted.
        """
        def mutate(current: Consultation) -> Dict[str, Any]:
            require_member(current, principal)
            if not current.is_attendance_open:
                raise AttendanceNotOpenError()
            if code != current.attendance_code:
                raise InvalidAttendanceCodeError()
            attendee = {
                "student_id": principal.id,
                "name": principal.name,
                "timestamp": utcnow().isoformat(),
            }
            attendees, added = append_if_absent(current.attendees, attendee, key="student_id")
            return {"attendees": attendees} if added else {}

        try:
            before, consultation = await self._apply(consultation_id, mutate)
        except (AttendanceNotOpenError, InvalidAttendanceCodeError) as e:
            logger.log_guard_rejection("consultation", consultation_id, e.code, f"check-in by {principal.id}")
            raise

        added = not any(a.get("student_id") == principal.id for a in before["attendees"])
        if added:
            logger.info(
                f"Student {principal.id} checked in to consultation {consultation_id}",
                extra={"event_type": "attendance_check_in", "consultation_id": consultation_id}
            )
        return consultation, added
