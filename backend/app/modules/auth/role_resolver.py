"""
Role resolution.

A principal's role is the first role table (adviser, teacher, student) that
holds a record keyed by the principal's id. It is resolved once at login and
carried in the access token afterwards.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import RoleIndeterminateError
from app.core.logging_config import logger
from app.models.user import Adviser, Teacher, Student, UserRole


# Probe order doubles as the tie-break when records exist in several tables
ROLE_PROBE_ORDER = (
    (UserRole.ADVISER, Adviser),
    (UserRole.TEACHER, Teacher),
    (UserRole.STUDENT, Student),
)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller as seen by the services"""
    id: str
    role: UserRole
    name: str = ""
    email: str = ""

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.TEACHER

    @property
    def is_adviser(self) -> bool:
        return self.role == UserRole.ADVISER


async def resolve_role(db: AsyncSession, principal_id: str) -> Optional[UserRole]:
    """
    Return the principal's role, or None when no role record exists.

    A failed lookup raises RoleIndeterminateError; it is never reported as
    "no role".
    """
    for role, model in ROLE_PROBE_ORDER:
        try:
            result = await db.execute(select(model.id).where(model.id == principal_id))
            found = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning(
                f"Role lookup failed for {principal_id} at {role.value}: {type(e).__name__}",
                extra={"event_type": "role_indeterminate", "principal_id": principal_id}
            )
            raise RoleIndeterminateError(principal_id, reason=type(e).__name__) from e
        if found is not None:
            return role
    return None


__all__ = ["Principal", "resolve_role", "ROLE_PROBE_ORDER"]
