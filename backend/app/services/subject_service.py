"""
Subject Service
Teacher-owned course offerings. Students pick one of a subject's blocks when
they register their group.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, SubjectInUseError, SubjectNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.project import CapstoneProject, ProjectStatus
from app.models.subject import Subject
from app.modules.auth.role_resolver import Principal
from app.services.document_store import DocumentStore, store_operation


EDITABLE_FIELDS = ("name", "year_level", "academic_year", "semester", "blocks")


def normalize_blocks(blocks: List[str]) -> List[str]:
    """Trim block labels; at least one, no duplicates"""
    cleaned = [b.strip() for b in blocks if b and b.strip()]
    if not cleaned:
        raise ValidationError("At least one block is required", field="blocks")
    if len(set(cleaned)) != len(cleaned):
        raise ValidationError("Block labels must be unique", field="blocks")
    return cleaned


def _clean_text(value: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    return value


class SubjectService:
    """Subject CRUD for teachers"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = DocumentStore(db)

    async def create_subject(self, teacher: Principal, name: str, year_level: str,
                             academic_year: str, semester: str, blocks: List[str]) -> Subject:
        subject = Subject(
            name=_clean_text(name, "name"),
            year_level=_clean_text(year_level, "year_level"),
            academic_year=_clean_text(academic_year, "academic_year"),
            semester=_clean_text(semester, "semester"),
            blocks=normalize_blocks(blocks),
            teacher_id=teacher.id,
        )
        subject = await self.store.create(subject)
        logger.info(f"Subject {subject.id} created by teacher {teacher.id}")
        return subject

    async def get_subject(self, subject_id: str) -> Subject:
        return await self.store.require(Subject, subject_id, SubjectNotFoundError)

    async def list_subjects(self, teacher_id: Optional[str] = None) -> List[Subject]:
        criteria = [Subject.teacher_id == teacher_id] if teacher_id else []
        return await self.store.query(Subject, *criteria, order_by=Subject.name)

    async def update_subject(self, teacher: Principal, subject_id: str, changes: Dict[str, Any]) -> Subject:
        """Edit attributes, blocks included. Only provided fields are written."""
        cleaned: Dict[str, Any] = {}
        for key, value in changes.items():
            if key not in EDITABLE_FIELDS or value is None:
                continue
            cleaned[key] = normalize_blocks(value) if key == "blocks" else _clean_text(value, key)

        def mutate(current: Subject) -> Dict[str, Any]:
            if current.teacher_id != teacher.id:
                raise AuthorizationError("Only the owning teacher can edit this subject")
            return {k: v for k, v in cleaned.items() if getattr(current, k) != v}

        _, subject = await self.store.apply(Subject, subject_id, mutate, SubjectNotFoundError, "subject")
        return subject

    async def delete_subject(self, teacher: Principal, subject_id: str) -> None:
        """Refused while any non-rejected project still references the subject"""
        subject = await self.get_subject(subject_id)
        if subject.teacher_id != teacher.id:
            raise AuthorizationError("Only the owning teacher can delete this subject")

        active = await self.store.query(
            CapstoneProject,
            CapstoneProject.subject_id == subject_id,
            CapstoneProject.status != ProjectStatus.rejected,
        )
        if active:
            logger.log_guard_rejection("subject", subject_id, "SUBJECT_IN_USE", f"{len(active)} active projects")
            raise SubjectInUseError(subject_id, len(active))

        async with store_operation(self.db, f"delete subject {subject_id}"):
            await self.db.execute(delete(Subject).where(Subject.id == subject_id))
            await self.db.commit()
        logger.info(f"Subject {subject_id} deleted by teacher {teacher.id}")
