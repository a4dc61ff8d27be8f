"""
Unit Tests for project submission and the approval gates
"""
import pytest

from app.core.exceptions import (
    AdviserNotFoundError,
    AuthorizationError,
    DuplicateActiveProjectError,
    InvalidTransitionError,
    RegistrationIncompleteError,
    ValidationError,
)
from app.models.project import ProjectStatus
from app.services.project_service import ProjectService, validate_submission

TITLE = "Smart Attendance Tracker"
DETAILS = "A QR based attendance system for college consultations."


class TestValidateSubmission:

    def test_trims_fields(self):
        assert validate_submission(f"  {TITLE} ", DETAILS) == {"title": TITLE, "details": DETAILS}

    def test_reports_every_bad_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_submission("abc", "short")
        assert set(exc_info.value.fields) == {"title", "details"}


class TestSubmit:

    @pytest.mark.asyncio
    async def test_submit_derives_teacher_from_subject(self, db_session, placed_student, adviser, teacher, subject):
        project = await ProjectService(db_session).submit(placed_student, TITLE, DETAILS, adviser.id)

        assert project.status == ProjectStatus.pending_teacher_approval
        assert project.teacher_id == teacher.id
        assert project.subject_id == subject.id
        assert project.student_ids == [placed_student.id]
        assert (project.block, project.group_number) == ("A", 1)

    @pytest.mark.asyncio
    async def test_group_required(self, db_session, student, adviser):
        with pytest.raises(RegistrationIncompleteError) as exc_info:
            await ProjectService(db_session).submit(student, TITLE, DETAILS, adviser.id)
        assert exc_info.value.details["missing"] == ["subject_id", "block", "group_number"]

    @pytest.mark.asyncio
    async def test_unknown_adviser(self, db_session, placed_student):
        with pytest.raises(AdviserNotFoundError):
            await ProjectService(db_session).submit(placed_student, TITLE, DETAILS, "nobody")

    @pytest.mark.asyncio
    async def test_one_active_project_per_group(self, db_session, submitted_project, placed_student, adviser):
        with pytest.raises(DuplicateActiveProjectError) as exc_info:
            await ProjectService(db_session).submit(placed_student, "Another Title", DETAILS, adviser.id)
        assert exc_info.value.details["project_id"] == submitted_project.id

    @pytest.mark.asyncio
    async def test_resubmit_after_rejection(self, db_session, submitted_project, placed_student, adviser, teacher):
        """Rejected projects stay as history and do not block a new one"""
        service = ProjectService(db_session)
        await service.reject(teacher, submitted_project.id, "Needs a narrower scope")

        second = await service.submit(placed_student, "Narrower Attendance Tracker", DETAILS, adviser.id)

        assert second.id != submitted_project.id
        assert [p.status for p in await service.list_mine(placed_student)] == [
            ProjectStatus.rejected, ProjectStatus.pending_teacher_approval
        ]

    @pytest.mark.asyncio
    async def test_teacher_cannot_submit(self, db_session, teacher, adviser):
        with pytest.raises(AuthorizationError):
            await ProjectService(db_session).submit(teacher, TITLE, DETAILS, adviser.id)


class TestGates:

    @pytest.mark.asyncio
    async def test_full_approval(self, db_session, submitted_project, teacher, adviser):
        service = ProjectService(db_session)

        after_teacher = await service.approve(teacher, submitted_project.id)
        assert after_teacher.status == ProjectStatus.pending_adviser_approval

        after_adviser = await service.approve(adviser, submitted_project.id)
        assert after_adviser.status == ProjectStatus.approved
        assert after_adviser.version == 3

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, db_session, submitted_project, teacher):
        with pytest.raises(ValidationError) as exc_info:
            await ProjectService(db_session).reject(teacher, submitted_project.id, "   ")
        assert "rejection_reason" in exc_info.value.fields

    @pytest.mark.asyncio
    async def test_reject_stores_reason(self, db_session, submitted_project, teacher, adviser):
        service = ProjectService(db_session)
        await service.approve(teacher, submitted_project.id)

        rejected = await service.reject(adviser, submitted_project.id, "Out of my area")

        assert rejected.status == ProjectStatus.rejected
        assert rejected.rejection_reason == "Out of my area"

    @pytest.mark.asyncio
    async def test_other_teacher_blocked(self, db_session, submitted_project, other_teacher):
        with pytest.raises(AuthorizationError):
            await ProjectService(db_session).approve(other_teacher, submitted_project.id)

    @pytest.mark.asyncio
    async def test_other_adviser_blocked(self, db_session, submitted_project, teacher, other_adviser):
        service = ProjectService(db_session)
        await service.approve(teacher, submitted_project.id)
        with pytest.raises(AuthorizationError):
            await service.approve(other_adviser, submitted_project.id)

    @pytest.mark.asyncio
    async def test_adviser_waits_for_teacher(self, db_session, submitted_project, adviser):
        with pytest.raises(AuthorizationError):
            await ProjectService(db_session).approve(adviser, submitted_project.id)

    @pytest.mark.asyncio
    async def test_approved_is_final(self, db_session, approved_project, adviser):
        with pytest.raises(InvalidTransitionError):
            await ProjectService(db_session).reject(adviser, approved_project.id, "Changed my mind")


class TestQueries:

    @pytest.mark.asyncio
    async def test_pending_lists_per_gate(self, db_session, submitted_project, teacher, adviser):
        service = ProjectService(db_session)
        assert [p.id for p in await service.list_pending(teacher)] == [submitted_project.id]
        assert await service.list_pending(adviser) == []

        await service.approve(teacher, submitted_project.id)

        assert await service.list_pending(teacher) == []
        assert [p.id for p in await service.list_pending(adviser)] == [submitted_project.id]

    @pytest.mark.asyncio
    async def test_outsider_cannot_view(self, db_session, submitted_project, second_student):
        with pytest.raises(AuthorizationError):
            await ProjectService(db_session).get_project(second_student, submitted_project.id)

    @pytest.mark.asyncio
    async def test_advised_lists_only_approved(self, db_session, approved_project, adviser, other_adviser):
        service = ProjectService(db_session)
        assert [p.id for p in await service.list_advised(adviser)] == [approved_project.id]
        assert await service.list_advised(other_adviser) == []
