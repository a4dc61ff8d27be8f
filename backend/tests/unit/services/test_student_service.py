"""
Unit Tests for student placement, approval and membership reconciliation
"""
import logging

import pytest
from sqlalchemy import update

from app.core.exceptions import (
    AuthorizationError,
    GroupAlreadySetError,
    InvalidTransitionError,
    SubjectNotFoundError,
    ValidationError,
)
from app.models.project import CapstoneProject, ProjectStatus
from app.models.user import StudentStatus
from app.services.membership_service import ALREADY_MEMBER, JOINED, NO_PROJECT, MembershipReconciler
from app.services.project_service import ProjectService
from app.services.student_service import StudentService

DETAILS = "A QR based attendance system for college consultations."


class TestSetGroup:

    @pytest.mark.asyncio
    async def test_set_group_marks_pending(self, db_session, student, subject):
        updated, outcome = await StudentService(db_session).set_group(student, subject.id, " A ", 3)

        assert updated.status == StudentStatus.pending_approval
        assert updated.block == "A"
        assert updated.group_number == 3
        assert outcome.status == NO_PROJECT

    @pytest.mark.asyncio
    async def test_block_must_belong_to_subject(self, db_session, student, subject):
        with pytest.raises(ValidationError) as exc_info:
            await StudentService(db_session).set_group(student, subject.id, "Z", 1)
        assert "block" in exc_info.value.fields

    @pytest.mark.asyncio
    async def test_unknown_subject(self, db_session, student):
        with pytest.raises(SubjectNotFoundError):
            await StudentService(db_session).set_group(student, "missing", "A", 1)

    @pytest.mark.asyncio
    async def test_group_set_only_once(self, db_session, placed_student, subject):
        with pytest.raises(GroupAlreadySetError):
            await StudentService(db_session).set_group(placed_student, subject.id, "B", 2)

    @pytest.mark.asyncio
    async def test_late_joiner_added_to_group_project(self, db_session, submitted_project, second_student, subject):
        """Setting the group of an existing project joins it immediately"""
        _, outcome = await StudentService(db_session).set_group(second_student, subject.id, "A", 1)

        assert outcome.status == JOINED
        assert outcome.project_id == submitted_project.id
        project = await db_session.get(CapstoneProject, submitted_project.id, populate_existing=True)
        assert second_student.id in project.student_ids


class TestApproval:

    @pytest.mark.asyncio
    async def test_teacher_approves_student(self, db_session, placed_student, teacher):
        approved, outcome = await StudentService(db_session).approve(teacher, placed_student.id)

        assert approved.status == StudentStatus.active
        assert approved.approved_at is not None
        assert outcome.ok

    @pytest.mark.asyncio
    async def test_other_teacher_cannot_approve(self, db_session, placed_student, other_teacher):
        with pytest.raises(AuthorizationError):
            await StudentService(db_session).approve(other_teacher, placed_student.id)

    @pytest.mark.asyncio
    async def test_approving_twice_is_invalid(self, db_session, placed_student, teacher):
        service = StudentService(db_session)
        await service.approve(teacher, placed_student.id)
        with pytest.raises(InvalidTransitionError):
            await service.approve(teacher, placed_student.id)

    @pytest.mark.asyncio
    async def test_list_pending_scoped_to_teacher(self, db_session, placed_student, teacher, other_teacher):
        service = StudentService(db_session)
        assert [s.id for s in await service.list_pending(teacher)] == [placed_student.id]
        assert await service.list_pending(other_teacher) == []

    @pytest.mark.asyncio
    async def test_approval_survives_failed_reconcile(self, db_session, placed_student, teacher, monkeypatch):
        """The approval stays committed and the outcome reports the failure"""
        async def broken(self, student_id):
            raise RuntimeError("store offline")

        monkeypatch.setattr(MembershipReconciler, "reconcile", broken)

        approved, outcome = await StudentService(db_session).approve(teacher, placed_student.id)

        assert approved.status == StudentStatus.active
        assert outcome.ok is False
        assert "store offline" in outcome.message


class TestReconciler:

    @pytest.mark.asyncio
    async def test_reconcile_is_idempotent(self, db_session, submitted_project, placed_student):
        reconciler = MembershipReconciler(db_session)

        outcome = await reconciler.reconcile(placed_student.id)

        assert outcome.status == ALREADY_MEMBER
        project = await db_session.get(CapstoneProject, submitted_project.id, populate_existing=True)
        assert project.student_ids.count(placed_student.id) == 1

    @pytest.mark.asyncio
    async def test_join_is_reported_and_logged(self, db_session, submitted_project, second_student, subject,
                                               caplog):
        """The outcome reflects the join and the log record carries it"""
        with caplog.at_level(logging.INFO, logger="capstone"):
            _, outcome = await StudentService(db_session).set_group(second_student, subject.id, "A", 1)

        assert outcome.status == JOINED
        assert outcome.project_id == submitted_project.id
        records = [r for r in caplog.records if getattr(r, "event_type", None) == "membership_reconciled"]
        assert records[-1].membership_status == JOINED
        assert records[-1].project_id == submitted_project.id

    @pytest.mark.asyncio
    async def test_rejected_project_is_not_joined(self, db_session, submitted_project, teacher,
                                                  second_student, subject):
        await ProjectService(db_session).reject(teacher, submitted_project.id, "Scope too broad")

        _, outcome = await StudentService(db_session).set_group(second_student, subject.id, "A", 1)

        assert outcome.status == NO_PROJECT

    @pytest.mark.asyncio
    async def test_oldest_active_project_wins(self, db_session, submitted_project, adviser, subject,
                                              teacher, second_student):
        """Duplicate active projects for a group resolve to the oldest"""
        newer = CapstoneProject(
            title="Duplicate", details=DETAILS, student_ids=[], subject_id=subject.id,
            teacher_id=teacher.id, adviser_id=adviser.id, block="A", group_number=1,
            status=ProjectStatus.pending_teacher_approval, submitted_by=submitted_project.submitted_by,
        )
        db_session.add(newer)
        await db_session.commit()

        _, outcome = await StudentService(db_session).set_group(second_student, subject.id, "A", 1)

        assert outcome.project_id == submitted_project.id

    @pytest.mark.asyncio
    async def test_manual_reconcile_by_teacher(self, db_session, submitted_project, placed_student, teacher):
        # Simulate a join that was lost earlier
        await db_session.execute(
            update(CapstoneProject)
            .where(CapstoneProject.id == submitted_project.id)
            .values(student_ids=[])
        )
        await db_session.commit()

        outcome = await StudentService(db_session).reconcile(teacher, placed_student.id)

        assert outcome.status == JOINED
