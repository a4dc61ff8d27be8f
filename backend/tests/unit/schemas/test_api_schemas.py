"""
Unit Tests for request/response schemas
"""
import pytest
from datetime import datetime
from pydantic import ValidationError

from app.models.consultation import Consultation, ConsultationStatus, PointCategory
from app.models.project import CapstoneProject, ProjectStatus
from app.models.user import UserRole
from app.modules.auth.role_resolver import Principal
from app.schemas.auth import StaffRegister, StudentRegister
from app.schemas.consultation import ConsultationResponse, DiscussionPointCreate, PointReview
from app.schemas.project import ProjectResponse
from app.schemas.student import GroupSelection


def _principal(role: UserRole) -> Principal:
    return Principal(id=f"{role.value}-1", role=role, name=role.value.title(), email=f"{role.value}@x.io")


def _consultation(**overrides) -> Consultation:
    fields = dict(
        id="c-1",
        project_id="p-1",
        capstone_title="Smart Attendance",
        block_group_number="A, Group 1",
        project_details="Details",
        semester="1st Semester",
        academic_year="2025-2026",
        status=ConsultationStatus.scheduled,
        student_ids=["student-1"],
        advisor_id="adviser-1",
        agenda="Agenda",
        attendance_code="123456",
        is_attendance_open=False,
        attendees=[],
        discussion_points=[],
        created_at=datetime(2026, 1, 5, 9, 0),
    )
    fields.update(overrides)
    return Consultation(**fields)


class TestRegistrationSchemas:

    def test_student_register_strips_name(self):
        data = StudentRegister(email="s@school.edu", password="longenough", full_name="  Sam  ")
        assert data.full_name == "Sam"

    def test_short_password_rejected(self):
        with pytest.raises(ValidationError):
            StudentRegister(email="s@school.edu", password="short", full_name="Sam")

    def test_staff_role_limited(self):
        with pytest.raises(ValidationError):
            StaffRegister(email="t@school.edu", password="longenough", full_name="T", role="student")


class TestWorkflowInputs:

    def test_group_number_must_be_positive(self):
        with pytest.raises(ValidationError):
            GroupSelection(subject_id="s", block="A", group_number=0)

    def test_point_defaults_to_documentation(self):
        assert DiscussionPointCreate().category == PointCategory.documentation

    def test_review_verdict_values(self):
        assert PointReview(verdict="approve").verdict == "approve"
        with pytest.raises(ValidationError):
            PointReview(verdict="maybe")


class TestResponses:

    def test_project_response_lists_allowed_actions(self):
        project = CapstoneProject(
            id="p-1", title="Title", details="Details", student_ids=["student-1"], subject_id="s-1",
            teacher_id="teacher-1", adviser_id="adviser-1", block="A", group_number=1,
            status=ProjectStatus.pending_teacher_approval, created_at=datetime(2026, 1, 5),
        )
        response = ProjectResponse.for_principal(project, _principal(UserRole.TEACHER))

        assert response.allowed_actions == ["approve", "reject"]
        assert response.model_dump(mode="json")["status"] == "Pending Teacher Approval"

    def test_students_never_see_attendance_code(self):
        response = ConsultationResponse.for_principal(_consultation(), _principal(UserRole.STUDENT))
        assert response.attendance_code is None

    def test_adviser_sees_attendance_code(self):
        response = ConsultationResponse.for_principal(_consultation(), _principal(UserRole.ADVISER))
        assert response.attendance_code == "123456"
        assert response.allowed_actions == ["cancel", "close"]
