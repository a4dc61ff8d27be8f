"""
Unit Tests for the workflow transition tables
"""
import pytest

from app.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    ResponseLockedError,
    ReviewNotPendingError,
)
from app.models.consultation import ConsultationStatus, StudentUpdateStatus
from app.models.project import ProjectStatus
from app.models.user import StudentStatus, UserRole
from app.modules.workflow import (
    ConsultationAction,
    ProjectAction,
    ReviewAction,
    StudentAction,
    consultation_actions,
    consultation_transition,
    project_actions,
    project_transition,
    review_transition,
    student_transition,
)


class TestStudentTransitions:

    def test_set_group_makes_student_pending(self):
        assert student_transition(None, StudentAction.SET_GROUP, UserRole.STUDENT) == StudentStatus.pending_approval

    def test_teacher_approves_pending_student(self):
        result = student_transition(StudentStatus.pending_approval, StudentAction.APPROVE, UserRole.TEACHER)
        assert result == StudentStatus.active

    def test_group_cannot_be_set_twice(self):
        with pytest.raises(InvalidTransitionError):
            student_transition(StudentStatus.active, StudentAction.SET_GROUP, UserRole.STUDENT)

    def test_adviser_cannot_approve_student(self):
        with pytest.raises(AuthorizationError):
            student_transition(StudentStatus.pending_approval, StudentAction.APPROVE, UserRole.ADVISER)


class TestProjectTransitions:

    def test_two_gate_approval(self):
        status = project_transition(None, ProjectAction.SUBMIT, UserRole.STUDENT)
        assert status == ProjectStatus.pending_teacher_approval

        status = project_transition(status, ProjectAction.APPROVE, UserRole.TEACHER)
        assert status == ProjectStatus.pending_adviser_approval

        status = project_transition(status, ProjectAction.APPROVE, UserRole.ADVISER)
        assert status == ProjectStatus.approved

    @pytest.mark.parametrize("current,role", [
        (ProjectStatus.pending_teacher_approval, UserRole.TEACHER),
        (ProjectStatus.pending_adviser_approval, UserRole.ADVISER),
    ])
    def test_each_gate_can_reject(self, current, role):
        assert project_transition(current, ProjectAction.REJECT, role) == ProjectStatus.rejected

    def test_adviser_cannot_skip_teacher_gate(self):
        with pytest.raises(AuthorizationError):
            project_transition(ProjectStatus.pending_teacher_approval, ProjectAction.APPROVE, UserRole.ADVISER)

    def test_rejected_is_terminal(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            project_transition(ProjectStatus.rejected, ProjectAction.APPROVE, UserRole.TEACHER)
        assert exc_info.value.code == "INVALID_TRANSITION"
        assert exc_info.value.details["current_state"] == "Rejected"

    def test_approved_cannot_be_rejected(self):
        with pytest.raises(InvalidTransitionError):
            project_transition(ProjectStatus.approved, ProjectAction.REJECT, UserRole.ADVISER)

    def test_available_actions_per_role(self):
        assert project_actions(ProjectStatus.pending_teacher_approval, UserRole.TEACHER) == ["approve", "reject"]
        assert project_actions(ProjectStatus.pending_teacher_approval, UserRole.ADVISER) == []
        assert project_actions(ProjectStatus.approved, UserRole.ADVISER) == []


class TestConsultationTransitions:

    def test_student_request_is_pending(self):
        status = consultation_transition(None, ConsultationAction.REQUEST, UserRole.STUDENT)
        assert status == ConsultationStatus.pending_approval

    def test_adviser_direct_schedule(self):
        status = consultation_transition(None, ConsultationAction.SCHEDULE_DIRECT, UserRole.ADVISER)
        assert status == ConsultationStatus.scheduled

    def test_adviser_declines_request(self):
        status = consultation_transition(ConsultationStatus.pending_approval, ConsultationAction.DECLINE,
                                         UserRole.ADVISER)
        assert status == ConsultationStatus.cancelled

    def test_teacher_may_cancel_scheduled(self):
        status = consultation_transition(ConsultationStatus.scheduled, ConsultationAction.CANCEL, UserRole.TEACHER)
        assert status == ConsultationStatus.cancelled

    def test_teacher_cannot_close(self):
        with pytest.raises(AuthorizationError):
            consultation_transition(ConsultationStatus.scheduled, ConsultationAction.CLOSE, UserRole.TEACHER)

    def test_pending_request_cannot_be_closed(self):
        with pytest.raises(InvalidTransitionError):
            consultation_transition(ConsultationStatus.pending_approval, ConsultationAction.CLOSE, UserRole.ADVISER)

    @pytest.mark.parametrize("terminal", [ConsultationStatus.completed, ConsultationStatus.cancelled])
    def test_closed_states_have_no_exits(self, terminal):
        for action in ConsultationAction:
            with pytest.raises(InvalidTransitionError):
                consultation_transition(terminal, action, UserRole.ADVISER)

    def test_available_actions_for_scheduled(self):
        assert consultation_actions(ConsultationStatus.scheduled, UserRole.ADVISER) == ["cancel", "close"]
        assert consultation_actions(ConsultationStatus.scheduled, UserRole.TEACHER) == ["cancel"]
        assert consultation_actions(ConsultationStatus.scheduled, UserRole.STUDENT) == []


class TestReviewTransitions:

    def test_first_response_opens_review(self):
        assert review_transition(None, ReviewAction.RESPOND, UserRole.STUDENT) == StudentUpdateStatus.pending

    def test_response_after_rejection_reopens_review(self):
        state = review_transition(StudentUpdateStatus.rejected, ReviewAction.RESPOND, UserRole.STUDENT)
        assert state == StudentUpdateStatus.pending

    def test_approved_response_is_locked(self):
        with pytest.raises(ResponseLockedError):
            review_transition(StudentUpdateStatus.approved, ReviewAction.RESPOND, UserRole.STUDENT, "p1")

    @pytest.mark.parametrize("current", [None, StudentUpdateStatus.approved, StudentUpdateStatus.rejected])
    def test_only_pending_can_be_reviewed(self, current):
        with pytest.raises(ReviewNotPendingError):
            review_transition(current, ReviewAction.APPROVE, UserRole.ADVISER, "p1")

    def test_student_cannot_review(self):
        with pytest.raises(AuthorizationError):
            review_transition(StudentUpdateStatus.pending, ReviewAction.APPROVE, UserRole.STUDENT)

    def test_adviser_cannot_respond(self):
        with pytest.raises(AuthorizationError):
            review_transition(None, ReviewAction.RESPOND, UserRole.ADVISER)
