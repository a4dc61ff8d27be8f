from app.services.document_store import DocumentStore
from app.services.auth_service import AuthService
from app.services.subject_service import SubjectService
from app.services.membership_service import MembershipReconciler, MembershipOutcome
from app.services.student_service import StudentService
from app.services.project_service import ProjectService

# Consultation workflow
from app.services.consultation_service import ConsultationService
from app.services.attendance_service import AttendanceService
from app.services.discussion_service import DiscussionService
from app.services.talking_points_service import TalkingPointsService

__all__ = [
    # Core services
    "DocumentStore",
    "AuthService",
    "SubjectService",
    "MembershipReconciler",
    "MembershipOutcome",
    "StudentService",
    "ProjectService",
    # Consultation workflow
    "ConsultationService",
    "AttendanceService",
    "DiscussionService",
    "TalkingPointsService",
]
