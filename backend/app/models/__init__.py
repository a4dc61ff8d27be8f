# Re-export all models for convenient imports
from app.models.user import UserAccount, UserRole, Adviser, Teacher, Student, StudentStatus
from app.models.subject import Subject
from app.models.project import CapstoneProject, ProjectStatus
from app.models.consultation import (
    Consultation,
    ConsultationStatus,
    PointCategory,
    PointTaskStatus,
    StudentUpdateStatus,
    OPEN_CONSULTATION_STATUSES,
    CLOSED_CONSULTATION_STATUSES,
)

__all__ = [
    # Identity
    "UserAccount",
    "UserRole",
    "Adviser",
    "Teacher",
    "Student",
    "StudentStatus",
    # Subjects
    "Subject",
    # Projects
    "CapstoneProject",
    "ProjectStatus",
    # Consultations
    "Consultation",
    "ConsultationStatus",
    "PointCategory",
    "PointTaskStatus",
    "StudentUpdateStatus",
    "OPEN_CONSULTATION_STATUSES",
    "CLOSED_CONSULTATION_STATUSES",
]
