from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, Enum as SQLEnum
import enum

from app.core.database import Base
from app.core.types import GUID, JSONList, generate_uuid, utcnow


class ProjectStatus(str, enum.Enum):
    """Capstone project approval state"""
    pending_teacher_approval = "Pending Teacher Approval"
    pending_adviser_approval = "Pending Adviser Approval"
    approved = "Approved"
    rejected = "Rejected"


class CapstoneProject(Base):
    """
    Capstone project registered by a student group.

    At most one non-rejected project should exist per (subject, block,
    group_number). This is checked at submission and again by the membership
    reconciler, not enforced by a constraint: rejected rows are kept as history.
    """
    __tablename__ = "capstone_projects"

    id = Column(GUID, primary_key=True, default=generate_uuid)

    title = Column(String(500), nullable=False)
    details = Column(Text, nullable=False)

    student_ids = Column(JSONList, nullable=False, default=list)

    subject_id = Column(GUID, nullable=False, index=True)
    teacher_id = Column(GUID, ForeignKey("teachers.id"), nullable=False, index=True)
    adviser_id = Column(GUID, ForeignKey("advisers.id"), nullable=False, index=True)
    block = Column(String(50), nullable=False)
    group_number = Column(Integer, nullable=False)

    status = Column(
        SQLEnum(ProjectStatus, values_callable=lambda obj: [e.value for e in obj]),
        default=ProjectStatus.pending_teacher_approval,
        nullable=False,
        index=True
    )
    rejection_reason = Column(Text, nullable=True)

    submitted_by = Column(GUID, ForeignKey("students.id"), nullable=False)

    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<CapstoneProject {self.title} ({self.status})>"
