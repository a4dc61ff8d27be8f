"""
Consultation model

A consultation belongs to one approved capstone project and embeds its
attendees and discussion points as JSON lists. The project/subject fields
(capstone_title, block_group_number, project_details, semester,
academic_year) are a snapshot taken at creation and are never refreshed when
the project changes later.
"""
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Integer, Enum as SQLEnum
import enum

from app.core.database import Base
from app.core.types import GUID, JSONList, generate_uuid, utcnow


class ConsultationStatus(str, enum.Enum):
    """Consultation lifecycle state"""
    pending_approval = "Pending Approval"
    scheduled = "Scheduled"
    completed = "Completed"
    cancelled = "Cancelled"


OPEN_CONSULTATION_STATUSES = (ConsultationStatus.pending_approval, ConsultationStatus.scheduled)
CLOSED_CONSULTATION_STATUSES = (ConsultationStatus.completed, ConsultationStatus.cancelled)


class PointCategory(str, enum.Enum):
    documentation = "Documentation"
    prototype = "Prototype"


class PointTaskStatus(str, enum.Enum):
    """Student-managed task state of a discussion point"""
    to_do = "To Do"
    on_going = "On-going"
    done = "Done"


class StudentUpdateStatus(str, enum.Enum):
    """Adviser review state of a student's response"""
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"


class Consultation(Base):
    """Consultation session for a capstone project"""
    __tablename__ = "consultations"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("capstone_projects.id"), nullable=False, index=True)

    # Snapshot of project identity
    capstone_title = Column(String(500), nullable=False)
    block_group_number = Column(String(100), nullable=False)
    project_details = Column(Text, nullable=False)
    semester = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)

    # Schedule (empty until scheduled)
    date = Column(String(10), nullable=True)  # ISO date
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    venue = Column(String(255), nullable=True)

    status = Column(
        SQLEnum(ConsultationStatus, values_callable=lambda obj: [e.value for e in obj]),
        nullable=False,
        index=True
    )
    student_ids = Column(JSONList, nullable=False, default=list)
    advisor_id = Column(GUID, ForeignKey("advisers.id"), nullable=False, index=True)
    agenda = Column(Text, nullable=False)
    notes = Column(Text, nullable=True)
    requested_by = Column(GUID, nullable=True)

    # Attendance
    attendance_code = Column(String(6), nullable=True)
    is_attendance_open = Column(Boolean, default=False, nullable=False)
    attendees = Column(JSONList, nullable=False, default=list)

    discussion_points = Column(JSONList, nullable=False, default=list)

    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    closed_at = Column(DateTime, nullable=True)

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_CONSULTATION_STATUSES

    def __repr__(self):
        return f"<Consultation {self.capstone_title} ({self.status})>"
