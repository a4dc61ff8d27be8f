from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text, Enum as SQLEnum
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class UserRole(str, enum.Enum):
    """Portal roles, in the order the resolver probes them"""
    ADVISER = "adviser"
    TEACHER = "teacher"
    STUDENT = "student"


class StudentStatus(str, enum.Enum):
    """Registration state of a student"""
    pending_approval = "Pending Approval"
    active = "Active"


class UserAccount(Base):
    """Login identity. Role membership lives in the role tables keyed by this id."""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    avatar_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<UserAccount {self.email}>"


class Adviser(Base):
    """Adviser role record"""
    __tablename__ = "advisers"

    id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    department = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Adviser {self.name}>"


class Teacher(Base):
    """Teacher role record"""
    __tablename__ = "teachers"

    id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    department = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Teacher {self.name}>"


class Student(Base):
    """
    Student role record.

    subject_id/block/group_number are set once when the student picks their
    group; status stays NULL until then.
    """
    __tablename__ = "students"

    id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    avatar_url = Column(Text, nullable=True)

    # Group placement
    subject_id = Column(GUID, nullable=True, index=True)
    block = Column(String(50), nullable=True)
    group_number = Column(Integer, nullable=True)

    status = Column(
        SQLEnum(StudentStatus, values_callable=lambda obj: [e.value for e in obj]),
        nullable=True,
        index=True
    )
    approved_at = Column(DateTime, nullable=True)

    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def has_group(self) -> bool:
        return bool(self.subject_id and self.block and self.group_number is not None)

    def __repr__(self):
        return f"<Student {self.name} ({self.status})>"
