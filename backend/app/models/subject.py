from sqlalchemy import Column, String, DateTime, ForeignKey, Integer

from app.core.database import Base
from app.core.types import GUID, JSONList, generate_uuid, utcnow


class Subject(Base):
    """A teacher-owned course offering; students pick one of its blocks"""
    __tablename__ = "subjects"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    year_level = Column(String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)
    semester = Column(String(50), nullable=False)
    blocks = Column(JSONList, nullable=False, default=list)

    teacher_id = Column(GUID, ForeignKey("teachers.id"), nullable=False, index=True)

    version = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Subject {self.name} {self.academic_year}>"
