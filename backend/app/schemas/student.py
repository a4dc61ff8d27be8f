from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from app.models.user import StudentStatus


class GroupSelection(BaseModel):
    subject_id: str
    block: str = Field(..., min_length=1)
    group_number: int = Field(..., ge=1)


class StudentResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar_url: Optional[str] = None
    subject_id: Optional[str] = None
    block: Optional[str] = None
    group_number: Optional[int] = None
    status: Optional[StudentStatus] = None
    approved_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipOutcomeResponse(BaseModel):
    """Result of trying to add a student to their group's project"""
    status: str
    project_id: Optional[str] = None
    message: Optional[str] = None


class StudentWithMembership(BaseModel):
    student: StudentResponse
    membership: MembershipOutcomeResponse
