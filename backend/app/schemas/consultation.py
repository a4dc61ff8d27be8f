from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import datetime

from app.models.consultation import Consultation, ConsultationStatus, PointCategory, PointTaskStatus
from app.modules.auth.role_resolver import Principal
from app.modules.workflow.state_machine import consultation_actions


# ==========================================
# Requests
# ==========================================

class ConsultationRequestCreate(BaseModel):
    """Student request; the adviser sets the schedule later"""
    project_id: str
    agenda: str


class ScheduleUpdate(BaseModel):
    date: str = Field(..., description="ISO date, YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")
    venue: str


class ConsultationDirectCreate(ScheduleUpdate):
    project_id: str
    agenda: Optional[str] = None


class NotesUpdate(BaseModel):
    notes: str = ""


class AttendanceToggle(BaseModel):
    is_open: Optional[bool] = None


class CheckIn(BaseModel):
    code: str


class DiscussionPointCreate(BaseModel):
    adviser_comment: str = ""
    category: PointCategory = PointCategory.documentation


class DiscussionPointUpdate(BaseModel):
    adviser_comment: Optional[str] = None
    category: Optional[PointCategory] = None


class PointResponseSubmit(BaseModel):
    student_response: str


class PointStatusUpdate(BaseModel):
    status: PointTaskStatus


class PointReview(BaseModel):
    verdict: Literal["approve", "reject"]
    adviser_feedback: Optional[str] = None


# ==========================================
# Responses
# ==========================================

class DiscussionPointOut(BaseModel):
    id: str
    adviser_comment: str = ""
    category: str
    status: str
    student_response: Optional[str] = None
    student_update_status: Optional[str] = None
    adviser_feedback: Optional[str] = None


class AttendeeOut(BaseModel):
    student_id: str
    name: str
    timestamp: str


class ConsultationResponse(BaseModel):
    id: str
    project_id: str
    capstone_title: str
    block_group_number: str
    project_details: str
    semester: str
    academic_year: str
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None
    status: ConsultationStatus
    student_ids: List[str]
    advisor_id: str
    agenda: str
    notes: Optional[str] = None
    requested_by: Optional[str] = None
    attendance_code: Optional[str] = None
    is_attendance_open: bool
    attendees: List[AttendeeOut] = []
    discussion_points: List[DiscussionPointOut] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    allowed_actions: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def for_principal(cls, consultation: Consultation, principal: Principal) -> "ConsultationResponse":
        """Students never see the attendance code"""
        response = cls.model_validate(consultation)
        if principal.is_student:
            response.attendance_code = None
        response.allowed_actions = consultation_actions(consultation.status, principal.role)
        return response


class AttendanceCodeResponse(BaseModel):
    consultation_id: str
    attendance_code: str
    qr_payload: str


class CheckInResponse(BaseModel):
    consultation_id: str
    added: bool
    attendees: List[AttendeeOut]


class TalkingPointsResponse(BaseModel):
    talking_points: List[str]


class ReportResponse(BaseModel):
    consultation_id: str
    project_id: str
    capstone_title: str
    block_group_number: str
    project_details: str
    semester: str
    academic_year: str
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue: Optional[str] = None
    agenda: str
    notes: Optional[str] = None
    attendees: List[AttendeeOut]
    discussion_points: List[DiscussionPointOut]
    closed_at: Optional[datetime] = None
