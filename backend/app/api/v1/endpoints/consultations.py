"""
Consultation endpoints

Lifecycle, attendance, discussion points, talking points and the completed
session report. Role and ownership checks happen in the services; the
dependencies here only make sure the caller is authenticated (or holds the
one role an endpoint is meant for).
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.modules.auth.dependencies import get_current_principal, require_adviser, require_student
from app.modules.auth.role_resolver import Principal
from app.schemas.consultation import (
    AttendanceCodeResponse,
    AttendanceToggle,
    CheckIn,
    CheckInResponse,
    ConsultationDirectCreate,
    ConsultationRequestCreate,
    ConsultationResponse,
    DiscussionPointCreate,
    DiscussionPointOut,
    DiscussionPointUpdate,
    NotesUpdate,
    PointResponseSubmit,
    PointReview,
    PointStatusUpdate,
    ReportResponse,
    ScheduleUpdate,
    TalkingPointsResponse,
)
from app.services.attendance_service import AttendanceService
from app.services.consultation_service import ConsultationService
from app.services.discussion_service import DiscussionService
from app.services.talking_points_service import TalkingPointsService


router = APIRouter()


# ==========================================
# Lifecycle
# ==========================================

@router.post("/requests", response_model=ConsultationResponse, status_code=status.HTTP_201_CREATED)
async def request_consultation(
    data: ConsultationRequestCreate,
    student: Principal = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Student asks for a consultation; it starts as Pending Approval"""
    consultation = await ConsultationService(db).request(student, data.project_id, data.agenda)
    return ConsultationResponse.for_principal(consultation, student)


@router.post("", response_model=ConsultationResponse, status_code=status.HTTP_201_CREATED)
async def schedule_consultation_directly(
    data: ConsultationDirectCreate,
    adviser: Principal = Depends(require_adviser),
    db: AsyncSession = Depends(get_db)
):
    consultation = await ConsultationService(db).schedule_direct(
        adviser, data.project_id, data.date, data.start_time, data.end_time, data.venue, data.agenda
    )
    return ConsultationResponse.for_principal(consultation, adviser)


@router.get("", response_model=List[ConsultationResponse])
async def list_consultations(
    project_id: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    rows = await ConsultationService(db).list_consultations(principal, project_id)
    return [ConsultationResponse.for_principal(c, principal) for c in rows]


@router.get("/{consultation_id}", response_model=ConsultationResponse)
async def get_consultation(
    consultation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    consultation = await ConsultationService(db).get_consultation(principal, consultation_id)
    return ConsultationResponse.for_principal(consultation, principal)


@router.post("/{consultation_id}/schedule", response_model=ConsultationResponse)
async def schedule_consultation(
    consultation_id: str,
    data: ScheduleUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    consultation = await ConsultationService(db).schedule(
        principal, consultation_id, data.date, data.start_time, data.end_time, data.venue
    )
    return ConsultationResponse.for_principal(consultation, principal)


@router.post("/{consultation_id}/cancel", response_model=ConsultationResponse)
async def cancel_consultation(
    consultation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Decline a pending request or cancel a scheduled session"""
    consultation = await ConsultationService(db).cancel(principal, consultation_id)
    return ConsultationResponse.for_principal(consultation, principal)


@router.post("/{consultation_id}/close", response_model=ConsultationResponse)
async def close_consultation(
    consultation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    consultation = await ConsultationService(db).close(principal, consultation_id)
    return ConsultationResponse.for_principal(consultation, principal)


@router.put("/{consultation_id}/notes", response_model=ConsultationResponse)
async def update_notes(
    consultation_id: str,
    data: NotesUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    consultation = await ConsultationService(db).update_notes(principal, consultation_id, data.notes)
    return ConsultationResponse.for_principal(consultation, principal)


@router.get("/{consultation_id}/report", response_model=ReportResponse)
async def get_report(
    consultation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await ConsultationService(db).report(principal, consultation_id)


# ==========================================
# Attendance
# ==========================================

@router.post("/{consultation_id}/attendance/toggle", response_model=ConsultationResponse)
async def toggle_attendance(
    consultation_id: str,
    data: AttendanceToggle,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    consultation = await AttendanceService(db).toggle(principal, consultation_id, data.is_open)
    return ConsultationResponse.for_principal(consultation, principal)


@router.get("/{consultation_id}/attendance/code", response_model=AttendanceCodeResponse)
async def get_attendance_code(
    consultation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """The code, and the payload to render as a QR code (the same string)"""
    code = await AttendanceService(db).get_code(principal, consultation_id)
    return AttendanceCodeResponse(consultation_id=consultation_id, attendance_code=code, qr_payload=code)


@router.post("/{consultation_id}/attendance/check-in", response_model=CheckInResponse)
async def check_in(
    consultation_id: str,
    data: CheckIn,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    consultation, added = await AttendanceService(db).check_in(principal, consultation_id, data.code)
    return CheckInResponse(consultation_id=consultation.id, added=added, attendees=consultation.attendees)


# ==========================================
# Discussion points
# ==========================================

@router.post("/{consultation_id}/points", response_model=DiscussionPointOut, status_code=status.HTTP_201_CREATED)
async def add_point(
    consultation_id: str,
    data: DiscussionPointCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await DiscussionService(db).add_point(principal, consultation_id, data.adviser_comment, data.category)


@router.patch("/{consultation_id}/points/{point_id}", response_model=DiscussionPointOut)
async def edit_point(
    consultation_id: str,
    point_id: str,
    data: DiscussionPointUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await DiscussionService(db).edit_point(
        principal, consultation_id, point_id, data.adviser_comment, data.category
    )


@router.post("/{consultation_id}/points/{point_id}/response", response_model=DiscussionPointOut)
async def respond_to_point(
    consultation_id: str,
    point_id: str,
    data: PointResponseSubmit,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await DiscussionService(db).respond(principal, consultation_id, point_id, data.student_response)


@router.put("/{consultation_id}/points/{point_id}/status", response_model=DiscussionPointOut)
async def set_point_status(
    consultation_id: str,
    point_id: str,
    data: PointStatusUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await DiscussionService(db).set_task_status(principal, consultation_id, point_id, data.status)


@router.post("/{consultation_id}/points/{point_id}/review", response_model=DiscussionPointOut)
async def review_point(
    consultation_id: str,
    point_id: str,
    data: PointReview,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await DiscussionService(db).review(
        principal, consultation_id, point_id, data.verdict == "approve", data.adviser_feedback
    )


# ==========================================
# Talking points
# ==========================================

@router.post("/{consultation_id}/talking-points", response_model=TalkingPointsResponse)
async def generate_talking_points(
    consultation_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    return await TalkingPointsService(db).generate(principal, consultation_id)
