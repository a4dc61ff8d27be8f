# Pydantic schemas
from app.schemas.auth import (
    StudentRegister,
    StaffRegister,
    UserLogin,
    PrincipalResponse,
    Token,
    AccountResponse,
)
from app.schemas.subject import SubjectCreate, SubjectUpdate, SubjectResponse
from app.schemas.student import (
    GroupSelection,
    StudentResponse,
    MembershipOutcomeResponse,
    StudentWithMembership,
)
from app.schemas.project import ProjectSubmit, ProjectReject, ProjectResponse, AdviserResponse
from app.schemas.consultation import (
    ConsultationRequestCreate,
    ScheduleUpdate,
    ConsultationDirectCreate,
    NotesUpdate,
    AttendanceToggle,
    CheckIn,
    DiscussionPointCreate,
    DiscussionPointUpdate,
    PointResponseSubmit,
    PointStatusUpdate,
    PointReview,
    DiscussionPointOut,
    AttendeeOut,
    ConsultationResponse,
    AttendanceCodeResponse,
    CheckInResponse,
    TalkingPointsResponse,
    ReportResponse,
)

__all__ = [
    # Auth
    "StudentRegister",
    "StaffRegister",
    "UserLogin",
    "PrincipalResponse",
    "Token",
    "AccountResponse",
    # Subjects and students
    "SubjectCreate",
    "SubjectUpdate",
    "SubjectResponse",
    "GroupSelection",
    "StudentResponse",
    "MembershipOutcomeResponse",
    "StudentWithMembership",
    # Projects
    "ProjectSubmit",
    "ProjectReject",
    "ProjectResponse",
    "AdviserResponse",
    # Consultations
    "ConsultationRequestCreate",
    "ScheduleUpdate",
    "ConsultationDirectCreate",
    "NotesUpdate",
    "AttendanceToggle",
    "CheckIn",
    "DiscussionPointCreate",
    "DiscussionPointUpdate",
    "PointResponseSubmit",
    "PointStatusUpdate",
    "PointReview",
    "DiscussionPointOut",
    "AttendeeOut",
    "ConsultationResponse",
    "AttendanceCodeResponse",
    "CheckInResponse",
    "TalkingPointsResponse",
    "ReportResponse",
]
