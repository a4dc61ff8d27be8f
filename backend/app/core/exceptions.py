"""
Custom Exceptions for Capstone Consult
======================================

Every workflow failure is one of four families, and clients rely on telling
them apart:

1. ValidationError      - malformed input, reported field by field (422)
2. GuardViolationError  - the action is legal for you but not in the current state (409)
3. AuthorizationError   - the action is not yours to take (403)
4. Collaborator errors  - store or AI service failed (503 / 502 / 504)

Usage:
    from app.core.exceptions import ProjectNotFoundError, PendingReviewsError

    if not project:
        raise ProjectNotFoundError(project_id)

    if pending_ids:
        raise PendingReviewsError(pending_ids)
"""

from typing import Optional, Any, Dict, List


class CapstoneError(Exception):
    """Base exception for all Capstone Consult errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(CapstoneError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid or expired"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(CapstoneError):
    """Actor's role or ownership does not match the target entity"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="NOT_AUTHORIZED", details=details)


class NoRoleError(AuthorizationError):
    """Principal exists but holds none of the portal roles"""

    def __init__(self, principal_id: str):
        super().__init__("No portal role is assigned to this account")
        self.code = "NO_ROLE"
        self.details = {"principal_id": principal_id}


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(CapstoneError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper().replace(' ', '_')}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class ProjectNotFoundError(ResourceNotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Project", project_id)


class ConsultationNotFoundError(ResourceNotFoundError):
    def __init__(self, consultation_id: str):
        super().__init__("Consultation", consultation_id)


class SubjectNotFoundError(ResourceNotFoundError):
    def __init__(self, subject_id: str):
        super().__init__("Subject", subject_id)


class StudentNotFoundError(ResourceNotFoundError):
    def __init__(self, student_id: str):
        super().__init__("Student", student_id)


class AdviserNotFoundError(ResourceNotFoundError):
    def __init__(self, adviser_id: str):
        super().__init__("Adviser", adviser_id)


class DiscussionPointNotFoundError(ResourceNotFoundError):
    def __init__(self, point_id: str):
        super().__init__("Discussion point", point_id)


# ============================================
# Validation Errors (422-type)
# ============================================

class ValidationError(CapstoneError):
    """Input validation failed; details.fields maps field name to message"""

    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None,
                 fields: Optional[Dict[str, str]] = None):
        collected = dict(fields or {})
        if field:
            collected.setdefault(field, message)
        super().__init__(message, code="VALIDATION_ERROR", details={"fields": collected})

    @property
    def fields(self) -> Dict[str, str]:
        return self.details.get("fields", {})


class EmailAlreadyRegisteredError(ValidationError):
    def __init__(self, email: str):
        super().__init__("Email already registered", field="email")
        self.code = "EMAIL_TAKEN"


# ============================================
# Guard / Precondition Errors (409-type)
# ============================================

class GuardViolationError(CapstoneError):
    """The requested transition cannot happen in the entity's current state"""

    status_code = 409

    def __init__(self, message: str, code: str = "GUARD_VIOLATION",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class InvalidTransitionError(GuardViolationError):
    """No edge in the transition table for (state, action)"""

    def __init__(self, entity: str, current: str, action: str):
        super().__init__(
            f"Cannot {action.replace('_', ' ')} a {entity} that is '{current}'",
            code="INVALID_TRANSITION",
            details={"entity": entity, "current_state": current, "action": action}
        )


class RegistrationIncompleteError(GuardViolationError):
    def __init__(self, missing: List[str]):
        super().__init__(
            "Complete your subject, block and group details first",
            code="REGISTRATION_INCOMPLETE",
            details={"missing": missing}
        )


class GroupAlreadySetError(GuardViolationError):
    def __init__(self):
        super().__init__(
            "Group details have already been submitted",
            code="GROUP_ALREADY_SET"
        )


class DuplicateActiveProjectError(GuardViolationError):
    def __init__(self, project_id: str):
        super().__init__(
            "An active project already exists for this subject, block and group",
            code="DUPLICATE_ACTIVE_PROJECT",
            details={"project_id": project_id}
        )


class ProjectNotApprovedError(GuardViolationError):
    def __init__(self, project_id: str, status: str):
        super().__init__(
            "Consultations can only be created for approved projects",
            code="PROJECT_NOT_APPROVED",
            details={"project_id": project_id, "status": status}
        )


class OpenConsultationExistsError(GuardViolationError):
    def __init__(self, consultation_id: str):
        super().__init__(
            "An open consultation already exists for this project",
            code="OPEN_CONSULTATION_EXISTS",
            details={"consultation_id": consultation_id}
        )


class PendingReviewsError(GuardViolationError):
    def __init__(self, point_ids: List[str]):
        super().__init__(
            "Review every pending student update before closing the consultation",
            code="PENDING_REVIEWS",
            details={"pending_point_ids": point_ids}
        )


class ConsultationClosedError(GuardViolationError):
    def __init__(self, consultation_id: str, status: str):
        super().__init__(
            f"Consultation is {status.lower()} and can no longer be changed",
            code="CONSULTATION_CLOSED",
            details={"consultation_id": consultation_id, "status": status}
        )


class AttendanceNotOpenError(GuardViolationError):
    def __init__(self):
        super().__init__("Attendance is not open", code="ATTENDANCE_NOT_OPEN")


class InvalidAttendanceCodeError(GuardViolationError):
    def __init__(self):
        super().__init__("The attendance code is incorrect", code="INVALID_ATTENDANCE_CODE")


class ReviewNotPendingError(GuardViolationError):
    def __init__(self, point_id: str, review_status: Optional[str]):
        super().__init__(
            "Only a pending student update can be reviewed",
            code="REVIEW_NOT_PENDING",
            details={"point_id": point_id, "student_update_status": review_status}
        )


class ResponseLockedError(GuardViolationError):
    def __init__(self, point_id: str):
        super().__init__(
            "This discussion point has already been approved",
            code="RESPONSE_LOCKED",
            details={"point_id": point_id}
        )


class ReportNotAvailableError(GuardViolationError):
    def __init__(self, consultation_id: str, status: str):
        super().__init__(
            "The report is available once the consultation is completed",
            code="REPORT_NOT_AVAILABLE",
            details={"consultation_id": consultation_id, "status": status}
        )


class SubjectInUseError(GuardViolationError):
    def __init__(self, subject_id: str, project_count: int):
        super().__init__(
            "Subject still has active projects",
            code="SUBJECT_IN_USE",
            details={"subject_id": subject_id, "project_count": project_count}
        )


# ============================================
# Store Errors
# ============================================

class StoreError(CapstoneError):
    """Document store operation failed"""

    status_code = 503

    def __init__(self, message: str, code: str = "STORE_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class TransientStoreError(StoreError):
    """Store unreachable or timed out; safe to retry"""

    def __init__(self, message: str = "Data store is temporarily unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE")


class StorePermissionError(StoreError):
    """Store refused the operation"""

    status_code = 403

    def __init__(self, message: str = "Data store refused the operation"):
        super().__init__(message, code="STORE_PERMISSION_DENIED")


class ConcurrentModificationError(StoreError):
    """Optimistic update kept losing the race"""

    status_code = 409

    def __init__(self, entity: str, entity_id: str, attempts: int):
        super().__init__(
            f"{entity} was modified concurrently, please retry",
            code="CONCURRENT_MODIFICATION",
            details={"entity": entity, "entity_id": entity_id, "attempts": attempts}
        )


class RoleIndeterminateError(StoreError):
    """Role lookup failed; distinct from having no role"""

    def __init__(self, principal_id: str, reason: str = ""):
        super().__init__(
            "Could not determine the account role, please retry",
            code="ROLE_INDETERMINATE",
            details={"principal_id": principal_id, "reason": reason}
        )


# ============================================
# AI/Claude Errors
# ============================================

class AIServiceError(CapstoneError):
    """Talking-points generator failed"""

    status_code = 502

    def __init__(self, message: str):
        super().__init__(message, code="AI_SERVICE_ERROR")


class AINotConfiguredError(AIServiceError):
    status_code = 503

    def __init__(self):
        super().__init__("Talking points are not configured on this server")
        self.code = "AI_NOT_CONFIGURED"


class AITimeoutError(AIServiceError):
    status_code = 504

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Talking points generation timed out after {timeout_seconds:g}s")
        self.code = "AI_TIMEOUT"
        self.details = {"timeout_seconds": timeout_seconds}


class AIResponseParseError(AIServiceError):
    def __init__(self, message: str = "Failed to parse talking points from the AI response"):
        super().__init__(message)
        self.code = "AI_PARSE_ERROR"


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: CapstoneError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
