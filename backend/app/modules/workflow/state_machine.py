"""
Workflow State Machines

One transition table per entity and a single enforcement point per table:

    Project:       (new) -> Pending Teacher Approval -> Pending Adviser Approval -> Approved
                                  |                          |
                                  +-------> Rejected <-------+

    Consultation:  (new) -> Pending Approval -> Scheduled -> Completed
                   (new) ------------------------^    |
                            Pending Approval / Scheduled -> Cancelled

    Student:       (no group) -> Pending Approval -> Active

    Review:        (none) / Pending / Rejected --respond--> Pending
                   Pending --approve--> Approved,  Pending --reject--> Rejected

Every function here is pure: it takes the current state, the action and the
actor's role, and returns the next state or raises. Ownership checks (is this
the project's adviser?) and field validation are done by the services.
"""

from typing import Dict, FrozenSet, List, Optional, Tuple
from enum import Enum
from dataclasses import dataclass

from app.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    ResponseLockedError,
    ReviewNotPendingError,
)
from app.models.user import UserRole, StudentStatus
from app.models.project import ProjectStatus
from app.models.consultation import ConsultationStatus, StudentUpdateStatus


class StudentAction(str, Enum):
    SET_GROUP = "set_group"
    APPROVE = "approve"


class ProjectAction(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


class ConsultationAction(str, Enum):
    REQUEST = "request"
    SCHEDULE_DIRECT = "schedule_direct"
    SCHEDULE = "schedule"
    DECLINE = "decline"
    CANCEL = "cancel"
    CLOSE = "close"


class ReviewAction(str, Enum):
    RESPOND = "respond"
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class Edge:
    """Target state and the roles allowed to take the edge"""
    to_state: Enum
    roles: FrozenSet[UserRole]


def _edge(to_state: Enum, *roles: UserRole) -> Edge:
    return Edge(to_state=to_state, roles=frozenset(roles))


STUDENT_TRANSITIONS: Dict[Tuple[Optional[StudentStatus], StudentAction], Edge] = {
    (None, StudentAction.SET_GROUP): _edge(StudentStatus.pending_approval, UserRole.STUDENT),
    (StudentStatus.pending_approval, StudentAction.APPROVE): _edge(StudentStatus.active, UserRole.TEACHER),
}

PROJECT_TRANSITIONS: Dict[Tuple[Optional[ProjectStatus], ProjectAction], Edge] = {
    (None, ProjectAction.SUBMIT): _edge(ProjectStatus.pending_teacher_approval, UserRole.STUDENT),
    (ProjectStatus.pending_teacher_approval, ProjectAction.APPROVE): _edge(ProjectStatus.pending_adviser_approval, UserRole.TEACHER),
    (ProjectStatus.pending_teacher_approval, ProjectAction.REJECT): _edge(ProjectStatus.rejected, UserRole.TEACHER),
    (ProjectStatus.pending_adviser_approval, ProjectAction.APPROVE): _edge(ProjectStatus.approved, UserRole.ADVISER),
    (ProjectStatus.pending_adviser_approval, ProjectAction.REJECT): _edge(ProjectStatus.rejected, UserRole.ADVISER),
}

CONSULTATION_TRANSITIONS: Dict[Tuple[Optional[ConsultationStatus], ConsultationAction], Edge] = {
    (None, ConsultationAction.REQUEST): _edge(ConsultationStatus.pending_approval, UserRole.STUDENT),
    (None, ConsultationAction.SCHEDULE_DIRECT): _edge(ConsultationStatus.scheduled, UserRole.ADVISER),
    (ConsultationStatus.pending_approval, ConsultationAction.SCHEDULE): _edge(ConsultationStatus.scheduled, UserRole.ADVISER),
    (ConsultationStatus.pending_approval, ConsultationAction.DECLINE): _edge(ConsultationStatus.cancelled, UserRole.ADVISER),
    (ConsultationStatus.scheduled, ConsultationAction.CANCEL): _edge(ConsultationStatus.cancelled, UserRole.ADVISER, UserRole.TEACHER),
    (ConsultationStatus.scheduled, ConsultationAction.CLOSE): _edge(ConsultationStatus.completed, UserRole.ADVISER),
}

REVIEW_TRANSITIONS: Dict[Tuple[Optional[StudentUpdateStatus], ReviewAction], Edge] = {
    (None, ReviewAction.RESPOND): _edge(StudentUpdateStatus.pending, UserRole.STUDENT),
    (StudentUpdateStatus.pending, ReviewAction.RESPOND): _edge(StudentUpdateStatus.pending, UserRole.STUDENT),
    (StudentUpdateStatus.rejected, ReviewAction.RESPOND): _edge(StudentUpdateStatus.pending, UserRole.STUDENT),
    (StudentUpdateStatus.pending, ReviewAction.APPROVE): _edge(StudentUpdateStatus.approved, UserRole.ADVISER),
    (StudentUpdateStatus.pending, ReviewAction.REJECT): _edge(StudentUpdateStatus.rejected, UserRole.ADVISER),
}


def _state_label(state: Optional[Enum]) -> str:
    return state.value if state is not None else "(new)"


def _apply(table: Dict, entity: str, current: Optional[Enum], action: Enum, actor_role: UserRole) -> Enum:
    edge = table.get((current, action))
    if edge is None:
        raise InvalidTransitionError(entity, _state_label(current), action.value)
    if actor_role not in edge.roles:
        raise AuthorizationError(
            f"A {actor_role.value} cannot {action.value.replace('_', ' ')} a {entity} in state '{_state_label(current)}'",
            details={"entity": entity, "action": action.value, "role": actor_role.value}
        )
    return edge.to_state


def _available(table: Dict, current: Optional[Enum], actor_role: UserRole) -> List[str]:
    return [
        action.value
        for (state, action), edge in table.items()
        if state == current and actor_role in edge.roles
    ]


def student_transition(current: Optional[StudentStatus], action: StudentAction,
                       actor_role: UserRole) -> StudentStatus:
    """Next student registration status"""
    return _apply(STUDENT_TRANSITIONS, "student", current, action, actor_role)


def project_transition(current: Optional[ProjectStatus], action: ProjectAction,
                       actor_role: UserRole) -> ProjectStatus:
    """Next project status, or InvalidTransitionError / AuthorizationError"""
    return _apply(PROJECT_TRANSITIONS, "project", current, action, actor_role)


def consultation_transition(current: Optional[ConsultationStatus], action: ConsultationAction,
                            actor_role: UserRole) -> ConsultationStatus:
    """Next consultation status, or InvalidTransitionError / AuthorizationError"""
    return _apply(CONSULTATION_TRANSITIONS, "consultation", current, action, actor_role)


def review_transition(current: Optional[StudentUpdateStatus], action: ReviewAction,
                      actor_role: UserRole, point_id: str = "") -> StudentUpdateStatus:
    """
    Next review state of a discussion point.

    A student may (re)submit a response at any time until the adviser has
    approved it; the adviser may only rule on a pending response.
    """
    if (current, action) not in REVIEW_TRANSITIONS:
        if action == ReviewAction.RESPOND:
            raise ResponseLockedError(point_id)
        raise ReviewNotPendingError(point_id, current.value if current else None)
    return _apply(REVIEW_TRANSITIONS, "discussion point", current, action, actor_role)


def project_actions(current: Optional[ProjectStatus], actor_role: UserRole) -> List[str]:
    """Actions the role may take on a project in this state"""
    return _available(PROJECT_TRANSITIONS, current, actor_role)


def consultation_actions(current: Optional[ConsultationStatus], actor_role: UserRole) -> List[str]:
    """Actions the role may take on a consultation in this state"""
    return _available(CONSULTATION_TRANSITIONS, current, actor_role)


__all__ = [
    "StudentAction",
    "STUDENT_TRANSITIONS",
    "student_transition",
    "ProjectAction",
    "ConsultationAction",
    "ReviewAction",
    "Edge",
    "PROJECT_TRANSITIONS",
    "CONSULTATION_TRANSITIONS",
    "REVIEW_TRANSITIONS",
    "project_transition",
    "consultation_transition",
    "review_transition",
    "project_actions",
    "consultation_actions",
]
