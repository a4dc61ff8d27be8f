"""
Workflow Module - transition tables and post-commit hooks

Usage:
    from app.modules.workflow import project_transition, ProjectAction

    new_status = project_transition(project.status, ProjectAction.APPROVE, principal.role)
"""

from app.modules.workflow.state_machine import (
    StudentAction,
    student_transition,
    ProjectAction,
    ConsultationAction,
    ReviewAction,
    project_transition,
    consultation_transition,
    review_transition,
    project_actions,
    consultation_actions,
)
from app.modules.workflow.events import (
    WorkflowEventType,
    WorkflowEvent,
    HookResult,
    PostCommitHooks,
    workflow_events,
)

__all__ = [
    "StudentAction",
    "student_transition",
    "ProjectAction",
    "ConsultationAction",
    "ReviewAction",
    "project_transition",
    "consultation_transition",
    "review_transition",
    "project_actions",
    "consultation_actions",
    "WorkflowEventType",
    "WorkflowEvent",
    "HookResult",
    "PostCommitHooks",
    "workflow_events",
]
