from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime

from app.models.project import CapstoneProject, ProjectStatus
from app.modules.auth.role_resolver import Principal
from app.modules.workflow.state_machine import project_actions


class ProjectSubmit(BaseModel):
    title: str = Field(..., max_length=500)
    details: str
    adviser_id: str


class ProjectReject(BaseModel):
    rejection_reason: Optional[str] = None


class ProjectResponse(BaseModel):
    id: str
    title: str
    details: str
    student_ids: List[str]
    subject_id: str
    teacher_id: str
    adviser_id: str
    block: str
    group_number: int
    status: ProjectStatus
    rejection_reason: Optional[str] = None
    submitted_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    allowed_actions: List[str] = []

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def for_principal(cls, project: CapstoneProject, principal: Principal) -> "ProjectResponse":
        """Response with the actions the caller could take next"""
        response = cls.model_validate(project)
        response.allowed_actions = project_actions(project.status, principal.role)
        return response


class AdviserResponse(BaseModel):
    id: str
    name: str
    email: str
    department: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
