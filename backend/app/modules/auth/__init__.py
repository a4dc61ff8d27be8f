# Authentication module

from app.modules.auth.dependencies import (
    get_current_principal,
    require_role,
    require_student,
    require_teacher,
    require_adviser,
)
from app.modules.auth.role_resolver import Principal, resolve_role

__all__ = [
    "get_current_principal",
    "require_role",
    "require_student",
    "require_teacher",
    "require_adviser",
    "Principal",
    "resolve_role",
]
