from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Callable, Optional
import uuid

from app.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError
from app.core.logging_config import set_user_id
from app.core.security import decode_token
from app.models.user import UserRole
from app.modules.auth.role_resolver import Principal

security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Build the principal from the bearer token; the role claim is trusted as issued"""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_token(credentials.credentials)

    principal_id = payload.get("sub")
    if not principal_id:
        raise InvalidTokenError("Invalid token payload")

    # Validate principal_id is a valid UUID format
    try:
        uuid.UUID(principal_id)
    except ValueError:
        raise InvalidTokenError("Invalid user ID format")

    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise InvalidTokenError("Invalid role claim")

    set_user_id(principal_id)
    return Principal(
        id=principal_id,
        role=role,
        name=payload.get("name", ""),
        email=payload.get("email", ""),
    )


def require_role(*roles: UserRole) -> Callable:
    """Dependency factory: the caller must hold one of the given roles"""
    allowed = set(roles)

    async def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise AuthorizationError(
                f"This action requires the {' or '.join(sorted(r.value for r in allowed))} role",
                details={"role": principal.role.value}
            )
        return principal

    return checker


require_student = require_role(UserRole.STUDENT)
require_teacher = require_role(UserRole.TEACHER)
require_adviser = require_role(UserRole.ADVISER)
