from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import UserRole
from app.modules.auth.dependencies import get_current_principal
from app.modules.auth.role_resolver import Principal
from app.schemas.auth import (
    AccountResponse,
    PrincipalResponse,
    StaffRegister,
    StudentRegister,
    Token,
    UserLogin,
)
from app.services.auth_service import AuthService


router = APIRouter()


def _principal_response(principal: Principal) -> PrincipalResponse:
    return PrincipalResponse(
        id=principal.id,
        role=principal.role.value,
        name=principal.name,
        email=principal.email,
    )


@router.post("/register", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_student(data: StudentRegister, db: AsyncSession = Depends(get_db)):
    """Register a student account"""
    account, _ = await AuthService(db).register_student(data.email, data.password, data.full_name)
    return AccountResponse(
        id=account.id,
        email=account.email,
        full_name=account.full_name,
        role=UserRole.STUDENT.value,
        created_at=account.created_at,
    )


@router.post("/register/staff", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
async def register_staff(data: StaffRegister, db: AsyncSession = Depends(get_db)):
    """Register a teacher or adviser account"""
    role = UserRole(data.role)
    account = await AuthService(db).register_staff(
        data.email, data.password, data.full_name, role, data.department
    )
    return AccountResponse(
        id=account.id,
        email=account.email,
        full_name=account.full_name,
        role=role.value,
        created_at=account.created_at,
    )


@router.post("/login", response_model=Token)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    """Exchange credentials for a bearer token carrying the resolved role"""
    result = await AuthService(db).login(credentials.email, credentials.password)
    return Token(
        access_token=result["access_token"],
        token_type=result["token_type"],
        principal=_principal_response(result["principal"]),
    )


@router.get("/me", response_model=PrincipalResponse)
async def me(principal: Principal = Depends(get_current_principal)):
    return _principal_response(principal)
