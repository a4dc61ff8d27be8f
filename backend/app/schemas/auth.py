from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Literal, Optional
from datetime import datetime


class StudentRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        return v


class StaffRegister(StudentRegister):
    role: Literal["teacher", "adviser"]
    department: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class PrincipalResponse(BaseModel):
    id: str
    role: str
    name: str
    email: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    principal: PrincipalResponse


class AccountResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    created_at: datetime
