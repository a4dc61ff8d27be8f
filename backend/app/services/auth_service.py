"""
Auth Service
Account registration and login. The role is resolved here, once, and
embedded in the access token.
"""

from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, EmailAlreadyRegisteredError, NoRoleError, ValidationError
from app.core.logging_config import logger
from app.core.security import create_access_token, get_password_hash, verify_password
from app.core.types import utcnow
from app.models.user import Adviser, Student, Teacher, UserAccount, UserRole
from app.services.document_store import store_operation
from app.modules.auth.role_resolver import Principal, resolve_role


STAFF_ROLE_MODELS = {
    UserRole.TEACHER: Teacher,
    UserRole.ADVISER: Adviser,
}


class AuthService:
    """Registration and login"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _ensure_email_free(self, email: str) -> None:
        async with store_operation(self.db, "email lookup"):
            result = await self.db.execute(select(UserAccount.id).where(UserAccount.email == email))
            taken = result.scalar_one_or_none()
        if taken is not None:
            raise EmailAlreadyRegisteredError(email)

    async def _create_account(self, email: str, password: str, full_name: str, role_record: Any) -> UserAccount:
        account = UserAccount(
            email=email,
            full_name=full_name,
            hashed_password=get_password_hash(password),
        )
        async with store_operation(self.db, "register account"):
            self.db.add(account)
            await self.db.flush()
            role_record.id = account.id
            self.db.add(role_record)
            await self.db.commit()
            await self.db.refresh(account)
        return account

    async def register_student(self, email: str, password: str, full_name: str) -> Tuple[UserAccount, Student]:
        """Create a student account; group details come later"""
        email = email.lower()
        await self._ensure_email_free(email)

        student = Student(name=full_name, email=email)
        account = await self._create_account(email, password, full_name, student)
        logger.log_auth_event("register", True, user_email=email, role=UserRole.STUDENT.value)
        return account, student

    async def register_staff(self, email: str, password: str, full_name: str,
                             role: UserRole, department: Optional[str] = None) -> UserAccount:
        """Create a teacher or adviser account"""
        model = STAFF_ROLE_MODELS.get(role)
        if model is None:
            raise ValidationError("Role must be teacher or adviser", field="role")

        email = email.lower()
        await self._ensure_email_free(email)

        record = model(name=full_name, email=email, department=department)
        account = await self._create_account(email, password, full_name, record)
        logger.log_auth_event("register", True, user_email=email, role=role.value)
        return account

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Verify credentials, resolve the role and issue a token"""
        email = email.lower()
        async with store_operation(self.db, "login lookup"):
            result = await self.db.execute(select(UserAccount).where(UserAccount.email == email))
            account = result.scalar_one_or_none()

        if not account or not verify_password(password, account.hashed_password):
            logger.log_auth_event("login", False, user_email=email, reason="invalid credentials")
            raise AuthenticationError("Incorrect email or password")

        role = await resolve_role(self.db, account.id)
        if role is None:
            logger.log_auth_event("login", False, user_email=email, reason="no role")
            raise NoRoleError(account.id)

        account.last_login = utcnow()
        async with store_operation(self.db, "record login"):
            await self.db.commit()

        principal = Principal(id=account.id, role=role, name=account.full_name, email=account.email)
        token = create_access_token({
            "sub": principal.id,
            "role": principal.role.value,
            "name": principal.name,
            "email": principal.email,
        })
        logger.log_auth_event("login", True, user_email=email, role=role.value)
        return {"access_token": token, "token_type": "bearer", "principal": principal}
