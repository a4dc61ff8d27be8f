"""
Unit Tests for role resolution and the auth dependencies
"""
import pytest
from unittest.mock import AsyncMock
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import OperationalError

from app.core.exceptions import AuthenticationError, AuthorizationError, InvalidTokenError, RoleIndeterminateError
from app.core.security import create_access_token
from app.models.user import Adviser, Student, Teacher, UserRole
from app.modules.auth import get_current_principal, require_role, resolve_role
from app.modules.auth.role_resolver import Principal

from conftest import make_account


class TestResolveRole:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("model,role", [
        (Adviser, UserRole.ADVISER),
        (Teacher, UserRole.TEACHER),
        (Student, UserRole.STUDENT),
    ])
    async def test_single_role(self, db_session, model, role):
        account = await make_account(db_session, model)
        assert await resolve_role(db_session, account.id) == role

    @pytest.mark.asyncio
    async def test_adviser_wins_over_teacher(self, db_session):
        """An account holding both records resolves to adviser"""
        account = await make_account(db_session, Teacher)
        db_session.add(Adviser(id=account.id, name=account.full_name, email=account.email))
        await db_session.commit()

        assert await resolve_role(db_session, account.id) == UserRole.ADVISER

    @pytest.mark.asyncio
    async def test_no_role_record(self, db_session):
        account = await make_account(db_session)
        assert await resolve_role(db_session, account.id) is None

    @pytest.mark.asyncio
    async def test_store_failure_is_not_no_role(self):
        db = AsyncMock()
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))

        with pytest.raises(RoleIndeterminateError):
            await resolve_role(db, "some-id")


def _credentials(claims):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=create_access_token(claims))


class TestCurrentPrincipal:

    @pytest.mark.asyncio
    async def test_principal_from_claims(self):
        principal = await get_current_principal(_credentials({
            "sub": "7f1c2a10-4b6e-4a57-9d1e-0c1f5e2b9a33",
            "role": "teacher",
            "name": "Tess",
            "email": "tess@school.edu",
        }))
        assert principal.role == UserRole.TEACHER
        assert principal.is_teacher
        assert principal.name == "Tess"

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        with pytest.raises(AuthenticationError):
            await get_current_principal(None)

    @pytest.mark.asyncio
    async def test_non_uuid_subject(self):
        with pytest.raises(InvalidTokenError):
            await get_current_principal(_credentials({"sub": "abc", "role": "student"}))

    @pytest.mark.asyncio
    async def test_unknown_role_claim(self):
        with pytest.raises(InvalidTokenError):
            await get_current_principal(_credentials({
                "sub": "7f1c2a10-4b6e-4a57-9d1e-0c1f5e2b9a33", "role": "admin"
            }))

    @pytest.mark.asyncio
    async def test_require_role_rejects_other_roles(self):
        checker = require_role(UserRole.ADVISER)
        student = Principal(id="s", role=UserRole.STUDENT, name="S", email="s@x.io")

        with pytest.raises(AuthorizationError):
            await checker(student)

    @pytest.mark.asyncio
    async def test_require_role_accepts_listed_role(self):
        checker = require_role(UserRole.TEACHER, UserRole.ADVISER)
        adviser = Principal(id="a", role=UserRole.ADVISER, name="A", email="a@x.io")

        assert await checker(adviser) is adviser
