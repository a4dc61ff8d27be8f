from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.modules.auth.dependencies import get_current_principal
from app.modules.auth.role_resolver import Principal
from app.schemas.project import AdviserResponse
from app.services.project_service import ProjectService


router = APIRouter()


@router.get("", response_model=List[AdviserResponse])
async def list_advisers(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Advisers a student can pick when submitting a project"""
    return await ProjectService(db).list_advisers()
