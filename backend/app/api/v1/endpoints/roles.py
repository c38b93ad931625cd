from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from app.core.database import get_db
from app.models.role import RoleRequest
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.roles import RoleAssignmentResponse, RoleRequestCreate, RoleRequestResponse
from app.services.role_service import role_service

router = APIRouter()


@router.get("/mine", response_model=List[RoleAssignmentResponse])
async def my_roles(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await role_service.list_roles(db, current_user.id)


@router.post("/requests", response_model=RoleRequestResponse, status_code=status.HTTP_201_CREATED)
async def request_role(
    data: RoleRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Ask an admin for the course_rep or moderator role"""
    role_request = await role_service.create_request(
        db,
        current_user.id,
        data.role,
        reason=data.reason,
        faculty_id=data.faculty_id,
        department_id=data.department_id,
        level=data.level,
    )
    await db.commit()
    await db.refresh(role_request)
    return role_request


@router.get("/requests/me", response_model=List[RoleRequestResponse])
async def my_role_requests(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(RoleRequest)
        .where(RoleRequest.user_id == current_user.id)
        .order_by(RoleRequest.created_at.desc())
    )
    return result.scalars().all()
