"""
Admin User Management endpoints: accounts and role assignments.
"""
from fastapi import APIRouter, Depends, Query, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import List, Optional

from app.core.database import get_db
from app.models import User, RoleName, UserRoleAssignment
from app.modules.auth.dependencies import get_current_admin
from app.schemas.admin import UserStatusUpdate
from app.schemas.auth import UserResponse
from app.schemas.roles import RoleAssignmentCreate, RoleAssignmentResponse
from app.services.audit_service import log_action
from app.services.role_service import role_service
from app.services.user_service import get_user, serialize_user
from app.utils.pagination import paginate

router = APIRouter()


@router.get("")
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    role: Optional[RoleName] = None,
    is_active: Optional[bool] = None,
    faculty: Optional[str] = None,
    department: Optional[str] = None,
    level: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List users with filtering and pagination"""
    query = select(User)

    if search:
        search_term = f"%{search}%"
        query = query.where(or_(
            User.email.ilike(search_term),
            User.full_name.ilike(search_term),
            User.reg_number.ilike(search_term),
        ))
    if role:
        query = query.where(User.id.in_(
            select(UserRoleAssignment.user_id).where(UserRoleAssignment.role == role)
        ))
    if is_active is not None:
        query = query.where(User.is_active.is_(is_active))
    if faculty:
        query = query.where(User.faculty == faculty)
    if department:
        query = query.where(User.department == department)
    if level:
        query = query.where(User.level == level)

    query = query.order_by(User.created_at.desc())
    result = await paginate(db, query, page, page_size)
    result["items"] = [await serialize_user(db, user) for user in result["items"]]
    return result


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_detail(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await get_user(db, user_id)
    return await serialize_user(db, user)


@router.patch("/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: str,
    data: UserStatusUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Activate or deactivate an account"""
    user = await get_user(db, user_id)
    if user.id == current_admin.id and not data.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot deactivate your own account"
        )

    user.is_active = data.is_active
    await log_action(db, current_admin.id, "user_activated" if data.is_active else "user_deactivated",
                     "user", user.id, details={"email": user.email}, request=request)
    await db.commit()
    await db.refresh(user)
    return await serialize_user(db, user)


@router.get("/{user_id}/roles", response_model=List[RoleAssignmentResponse])
async def list_user_roles(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    await get_user(db, user_id)
    return await role_service.list_roles(db, user_id)


@router.post("/{user_id}/roles", response_model=RoleAssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_user_role(
    user_id: str,
    data: RoleAssignmentCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    user = await get_user(db, user_id)
    assignment = await role_service.assign_role(
        db,
        user.id,
        data.role,
        granted_by=current_admin.id,
        faculty_id=data.faculty_id,
        department_id=data.department_id,
        level=data.level,
    )
    await log_action(db, current_admin.id, "role_granted", "user", user.id,
                     details={"role": data.role.value, "faculty_id": data.faculty_id,
                              "department_id": data.department_id, "level": data.level},
                     request=request)
    await db.commit()
    await db.refresh(assignment)
    return assignment


@router.delete("/{user_id}/roles/{role}")
async def revoke_user_role(
    user_id: str,
    role: RoleName,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    if user_id == current_admin.id and role == RoleName.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot revoke your own admin role"
        )
    user = await get_user(db, user_id)
    await role_service.revoke_role(db, user.id, role)
    await log_action(db, current_admin.id, "role_revoked", "user", user.id,
                     details={"role": role.value}, request=request)
    await db.commit()
    return {"success": True, "message": f"Role {role.value} revoked"}
