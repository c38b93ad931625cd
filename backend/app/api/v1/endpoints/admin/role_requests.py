"""
Admin review of role requests.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.core.database import get_db
from app.models import User, RoleRequest, RoleRequestStatus
from app.modules.auth.dependencies import get_current_admin
from app.schemas.roles import RoleRequestResponse, RoleRequestReview
from app.services.audit_service import log_action
from app.services.role_service import role_service

router = APIRouter()


@router.get("", response_model=List[RoleRequestResponse])
async def list_role_requests(
    status: Optional[RoleRequestStatus] = Query(RoleRequestStatus.PENDING),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = select(RoleRequest)
    if status:
        query = query.where(RoleRequest.status == status)
    result = await db.execute(query.order_by(RoleRequest.created_at))
    return result.scalars().all()


async def _review(request_id: str, approve: bool, data: RoleRequestReview, request: Request,
                  db: AsyncSession, admin: User) -> RoleRequest:
    role_request = await role_service.review_request(
        db, request_id, reviewer_id=admin.id, approve=approve, note=data.note,
    )
    await log_action(
        db, admin.id, "role_request_approved" if approve else "role_request_rejected",
        "role_request", role_request.id,
        details={"user_id": role_request.user_id, "role": role_request.role.value, "note": data.note},
        request=request,
    )
    await db.commit()
    await db.refresh(role_request)
    return role_request


@router.post("/{request_id}/approve", response_model=RoleRequestResponse)
async def approve_role_request(
    request_id: str,
    request: Request,
    data: RoleRequestReview = RoleRequestReview(),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Approve and grant the requested role"""
    return await _review(request_id, True, data, request, db, current_admin)


@router.post("/{request_id}/reject", response_model=RoleRequestResponse)
async def reject_role_request(
    request_id: str,
    request: Request,
    data: RoleRequestReview = RoleRequestReview(),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await _review(request_id, False, data, request, db, current_admin)
