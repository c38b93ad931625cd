"""
Admin announcements: write, schedule, target and broadcast.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.models import User, Notification
from app.modules.auth.dependencies import get_current_admin
from app.schemas.notifications import (
    NotificationCreate,
    NotificationUpdate,
    NotificationResponse,
    BroadcastResponse,
)
from app.services.audit_service import log_action
from app.services.notification_service import notification_service
from app.utils.pagination import paginate

router = APIRouter()


def notification_serializer(notification: Notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump()


@router.get("")
async def list_notifications(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    is_active: Optional[bool] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = notification_service.notifications_query(is_active=is_active)
    return await paginate(db, query, page, page_size, serializer=notification_serializer)


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    notification = await notification_service.create_notification(db, data.model_dump(), created_by=current_admin.id)
    await log_action(db, current_admin.id, "notification_created", "notification", notification.id,
                     details={"title": notification.title, "audience": notification.target_audience},
                     request=request)
    await db.commit()
    await db.refresh(notification)
    return notification


@router.put("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: str,
    data: NotificationUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    update_data = data.model_dump(exclude_unset=True)
    notification = await notification_service.update_notification(db, notification_id, update_data)
    await log_action(db, current_admin.id, "notification_updated", "notification", notification.id,
                     details={"fields": sorted(update_data)}, request=request)
    await db.commit()
    await db.refresh(notification)
    return notification


@router.post("/{notification_id}/toggle", response_model=NotificationResponse)
async def toggle_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    notification = await notification_service.toggle_notification(db, notification_id)
    await db.commit()
    await db.refresh(notification)
    return notification


@router.post("/{notification_id}/broadcast", response_model=BroadcastResponse)
async def broadcast_notification(
    notification_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Deliver to every matching inbox; repeat calls only reach new users"""
    recipients = await notification_service.broadcast(db, notification_id)
    await log_action(db, current_admin.id, "notification_broadcast", "notification", notification_id,
                     details={"recipients": recipients}, request=request)
    await db.commit()
    return {"notification_id": notification_id, "recipients": recipients}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    await notification_service.delete_notification(db, notification_id)
    await log_action(db, current_admin.id, "notification_deleted", "notification", notification_id, request=request)
    await db.commit()
    return {"success": True, "message": "Notification deleted"}
