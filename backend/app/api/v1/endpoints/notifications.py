"""
Announcements and the signed-in user's inbox.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.models.notification import UserNotification
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.notifications import NotificationResponse, UserNotificationResponse
from app.services.notification_service import notification_service
from app.utils.pagination import paginate

router = APIRouter()


def inbox_serializer(entry: UserNotification) -> dict:
    return UserNotificationResponse.model_validate(entry).model_dump()


@router.get("/announcements", response_model=List[NotificationResponse])
async def announcements(
    limit: int = Query(5, ge=1, le=20),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Live announcements for the caller's level, department, faculty or campus"""
    return await notification_service.announcements_for(db, current_user, limit=limit)


@router.get("")
async def inbox(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    unread_only: bool = False,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Newest first"""
    query = notification_service.inbox_query(current_user.id, unread_only=unread_only)
    return await paginate(db, query, page, page_size, serializer=inbox_serializer)


@router.get("/unread-count")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return {"unread": await notification_service.unread_count(db, current_user.id)}


@router.post("/read-all")
async def mark_all_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await notification_service.mark_all_read(db, current_user.id)
    await db.commit()
    return {"success": True, "updated": updated}


@router.post("/{entry_id}/read", response_model=UserNotificationResponse)
async def mark_read(
    entry_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    entry = await notification_service.mark_read(db, current_user.id, entry_id)
    await db.commit()
    return entry
