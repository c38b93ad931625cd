"""
Notification Service - admin announcements and user inboxes

Handles:
- Announcement CRUD and activation windows
- Audience matching ("all", level, department, faculty or campus)
- Broadcasting an announcement into per-user inbox rows (idempotent)
- Direct messages to one user (ticket receipts, role decisions)
- Read state per user
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update, or_
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.exceptions import NotificationNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models.notification import Notification, NotificationType, UserNotification
from app.models.user import User

# Fields an update may set back to null
CLEARABLE_FIELDS = {"link", "start_date", "end_date"}


class NotificationService:
    """Service for announcements and the per-user inbox"""

    # ==================== ANNOUNCEMENTS ====================

    async def get_notification(self, db: AsyncSession, notification_id: str) -> Notification:
        notification = (await db.execute(
            select(Notification).where(Notification.id == notification_id)
        )).scalar_one_or_none()
        if not notification:
            raise NotificationNotFoundError(notification_id)
        return notification

    def _check_window(self, start_date: Optional[datetime], end_date: Optional[datetime]) -> None:
        if start_date and end_date and end_date < start_date:
            raise ValidationError("end_date must be after start_date", field="end_date")

    def _normalize_audience(self, audience: Optional[List[str]]) -> List[str]:
        cleaned = [str(a).strip() for a in (audience or []) if str(a).strip()]
        return cleaned or ["all"]

    async def create_notification(self, db: AsyncSession, data: Dict[str, Any], created_by: Optional[str] = None) -> Notification:
        self._check_window(data.get("start_date"), data.get("end_date"))
        data = dict(data)
        data["target_audience"] = self._normalize_audience(data.get("target_audience"))
        notification = Notification(created_by=created_by, **data)
        db.add(notification)
        await db.flush()
        logger.info(f"[Notifications] Created '{notification.title}' for {notification.target_audience}")
        return notification

    async def update_notification(self, db: AsyncSession, notification_id: str, data: Dict[str, Any]) -> Notification:
        notification = await self.get_notification(db, notification_id)
        data = {k: v for k, v in data.items() if v is not None or k in CLEARABLE_FIELDS}
        if "target_audience" in data:
            data["target_audience"] = self._normalize_audience(data["target_audience"])
        for field, value in data.items():
            setattr(notification, field, value)
        self._check_window(notification.start_date, notification.end_date)
        notification.updated_at = datetime.utcnow()
        await db.flush()
        return notification

    async def toggle_notification(self, db: AsyncSession, notification_id: str) -> Notification:
        notification = await self.get_notification(db, notification_id)
        notification.is_active = not notification.is_active
        await db.flush()
        return notification

    async def delete_notification(self, db: AsyncSession, notification_id: str) -> None:
        notification = await self.get_notification(db, notification_id)
        await db.delete(notification)
        await db.flush()

    def notifications_query(self, is_active: Optional[bool] = None):
        query = select(Notification)
        if is_active is not None:
            query = query.where(Notification.is_active.is_(is_active))
        return query.order_by(Notification.created_at.desc())

    @staticmethod
    def matches_audience(notification: Notification, user: User) -> bool:
        """Case-insensitive match of any audience entry against the user's profile"""
        audience = {str(a).strip().lower() for a in (notification.target_audience or ["all"])}
        if not audience or "all" in audience:
            return True
        profile = [user.level, user.department, user.faculty, user.campus]
        return any(str(value).strip().lower() in audience for value in profile if value is not None)

    def _live_query(self, now: datetime):
        return (
            select(Notification)
            .where(
                Notification.is_active.is_(True),
                or_(Notification.start_date.is_(None), Notification.start_date <= now),
                or_(Notification.end_date.is_(None), Notification.end_date >= now),
            )
            .order_by(Notification.created_at.desc())
        )

    async def announcements_for(self, db: AsyncSession, user: User, limit: int = 5) -> List[Notification]:
        """Live announcements whose audience includes the user, newest first"""
        result = await db.execute(self._live_query(datetime.utcnow()))
        matching = [n for n in result.scalars().all() if self.matches_audience(n, user)]
        return matching[:limit]

    async def broadcast(self, db: AsyncSession, notification_id: str) -> int:
        """
        Copy a live announcement into the inbox of every active user in its
        audience. Users who already received it are skipped.

        Returns:
            Number of inbox rows created
        """
        notification = await self.get_notification(db, notification_id)
        if not notification.is_live():
            raise ValidationError("Only active notifications inside their date window can be broadcast")

        already = set((await db.execute(
            select(UserNotification.user_id).where(UserNotification.notification_id == notification.id)
        )).scalars().all())
        users = (await db.execute(select(User).where(User.is_active.is_(True)))).scalars().all()

        created = 0
        for user in users:
            if user.id in already or not self.matches_audience(notification, user):
                continue
            db.add(UserNotification(
                user_id=user.id,
                notification_id=notification.id,
                title=notification.title,
                message=notification.message,
                notification_type=notification.notification_type,
                link=notification.link,
            ))
            created += 1

        notification.broadcast_at = datetime.utcnow()
        await db.flush()
        logger.info(f"[Notifications] Broadcast '{notification.title}' to {created} users")
        return created

    # ==================== INBOX ====================

    async def notify_user(
        self,
        db: AsyncSession,
        user_id: str,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        link: Optional[str] = None,
    ) -> UserNotification:
        entry = UserNotification(
            user_id=str(user_id),
            title=title,
            message=message,
            notification_type=NotificationType(notification_type),
            link=link,
        )
        db.add(entry)
        await db.flush()
        return entry

    def inbox_query(self, user_id: str, unread_only: bool = False):
        query = select(UserNotification).where(UserNotification.user_id == str(user_id))
        if unread_only:
            query = query.where(UserNotification.read_at.is_(None))
        return query.order_by(UserNotification.created_at.desc())

    async def unread_count(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            select(func.count(UserNotification.id)).where(
                UserNotification.user_id == str(user_id),
                UserNotification.read_at.is_(None),
            )
        )
        return result.scalar() or 0

    async def mark_read(self, db: AsyncSession, user_id: str, entry_id: str) -> UserNotification:
        entry = (await db.execute(
            select(UserNotification).where(
                UserNotification.id == entry_id,
                UserNotification.user_id == str(user_id),
            )
        )).scalar_one_or_none()
        if not entry:
            raise NotificationNotFoundError(entry_id)
        if entry.read_at is None:
            entry.read_at = datetime.utcnow()
            await db.flush()
        return entry

    async def mark_all_read(self, db: AsyncSession, user_id: str) -> int:
        result = await db.execute(
            update(UserNotification)
            .where(UserNotification.user_id == str(user_id), UserNotification.read_at.is_(None))
            .values(read_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0


# Singleton instance
notification_service = NotificationService()
