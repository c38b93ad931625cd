"""
Unit Tests for NotificationService - audiences, broadcast and read state
"""
import pytest
from datetime import datetime, timedelta

from app.core.exceptions import NotificationNotFoundError, ValidationError
from app.models import Notification, NotificationType, User
from app.services.notification_service import notification_service


async def announce(db_session, **overrides) -> Notification:
    data = {"title": "Exam timetable out", "message": "Check the exams page"}
    data.update(overrides)
    return await notification_service.create_notification(db_session, data)


class TestAudience:

    @pytest.mark.parametrize("audience,expected", [
        (["all"], True),
        ([], True),
        (["300"], False),
        (["200"], True),
        (["computer science"], True),
        (["Faculty of Arts", "Main Campus"], True),
        (["Faculty of Arts"], False),
    ])
    def test_matches_profile(self, audience, expected):
        user = User(level=200, department="Computer Science", faculty="Faculty of Science", campus="Main Campus")
        notification = Notification(target_audience=audience)

        assert notification_service.matches_audience(notification, user) is expected

    def test_live_window(self):
        now = datetime.utcnow()
        assert Notification(is_active=True).is_live(now)
        assert not Notification(is_active=False).is_live(now)
        assert not Notification(is_active=True, start_date=now + timedelta(hours=1)).is_live(now)
        assert not Notification(is_active=True, end_date=now - timedelta(hours=1)).is_live(now)

    @pytest.mark.asyncio
    async def test_blank_audience_means_everyone(self, db_session):
        notification = await announce(db_session, target_audience=["  "])
        assert notification.target_audience == ["all"]

    @pytest.mark.asyncio
    async def test_window_must_be_ordered(self, db_session):
        now = datetime.utcnow()
        with pytest.raises(ValidationError):
            await announce(db_session, start_date=now, end_date=now - timedelta(days=1))


class TestAnnouncements:

    @pytest.mark.asyncio
    async def test_only_live_matching_newest_first(self, db_session, make_user):
        user = await make_user(level=100, department="Law")
        older = await announce(db_session, title="Older")
        await announce(db_session, title="Other level", target_audience=["400"])
        await announce(db_session, title="Paused", is_active=False)
        await announce(db_session, title="Expired", end_date=datetime.utcnow() - timedelta(days=1))
        newer = await announce(db_session, title="For law", target_audience=["law"])
        newer.created_at = older.created_at + timedelta(seconds=5)
        await db_session.flush()

        result = await notification_service.announcements_for(db_session, user)

        assert [n.id for n in result] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_limit(self, db_session, make_user):
        user = await make_user()
        for i in range(7):
            await announce(db_session, title=f"Notice {i}")

        assert len(await notification_service.announcements_for(db_session, user)) == 5


class TestBroadcastAndInbox:

    @pytest.mark.asyncio
    async def test_broadcast_reaches_audience_once(self, db_session, make_user):
        in_audience = await make_user(level=200)
        outsider = await make_user(level=300)
        notification = await announce(db_session, target_audience=["200"])

        assert await notification_service.broadcast(db_session, notification.id) == 1
        assert await notification_service.broadcast(db_session, notification.id) == 0

        late = await make_user(level=200)
        assert await notification_service.broadcast(db_session, notification.id) == 1

        assert await notification_service.unread_count(db_session, in_audience.id) == 1
        assert await notification_service.unread_count(db_session, late.id) == 1
        assert await notification_service.unread_count(db_session, outsider.id) == 0
        assert notification.broadcast_at is not None

    @pytest.mark.asyncio
    async def test_inactive_cannot_be_broadcast(self, db_session):
        notification = await announce(db_session, is_active=False)

        with pytest.raises(ValidationError):
            await notification_service.broadcast(db_session, notification.id)

    @pytest.mark.asyncio
    async def test_read_state_is_per_user(self, db_session, make_user):
        owner = await make_user()
        other = await make_user()
        first = await notification_service.notify_user(db_session, owner.id, "Hello", "One")
        await notification_service.notify_user(db_session, owner.id, "Again", "Two", NotificationType.WARNING)

        with pytest.raises(NotificationNotFoundError):
            await notification_service.mark_read(db_session, other.id, first.id)

        read = await notification_service.mark_read(db_session, owner.id, first.id)
        assert read.is_read is True
        assert await notification_service.unread_count(db_session, owner.id) == 1

        assert await notification_service.mark_all_read(db_session, owner.id) == 1
        assert await notification_service.unread_count(db_session, owner.id) == 0
