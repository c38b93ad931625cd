"""
Unit Tests for EventService and TicketService - events, ticket sales and admission
"""
import pytest
from datetime import datetime, timedelta

from app.core.exceptions import (
    ConflictError, EventNotFoundError, InsufficientFundsError, ResourceNotFoundError,
    TicketsSoldOutError, ValidationError,
)
from app.models import PaymentProvider, PaymentStatus, PaymentType, TicketStatus, WalletTransactionSource
from app.services.event_service import event_service, slugify
from app.services.notification_service import notification_service
from app.services.payment_service import payment_service
from app.services.ticket_service import ticket_service
from app.services.wallet_service import wallet_service


async def make_event(db_session, **overrides):
    data = {
        "title": "Freshers Night",
        "location": "Main Auditorium",
        "event_date": datetime.utcnow() + timedelta(days=10),
        "published": True,
    }
    data.update(overrides)
    return await event_service.create_event(db_session, data)


async def make_ticket_type(db_session, event, **overrides):
    data = {"ticket_type": "general", "price": 150_000, "quantity_total": 100}
    data.update(overrides)
    return await event_service.create_ticket_type(db_session, event.id, data)


class TestEvents:

    def test_slugify(self):
        assert slugify("Freshers' Night 2026!") == "freshers-night-2026"
        assert slugify("!!!") == "event"

    @pytest.mark.asyncio
    async def test_slugs_are_unique(self, db_session):
        first = await make_event(db_session)
        second = await make_event(db_session)

        assert first.slug == "freshers-night"
        assert second.slug == "freshers-night-2"
        assert (await event_service.get_event(db_session, "freshers-night-2")).id == second.id

    @pytest.mark.asyncio
    async def test_public_query_hides_drafts_and_past_events(self, db_session):
        soon = await make_event(db_session, title="Soon", event_date=datetime.utcnow() + timedelta(days=1))
        later = await make_event(db_session, title="Later", event_date=datetime.utcnow() + timedelta(days=30))
        await make_event(db_session, title="Draft", published=False)
        await make_event(db_session, title="Past", event_date=datetime.utcnow() - timedelta(days=1))

        events = (await db_session.execute(event_service.events_query())).scalars().all()

        assert [e.id for e in events] == [soon.id, later.id]

    @pytest.mark.asyncio
    async def test_has_tickets_only_for_active_types(self, db_session):
        ticketed = await make_event(db_session, title="Ticketed")
        paused = await make_event(db_session, title="Paused")
        await make_event(db_session, title="Free entry")
        await make_ticket_type(db_session, ticketed)
        await make_ticket_type(db_session, paused, is_active=False)

        ids = await event_service.ticketed_event_ids(db_session, [ticketed.id, paused.id])
        assert ids == {ticketed.id}

    @pytest.mark.asyncio
    async def test_unpublished_event_not_public(self, db_session):
        draft = await make_event(db_session, published=False)

        with pytest.raises(EventNotFoundError):
            await event_service.get_published_event(db_session, draft.id)


class TestTicketTypes:

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, db_session):
        event = await make_event(db_session)
        await make_ticket_type(db_session, event, ticket_type="VIP")

        with pytest.raises(ConflictError):
            await make_ticket_type(db_session, event, ticket_type="VIP")

    @pytest.mark.asyncio
    async def test_total_cannot_drop_below_sold(self, db_session):
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event)
        ticket_type.quantity_sold = 10

        with pytest.raises(ValidationError):
            await event_service.update_ticket_type(db_session, ticket_type.id, {"quantity_total": 5})

    @pytest.mark.asyncio
    async def test_sold_type_cannot_be_deleted(self, db_session):
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event)
        ticket_type.quantity_sold = 1

        with pytest.raises(ConflictError):
            await event_service.delete_ticket_type(db_session, ticket_type.id)


class TestPurchase:

    @pytest.mark.asyncio
    async def test_free_ticket_issued_at_once(self, db_session, make_user):
        user = await make_user()
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event, price=0)

        outcome = await event_service.purchase(db_session, user, event.id, ticket_type.id)

        assert outcome["status"] == "issued"
        ticket = outcome["ticket"]
        assert ticket.status == TicketStatus.ACTIVE
        assert ticket.amount_paid == 0
        assert len(ticket.recovery_token) == 8
        assert ticket_type.quantity_sold == 1

    @pytest.mark.asyncio
    async def test_wallet_purchase_debits_and_notifies(self, db_session, make_user):
        user = await make_user(balance=200_000)
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event)

        outcome = await event_service.purchase(db_session, user, event.id, ticket_type.id, pay_with_wallet=True)

        ticket = outcome["ticket"]
        assert ticket.ticket_code.startswith("TICKET_EVENT_TICKET_")
        assert ticket.amount_paid == 150_000
        assert (await wallet_service.get_wallet(db_session, user.id)).balance == 50_000
        debit = await wallet_service.find_transaction_by_reference(db_session, ticket.ticket_code)
        assert debit.source == WalletTransactionSource.TICKET_PURCHASE
        assert await notification_service.unread_count(db_session, user.id) == 1

    @pytest.mark.asyncio
    async def test_wallet_purchase_without_funds_issues_nothing(self, db_session, make_user):
        user = await make_user(balance=10_000)
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event)

        with pytest.raises(InsufficientFundsError):
            await event_service.purchase(db_session, user, event.id, ticket_type.id, pay_with_wallet=True)

        assert ticket_type.quantity_sold == 0
        assert await ticket_service.tickets_for_user(db_session, user.id) == []

    @pytest.mark.asyncio
    async def test_sold_out(self, db_session, make_user):
        first, second = await make_user(), await make_user()
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event, price=0, quantity_total=1)
        await event_service.purchase(db_session, first, event.id, ticket_type.id)

        with pytest.raises(TicketsSoldOutError) as exc_info:
            await event_service.purchase(db_session, second, event.id, ticket_type.id)
        assert exc_info.value.code == "TICKETS_SOLD_OUT"

    @pytest.mark.asyncio
    async def test_past_event_and_paused_type_rejected(self, db_session, make_user):
        user = await make_user()
        past = await make_event(db_session, event_date=datetime.utcnow() - timedelta(hours=1))
        past_type = await make_ticket_type(db_session, past, price=0)
        event = await make_event(db_session)
        paused = await make_ticket_type(db_session, event, price=0, is_active=False)

        with pytest.raises(ValidationError):
            await event_service.purchase(db_session, user, past.id, past_type.id)
        with pytest.raises(ValidationError):
            await event_service.purchase(db_session, user, event.id, paused.id)

    @pytest.mark.asyncio
    async def test_ticket_type_of_another_event(self, db_session, make_user):
        user = await make_user()
        event = await make_event(db_session)
        other = await make_event(db_session, title="Other")
        other_type = await make_ticket_type(db_session, other, price=0)

        with pytest.raises(ResourceNotFoundError):
            await event_service.purchase(db_session, user, event.id, other_type.id)


class TestCheckoutSettlement:

    @pytest.mark.asyncio
    async def test_checkout_settles_into_one_ticket(self, db_session, make_user):
        user = await make_user(phone="08030000000")
        event = await make_event(db_session)
        # Below the wallet funding minimum; ticket prices are not bound by it
        ticket_type = await make_ticket_type(db_session, event, price=5_000)

        outcome = await event_service.purchase(
            db_session, user, event.id, ticket_type.id, provider=PaymentProvider.DEMO,
        )
        payment = outcome["payment"]
        assert outcome["status"] == "pending"
        assert payment.payment_type == PaymentType.EVENT_TICKET
        assert payment.payment_reference.startswith("EVENT_TICKET_")
        assert payment.extra_data["event_ticket_id"] == ticket_type.id
        assert ticket_type.quantity_sold == 0

        settled, already = await payment_service.verify_payment(db_session, payment.payment_reference, user)
        assert settled.payment_status == PaymentStatus.SUCCESSFUL
        assert already is False

        ticket = await ticket_service.get_for_payment(db_session, payment.id)
        assert ticket.ticket_code == f"TICKET_{payment.payment_reference}"
        assert ticket.amount_paid == 5_000
        assert ticket.phone == "08030000000"
        assert ticket_type.quantity_sold == 1
        assert (await wallet_service.get_wallet(db_session, user.id)).balance == 0

        _, already = await payment_service.verify_payment(db_session, payment.payment_reference, user)
        assert already is True
        assert (await ticket_service.issue_for_payment(db_session, settled)).id == ticket.id
        assert len(await ticket_service.tickets_for_user(db_session, user.id)) == 1


class TestRecoveryAndAdmission:

    async def _ticket(self, db_session, make_user):
        user = await make_user(email="ada@example.com", phone="08031234567")
        event = await make_event(db_session)
        ticket_type = await make_ticket_type(db_session, event, price=0)
        outcome = await event_service.purchase(db_session, user, event.id, ticket_type.id)
        return outcome["ticket"], ticket_type

    @pytest.mark.asyncio
    async def test_recover_needs_phone_or_token(self, db_session, make_user):
        ticket, _ = await self._ticket(db_session, make_user)

        with pytest.raises(ValidationError):
            await ticket_service.recover(db_session, "ada@example.com")

        by_phone = await ticket_service.recover(db_session, "ADA@example.com", phone="08031234567")
        by_token = await ticket_service.recover(db_session, "ada@example.com", recovery_token=ticket.recovery_token.lower())
        assert [t.id for t, _ in by_phone] == [ticket.id]
        assert [t.id for t, _ in by_token] == [ticket.id]
        assert by_token[0][1].title == "Freshers Night"

    @pytest.mark.asyncio
    async def test_recover_with_wrong_phone_finds_nothing(self, db_session, make_user):
        await self._ticket(db_session, make_user)

        assert await ticket_service.recover(db_session, "ada@example.com", phone="0800000000") == []

    @pytest.mark.asyncio
    async def test_check_in_once(self, db_session, make_user):
        ticket, _ = await self._ticket(db_session, make_user)

        admitted = await ticket_service.check_in(db_session, ticket.ticket_code)
        assert admitted.status == TicketStatus.USED
        assert admitted.checked_in_at is not None

        with pytest.raises(ConflictError):
            await ticket_service.check_in(db_session, ticket.ticket_code)

    @pytest.mark.asyncio
    async def test_cancel_returns_place(self, db_session, make_user):
        ticket, ticket_type = await self._ticket(db_session, make_user)

        await ticket_service.cancel(db_session, ticket.ticket_code)
        await ticket_service.cancel(db_session, ticket.ticket_code)

        assert ticket.status == TicketStatus.CANCELLED
        assert ticket_type.quantity_sold == 0
        with pytest.raises(ValidationError):
            await ticket_service.check_in(db_session, ticket.ticket_code)
