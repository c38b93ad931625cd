"""
Event Service - campus events and ticket sales

Handles:
- Event CRUD with unique slugs
- Ticket types per event (price, allocation, on/off)
- Purchases: free tickets are issued at once, wallet purchases debit and
  issue in one transaction, anything else opens a provider checkout that
  PaymentService settles into a ticket
"""

import re
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from datetime import datetime
from typing import Any, Dict, Optional, Set

from app.core.exceptions import (
    ConflictError,
    EventNotFoundError,
    ResourceNotFoundError,
    TicketsSoldOutError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.event import Event, EventTicketType
from app.models.payment import PaymentProvider, PaymentType
from app.models.user import User
from app.models.wallet import WalletTransactionSource
from app.services.payment_service import payment_service, generate_payment_reference
from app.services.ticket_service import ticket_service, ticket_code_for
from app.services.wallet_service import wallet_service


def slugify(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return slug[:250] or "event"


class EventService:
    """Service for events and ticket types"""

    # ==================== EVENTS ====================

    async def get_event(self, db: AsyncSession, event_id: str) -> Event:
        """By id or slug"""
        event = (await db.execute(
            select(Event).where(or_(Event.id == event_id, Event.slug == event_id))
        )).scalar_one_or_none()
        if not event:
            raise EventNotFoundError(event_id)
        return event

    async def get_published_event(self, db: AsyncSession, event_id: str) -> Event:
        event = await self.get_event(db, event_id)
        if not event.published:
            raise EventNotFoundError(event_id)
        return event

    async def _unique_slug(self, db: AsyncSession, wanted: str, exclude_id: Optional[str] = None) -> str:
        base = slugify(wanted)
        slug, n = base, 2
        while True:
            query = select(Event.id).where(Event.slug == slug)
            if exclude_id:
                query = query.where(Event.id != exclude_id)
            if (await db.execute(query)).scalar_one_or_none() is None:
                return slug
            slug = f"{base}-{n}"
            n += 1

    async def create_event(self, db: AsyncSession, data: Dict[str, Any], created_by: Optional[str] = None) -> Event:
        data = dict(data)
        data["slug"] = await self._unique_slug(db, data.get("slug") or data["title"])
        event = Event(created_by=created_by, **data)
        db.add(event)
        await db.flush()
        logger.info(f"[Events] Created {event.slug}")
        return event

    async def update_event(self, db: AsyncSession, event_id: str, data: Dict[str, Any]) -> Event:
        event = await self.get_event(db, event_id)
        data = dict(data)
        if data.get("slug"):
            data["slug"] = await self._unique_slug(db, data["slug"], exclude_id=event.id)
        for field, value in data.items():
            setattr(event, field, value)
        event.updated_at = datetime.utcnow()
        await db.flush()
        return event

    async def delete_event(self, db: AsyncSession, event_id: str) -> None:
        """Ticket types and issued tickets go with the event"""
        event = await self.get_event(db, event_id)
        await db.delete(event)
        await db.flush()
        logger.info(f"[Events] Deleted {event.slug}")

    def events_query(self, published_only: bool = True, upcoming_only: bool = True, search: Optional[str] = None):
        query = select(Event)
        if published_only:
            query = query.where(Event.published.is_(True))
        if upcoming_only:
            query = query.where(Event.event_date >= datetime.utcnow())
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Event.title.ilike(pattern), Event.location.ilike(pattern)))
        return query.order_by(Event.event_date.asc())

    async def ticketed_event_ids(self, db: AsyncSession, event_ids) -> Set[str]:
        """Events among event_ids with at least one ticket type on sale"""
        if not event_ids:
            return set()
        result = await db.execute(
            select(EventTicketType.event_id).where(
                EventTicketType.event_id.in_(list(event_ids)),
                EventTicketType.is_active.is_(True),
            ).distinct()
        )
        return set(result.scalars().all())

    # ==================== TICKET TYPES ====================

    async def list_ticket_types(self, db: AsyncSession, event_id: str, active_only: bool = False):
        query = select(EventTicketType).where(EventTicketType.event_id == event_id)
        if active_only:
            query = query.where(EventTicketType.is_active.is_(True))
        result = await db.execute(query.order_by(EventTicketType.price.asc()))
        return list(result.scalars().all())

    async def get_ticket_type(self, db: AsyncSession, ticket_type_id: str, lock: bool = False) -> EventTicketType:
        query = select(EventTicketType).where(EventTicketType.id == ticket_type_id)
        if lock:
            query = query.with_for_update()
        ticket_type = (await db.execute(query)).scalar_one_or_none()
        if not ticket_type:
            raise ResourceNotFoundError("Ticket type", ticket_type_id)
        return ticket_type

    async def _ensure_type_name_free(self, db: AsyncSession, event_id: str, name: str, exclude_id: Optional[str] = None):
        query = select(EventTicketType.id).where(
            EventTicketType.event_id == event_id, EventTicketType.ticket_type == name,
        )
        if exclude_id:
            query = query.where(EventTicketType.id != exclude_id)
        if (await db.execute(query)).scalar_one_or_none() is not None:
            raise ConflictError(f"This event already has a '{name}' ticket")

    async def create_ticket_type(self, db: AsyncSession, event_id: str, data: Dict[str, Any]) -> EventTicketType:
        event = await self.get_event(db, event_id)
        name = data.get("ticket_type", "general").strip()
        await self._ensure_type_name_free(db, event.id, name)
        ticket_type = EventTicketType(event_id=event.id, **{**data, "ticket_type": name})
        db.add(ticket_type)
        await db.flush()
        return ticket_type

    async def update_ticket_type(self, db: AsyncSession, ticket_type_id: str, data: Dict[str, Any]) -> EventTicketType:
        ticket_type = await self.get_ticket_type(db, ticket_type_id)
        if data.get("ticket_type"):
            data = {**data, "ticket_type": data["ticket_type"].strip()}
            await self._ensure_type_name_free(db, ticket_type.event_id, data["ticket_type"], exclude_id=ticket_type.id)
        if data.get("quantity_total") is not None and data["quantity_total"] < ticket_type.quantity_sold:
            raise ValidationError(
                f"{ticket_type.quantity_sold} tickets are already sold", field="quantity_total"
            )
        for field, value in data.items():
            setattr(ticket_type, field, value)
        await db.flush()
        return ticket_type

    async def toggle_ticket_type(self, db: AsyncSession, ticket_type_id: str) -> EventTicketType:
        ticket_type = await self.get_ticket_type(db, ticket_type_id)
        ticket_type.is_active = not ticket_type.is_active
        await db.flush()
        return ticket_type

    async def delete_ticket_type(self, db: AsyncSession, ticket_type_id: str) -> None:
        ticket_type = await self.get_ticket_type(db, ticket_type_id)
        if ticket_type.quantity_sold:
            raise ConflictError("Ticket types with sales can only be deactivated")
        await db.delete(ticket_type)
        await db.flush()

    # ==================== PURCHASE ====================

    async def purchase(
        self,
        db: AsyncSession,
        user: User,
        event_id: str,
        ticket_type_id: str,
        provider: PaymentProvider = PaymentProvider.PAYSTACK,
        pay_with_wallet: bool = False,
        callback_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Buy one ticket.

        Returns:
            {"status": "issued", "ticket", "amount"} for free and wallet purchases,
            {"status": "pending", "payment", "amount"} when a checkout was opened

        Raises:
            ValidationError: event unpublished, past, or ticket type off sale
            TicketsSoldOutError: allocation used up
            InsufficientFundsError: wallet purchase the balance can't cover
        """
        event = await self.get_published_event(db, event_id)
        if not event.is_upcoming():
            raise ValidationError("This event has already taken place")

        ticket_type = await self.get_ticket_type(db, ticket_type_id, lock=True)
        if ticket_type.event_id != event.id:
            raise ResourceNotFoundError("Ticket type", ticket_type_id)
        if not ticket_type.is_active:
            raise ValidationError(f"'{ticket_type.ticket_type}' tickets are not on sale")
        if ticket_type.quantity_available <= 0:
            raise TicketsSoldOutError(ticket_type.ticket_type)

        price = ticket_type.price
        if price > 0 and not pay_with_wallet:
            payment = await payment_service.initialize_payment(
                db,
                user,
                amount=price,
                provider=provider,
                payment_type=PaymentType.EVENT_TICKET,
                callback_url=callback_url,
                metadata={"event_id": event.id, "event_ticket_id": ticket_type.id},
            )
            return {"status": "pending", "payment": payment, "amount": price}

        ticket_code = ticket_code_for(generate_payment_reference(PaymentType.EVENT_TICKET))
        if price > 0:
            await wallet_service.debit(
                db,
                user.id,
                price,
                source=WalletTransactionSource.TICKET_PURCHASE,
                description=f"{ticket_type.ticket_type.capitalize()} ticket: {event.title}",
                reference=ticket_code,
                metadata={"event_id": event.id, "event_ticket_id": ticket_type.id},
            )

        ticket = await ticket_service.issue_ticket(
            db,
            event,
            ticket_type,
            ticket_code=ticket_code,
            email=user.email,
            full_name=user.full_name,
            phone=user.phone,
            user_id=user.id,
            amount_paid=price,
        )
        return {"status": "issued", "ticket": ticket, "amount": price}


# Singleton instance
event_service = EventService()
