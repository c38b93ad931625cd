"""
Ticket Service - issuing, finding and checking in event tickets

Tickets are issued in three ways, all through issue_ticket:
- free ticket types, straight from the purchase call
- wallet purchases, after the debit
- gateway checkouts, when PaymentService settles an event_ticket payment
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime
from typing import List, Optional, Tuple

from app.core.exceptions import (
    ConflictError,
    EventNotFoundError,
    TicketNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.event import Event, EventTicketType, Ticket, TicketStatus
from app.models.notification import NotificationType
from app.models.payment import Payment
from app.services.mfa_service import generate_recovery_code, normalize_code
from app.services.notification_service import notification_service

RECOVERY_TOKEN_LENGTH = 8


def ticket_code_for(reference: str) -> str:
    return f"TICKET_{reference}"


class TicketService:
    """Service for issued tickets"""

    async def _unique_recovery_token(self, db: AsyncSession) -> str:
        while True:
            token = generate_recovery_code(RECOVERY_TOKEN_LENGTH)
            taken = (await db.execute(
                select(func.count(Ticket.id)).where(Ticket.recovery_token == token)
            )).scalar()
            if not taken:
                return token

    async def issue_ticket(
        self,
        db: AsyncSession,
        event: Event,
        ticket_type: Optional[EventTicketType],
        ticket_code: str,
        email: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        user_id: Optional[str] = None,
        amount_paid: int = 0,
        payment_id: Optional[str] = None,
    ) -> Ticket:
        """Write the ticket, count it against the ticket type and tell the buyer"""
        ticket = Ticket(
            event_id=event.id,
            event_ticket_id=ticket_type.id if ticket_type else None,
            user_id=str(user_id) if user_id else None,
            payment_id=payment_id,
            full_name=full_name,
            email=email,
            phone=phone,
            ticket_code=ticket_code,
            recovery_token=await self._unique_recovery_token(db),
            amount_paid=amount_paid,
            status=TicketStatus.ACTIVE,
        )
        db.add(ticket)
        if ticket_type is not None:
            ticket_type.quantity_sold += 1

        if user_id:
            await notification_service.notify_user(
                db,
                user_id,
                title=f"Your ticket for {event.title}",
                message=f"Ticket {ticket_code} is confirmed. Recovery code: {ticket.recovery_token}",
                notification_type=NotificationType.SUCCESS,
            )
        await db.flush()

        logger.info(f"[Tickets] Issued {ticket_code} for event {event.id}")
        return ticket

    async def get_for_payment(self, db: AsyncSession, payment_id: str) -> Optional[Ticket]:
        result = await db.execute(select(Ticket).where(Ticket.payment_id == str(payment_id)))
        return result.scalar_one_or_none()

    async def issue_for_payment(self, db: AsyncSession, payment: Payment) -> Ticket:
        """
        Issue the ticket a settled event_ticket payment paid for.

        Idempotent: a payment that already has a ticket gets the same one back.
        Availability was checked when the checkout started, so a ticket type
        that sold out in the meantime still honours the payment.
        """
        existing = await self.get_for_payment(db, payment.id)
        if existing:
            return existing

        extra = payment.extra_data or {}
        event = (await db.execute(
            select(Event).where(Event.id == extra.get("event_id"))
        )).scalar_one_or_none()
        if event is None:
            raise EventNotFoundError(str(extra.get("event_id")))

        ticket_type = None
        if extra.get("event_ticket_id"):
            ticket_type = (await db.execute(
                select(EventTicketType).where(EventTicketType.id == extra["event_ticket_id"])
            )).scalar_one_or_none()

        return await self.issue_ticket(
            db,
            event,
            ticket_type,
            ticket_code=ticket_code_for(payment.payment_reference),
            email=payment.email,
            full_name=payment.full_name,
            phone=payment.phone,
            user_id=payment.user_id,
            amount_paid=payment.amount,
            payment_id=payment.id,
        )

    # ==================== LOOKUP ====================

    def _with_event(self):
        return select(Ticket, Event).join(Event, Ticket.event_id == Event.id)

    async def tickets_for_user(self, db: AsyncSession, user_id: str) -> List[Tuple[Ticket, Event]]:
        result = await db.execute(
            self._with_event().where(Ticket.user_id == str(user_id)).order_by(Event.event_date.asc())
        )
        return list(result.all())

    async def recover(
        self,
        db: AsyncSession,
        email: str,
        phone: Optional[str] = None,
        recovery_token: Optional[str] = None,
    ) -> List[Tuple[Ticket, Event]]:
        """
        Find tickets for a buyer who has lost them.

        The email alone is not enough: it must come with the phone number or
        the recovery code printed on the ticket.
        """
        email = (email or "").strip().lower()
        phone = (phone or "").strip()
        token = normalize_code(recovery_token) if recovery_token else ""
        if not email or not (phone or token):
            raise ValidationError("Provide your email with your phone number or recovery code")

        query = self._with_event().where(func.lower(Ticket.email) == email)
        if token:
            query = query.where(Ticket.recovery_token == token)
        else:
            query = query.where(Ticket.phone == phone)
        result = await db.execute(query.order_by(Ticket.created_at.desc()))
        return list(result.all())

    async def get_by_code(self, db: AsyncSession, ticket_code: str) -> Ticket:
        ticket = (await db.execute(
            select(Ticket).where(Ticket.ticket_code == ticket_code)
        )).scalar_one_or_none()
        if not ticket:
            raise TicketNotFoundError(ticket_code)
        return ticket

    def tickets_query(self, event_id: Optional[str] = None, status: Optional[TicketStatus] = None):
        query = select(Ticket)
        if event_id:
            query = query.where(Ticket.event_id == str(event_id))
        if status:
            query = query.where(Ticket.status == TicketStatus(status))
        return query.order_by(Ticket.created_at.desc())

    # ==================== ADMISSION ====================

    async def check_in(self, db: AsyncSession, ticket_code: str) -> Ticket:
        ticket = await self.get_by_code(db, ticket_code)
        if ticket.status == TicketStatus.USED:
            raise ConflictError(f"Ticket {ticket_code} was already checked in")
        if ticket.status == TicketStatus.CANCELLED:
            raise ValidationError(f"Ticket {ticket_code} has been cancelled")

        ticket.status = TicketStatus.USED
        ticket.checked_in_at = datetime.utcnow()
        await db.flush()
        return ticket

    async def cancel(self, db: AsyncSession, ticket_code: str) -> Ticket:
        """Void a ticket and give its place back to the ticket type"""
        ticket = await self.get_by_code(db, ticket_code)
        if ticket.status == TicketStatus.CANCELLED:
            return ticket

        ticket.status = TicketStatus.CANCELLED
        if ticket.event_ticket_id:
            ticket_type = (await db.execute(
                select(EventTicketType).where(EventTicketType.id == ticket.event_ticket_id)
            )).scalar_one_or_none()
            if ticket_type and ticket_type.quantity_sold > 0:
                ticket_type.quantity_sold -= 1
        await db.flush()
        logger.info(f"[Tickets] Cancelled {ticket_code}")
        return ticket


# Singleton instance
ticket_service = TicketService()
