"""
Campus events, their ticket types and issued tickets.
"""

from sqlalchemy import (
    Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Enum as SQLEnum, JSON, Index, UniqueConstraint,
)
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class TicketStatus(str, enum.Enum):
    ACTIVE = "active"
    USED = "used"
    CANCELLED = "cancelled"


class Event(Base):
    __tablename__ = "events"

    __table_args__ = (
        Index('ix_events_published_date', 'published', 'event_date'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    slug = Column(String(280), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    event_date = Column(DateTime, nullable=False)
    event_type = Column(String(50), default="general", nullable=False)

    image_url = Column(Text, nullable=True)
    gallery = Column(JSON, default=list)

    # Display price in kobo; what a buyer pays comes from the ticket type
    price = Column(Integer, default=0, nullable=False)
    published = Column(Boolean, default=False, nullable=False)

    created_by = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Event {self.slug}>"

    def is_upcoming(self, now: datetime = None) -> bool:
        return self.event_date >= (now or datetime.utcnow())


class EventTicketType(Base):
    """A priced allocation of tickets for one event (general, VIP, ...)"""
    __tablename__ = "event_tickets"

    __table_args__ = (
        UniqueConstraint('event_id', 'ticket_type', name='uq_event_ticket_type'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_type = Column(String(50), default="general", nullable=False)

    # Kobo; zero means the ticket is free
    price = Column(Integer, default=0, nullable=False)
    quantity_total = Column(Integer, default=100, nullable=False)
    quantity_sold = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def quantity_available(self) -> int:
        return max(self.quantity_total - self.quantity_sold, 0)


class Ticket(Base):
    """An admission issued to a buyer"""
    __tablename__ = "tickets"

    __table_args__ = (
        Index('ix_tickets_email', 'email'),
        Index('ix_tickets_user', 'user_id'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    event_ticket_id = Column(GUID, ForeignKey("event_tickets.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # One ticket per settled payment
    payment_id = Column(GUID, ForeignKey("payments.id", ondelete="SET NULL"), unique=True, nullable=True)

    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)

    ticket_code = Column(String(120), unique=True, nullable=False)
    # Short code a buyer can use to find the ticket again without logging in
    recovery_token = Column(String(16), unique=True, nullable=False)
    amount_paid = Column(Integer, default=0, nullable=False)

    status = Column(SQLEnum(TicketStatus), default=TicketStatus.ACTIVE, nullable=False)
    checked_in_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Ticket {self.ticket_code} ({self.status})>"
