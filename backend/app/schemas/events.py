"""Events, ticket types and issued tickets"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from app.models.event import TicketStatus
from app.models.payment import PaymentProvider


class EventCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    event_date: datetime
    event_type: str = Field("general", max_length=50)
    image_url: Optional[str] = None
    gallery: List[str] = []
    price: int = Field(0, ge=0, description="Display price in kobo")
    slug: Optional[str] = Field(None, max_length=280)
    published: bool = False


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    event_date: Optional[datetime] = None
    event_type: Optional[str] = Field(None, max_length=50)
    image_url: Optional[str] = None
    gallery: Optional[List[str]] = None
    price: Optional[int] = Field(None, ge=0)
    slug: Optional[str] = Field(None, max_length=280)
    published: Optional[bool] = None


class EventResponse(BaseModel):
    id: str
    title: str
    slug: str
    description: Optional[str] = None
    location: Optional[str] = None
    event_date: datetime
    event_type: str
    image_url: Optional[str] = None
    gallery: Optional[List[str]] = None
    price: int
    published: bool
    has_tickets: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TicketTypeCreate(BaseModel):
    ticket_type: str = Field("general", min_length=1, max_length=50)
    price: int = Field(0, ge=0, description="Kobo; 0 is free")
    quantity_total: int = Field(100, ge=1)
    is_active: bool = True


class TicketTypeUpdate(BaseModel):
    ticket_type: Optional[str] = Field(None, min_length=1, max_length=50)
    price: Optional[int] = Field(None, ge=0)
    quantity_total: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None


class TicketTypeResponse(BaseModel):
    id: str
    event_id: str
    ticket_type: str
    price: int
    quantity_total: int
    quantity_sold: int
    quantity_available: int
    is_active: bool

    class Config:
        from_attributes = True


class TicketPurchaseRequest(BaseModel):
    ticket_type_id: str
    provider: PaymentProvider = PaymentProvider.PAYSTACK
    pay_with_wallet: bool = False
    callback_url: Optional[str] = None


class TicketPurchaseResponse(BaseModel):
    """Either a ticket (free or wallet) or a checkout to complete"""
    status: str
    ticket: Optional["TicketResponse"] = None
    reference: Optional[str] = None
    payment_url: Optional[str] = None
    amount: int


class TicketRecoveryRequest(BaseModel):
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    recovery_token: Optional[str] = Field(None, max_length=16)


class TicketResponse(BaseModel):
    id: str
    ticket_code: str
    recovery_token: str
    status: TicketStatus
    full_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    amount_paid: int
    event_id: str
    event_ticket_id: Optional[str] = None
    checked_in_at: Optional[datetime] = None
    created_at: datetime
    event_title: Optional[str] = None
    event_date: Optional[datetime] = None
    event_location: Optional[str] = None

    class Config:
        from_attributes = True

    @classmethod
    def with_event(cls, ticket, event=None) -> "TicketResponse":
        response = cls.model_validate(ticket)
        if event is not None:
            response.event_title = event.title
            response.event_date = event.event_date
            response.event_location = event.location
        return response


TicketPurchaseResponse.model_rebuild()
