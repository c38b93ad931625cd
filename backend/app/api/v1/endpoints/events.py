"""
Campus events and tickets.

Visitors see published upcoming events. Signed-in users buy tickets with
their wallet or through a provider checkout; buyers who lose a ticket can
find it again with their email plus phone number or recovery code.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.rate_limiter import limiter, PAYMENT_LIMIT, TICKET_RECOVERY_LIMIT
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.events import (
    EventResponse,
    TicketTypeResponse,
    TicketPurchaseRequest,
    TicketPurchaseResponse,
    TicketRecoveryRequest,
    TicketResponse,
)
from app.services.event_service import event_service
from app.services.ticket_service import ticket_service
from app.utils.pagination import paginate

router = APIRouter()
tickets_router = APIRouter()


async def event_views(db: AsyncSession, events) -> List[dict]:
    """Serialize events with has_tickets filled in"""
    ticketed = await event_service.ticketed_event_ids(db, [e.id for e in events])
    views = []
    for event in events:
        view = EventResponse.model_validate(event)
        view.has_tickets = event.id in ticketed
        views.append(view.model_dump())
    return views


# ==================== EVENTS ====================

@router.get("")
async def list_events(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """Published upcoming events, soonest first"""
    result = await paginate(db, event_service.events_query(search=search), page, page_size)
    result["items"] = await event_views(db, result["items"])
    return result


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, db: AsyncSession = Depends(get_db)):
    """By id or slug"""
    event = await event_service.get_published_event(db, event_id)
    return (await event_views(db, [event]))[0]


@router.get("/{event_id}/tickets", response_model=List[TicketTypeResponse])
async def list_ticket_types(event_id: str, db: AsyncSession = Depends(get_db)):
    """Ticket types on sale, cheapest first"""
    event = await event_service.get_published_event(db, event_id)
    return await event_service.list_ticket_types(db, event.id, active_only=True)


@router.post("/{event_id}/tickets/purchase", response_model=TicketPurchaseResponse,
             status_code=status.HTTP_201_CREATED)
@limiter.limit(PAYMENT_LIMIT)
async def purchase_ticket(
    request: Request,
    event_id: str,
    data: TicketPurchaseRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Buy one ticket (rate limited: 10/min).

    Free tickets and wallet purchases come back issued. Otherwise the response
    carries a checkout URL and the ticket is issued when the payment is
    verified through /payments/verify or the provider webhook.
    """
    outcome = await event_service.purchase(
        db,
        current_user,
        event_id,
        data.ticket_type_id,
        provider=data.provider,
        pay_with_wallet=data.pay_with_wallet,
        callback_url=data.callback_url,
    )
    await db.commit()

    if outcome["status"] == "pending":
        payment = outcome["payment"]
        return {
            "status": "pending",
            "reference": payment.payment_reference,
            "payment_url": payment.checkout_url,
            "amount": outcome["amount"],
        }
    return {
        "status": "issued",
        "ticket": TicketResponse.model_validate(outcome["ticket"]),
        "amount": outcome["amount"],
    }


# ==================== TICKETS ====================

@tickets_router.get("/mine", response_model=List[TicketResponse])
async def my_tickets(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    rows = await ticket_service.tickets_for_user(db, current_user.id)
    return [TicketResponse.with_event(ticket, event) for ticket, event in rows]


@tickets_router.post("/recover", response_model=List[TicketResponse])
@limiter.limit(TICKET_RECOVERY_LIMIT)
async def recover_tickets(
    request: Request,
    data: TicketRecoveryRequest,
    db: AsyncSession = Depends(get_db)
):
    """Email plus phone number or recovery code (rate limited: 5/min)"""
    rows = await ticket_service.recover(db, data.email, phone=data.phone, recovery_token=data.recovery_token)
    return [TicketResponse.with_event(ticket, event) for ticket, event in rows]
