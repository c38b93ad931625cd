"""
Admin event, ticket type and ticket management.
"""
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.models import User, Ticket, TicketStatus
from app.modules.auth.dependencies import get_current_admin
from app.schemas.events import (
    EventCreate,
    EventUpdate,
    EventResponse,
    TicketTypeCreate,
    TicketTypeUpdate,
    TicketTypeResponse,
    TicketResponse,
)
from app.services.audit_service import log_action
from app.services.event_service import event_service
from app.services.ticket_service import ticket_service
from app.utils.csv_export import csv_response
from app.utils.pagination import paginate
from app.api.v1.endpoints.events import event_views

router = APIRouter()
ticket_types_router = APIRouter()
tickets_router = APIRouter()

TICKET_CSV_HEADER = ["Ticket Code", "Status", "Name", "Email", "Phone", "Amount (kobo)", "Issued", "Checked In"]


def ticket_serializer(ticket: Ticket) -> dict:
    return TicketResponse.model_validate(ticket).model_dump()


# ==================== EVENTS ====================

@router.get("")
async def list_events(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    include_past: bool = True,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All events, drafts included"""
    query = event_service.events_query(published_only=False, upcoming_only=not include_past, search=search)
    result = await paginate(db, query, page, page_size)
    result["items"] = await event_views(db, result["items"])
    return result


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    data: EventCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    event = await event_service.create_event(db, data.model_dump(), created_by=current_admin.id)
    await log_action(db, current_admin.id, "event_created", "event", event.id,
                     details={"title": event.title, "slug": event.slug}, request=request)
    await db.commit()
    await db.refresh(event)
    return event


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    data: EventUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    event = await event_service.update_event(db, event_id, update_data)
    await log_action(db, current_admin.id, "event_updated", "event", event.id,
                     details={"fields": sorted(update_data)}, request=request)
    await db.commit()
    await db.refresh(event)
    return (await event_views(db, [event]))[0]


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    event = await event_service.get_event(db, event_id)
    details = {"title": event.title, "slug": event.slug}
    target_id = event.id
    await event_service.delete_event(db, target_id)
    await log_action(db, current_admin.id, "event_deleted", "event", target_id, details=details, request=request)
    await db.commit()
    return {"success": True, "message": "Event deleted"}


@router.get("/{event_id}/ticket-types", response_model=List[TicketTypeResponse])
async def list_ticket_types(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    event = await event_service.get_event(db, event_id)
    return await event_service.list_ticket_types(db, event.id)


@router.post("/{event_id}/ticket-types", response_model=TicketTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket_type(
    event_id: str,
    data: TicketTypeCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    ticket_type = await event_service.create_ticket_type(db, event_id, data.model_dump())
    await log_action(db, current_admin.id, "ticket_type_created", "event_ticket", ticket_type.id,
                     details={"event_id": ticket_type.event_id, "ticket_type": ticket_type.ticket_type,
                              "price": ticket_type.price}, request=request)
    await db.commit()
    await db.refresh(ticket_type)
    return ticket_type


# ==================== TICKET TYPES ====================

@ticket_types_router.put("/{ticket_type_id}", response_model=TicketTypeResponse)
async def update_ticket_type(
    ticket_type_id: str,
    data: TicketTypeUpdate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    ticket_type = await event_service.update_ticket_type(db, ticket_type_id, update_data)
    await log_action(db, current_admin.id, "ticket_type_updated", "event_ticket", ticket_type.id,
                     details=update_data, request=request)
    await db.commit()
    await db.refresh(ticket_type)
    return ticket_type


@ticket_types_router.post("/{ticket_type_id}/toggle", response_model=TicketTypeResponse)
async def toggle_ticket_type(
    ticket_type_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    ticket_type = await event_service.toggle_ticket_type(db, ticket_type_id)
    await db.commit()
    await db.refresh(ticket_type)
    return ticket_type


@ticket_types_router.delete("/{ticket_type_id}")
async def delete_ticket_type(
    ticket_type_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    await event_service.delete_ticket_type(db, ticket_type_id)
    await log_action(db, current_admin.id, "ticket_type_deleted", "event_ticket", ticket_type_id, request=request)
    await db.commit()
    return {"success": True, "message": "Ticket type deleted"}


# ==================== TICKETS ====================

@tickets_router.get("")
async def list_tickets(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
    event_id: Optional[str] = None,
    status: Optional[TicketStatus] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = ticket_service.tickets_query(event_id=event_id, status=status)
    return await paginate(db, query, page, page_size, serializer=ticket_serializer)


@tickets_router.get("/export")
async def export_tickets(
    event_id: str = Query(...),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Door list for one event as CSV"""
    event = await event_service.get_event(db, event_id)
    tickets = (await db.execute(ticket_service.tickets_query(event_id=event.id))).scalars().all()
    rows = [
        [t.ticket_code, TicketStatus(t.status).value, t.full_name, t.email, t.phone,
         t.amount_paid, t.created_at, t.checked_in_at]
        for t in tickets
    ]
    return csv_response(f"tickets_{event.slug}.csv", TICKET_CSV_HEADER, rows)


@tickets_router.post("/{ticket_code}/check-in", response_model=TicketResponse)
async def check_in_ticket(
    ticket_code: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Admit the holder; a ticket can be used once"""
    ticket = await ticket_service.check_in(db, ticket_code)
    await log_action(db, current_admin.id, "ticket_checked_in", "ticket", ticket.id,
                     details={"ticket_code": ticket_code}, request=request)
    await db.commit()
    return ticket


@tickets_router.post("/{ticket_code}/cancel", response_model=TicketResponse)
async def cancel_ticket(
    ticket_code: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Void a ticket without a refund; its place goes back on sale"""
    ticket = await ticket_service.cancel(db, ticket_code)
    await log_action(db, current_admin.id, "ticket_cancelled", "ticket", ticket.id,
                     details={"ticket_code": ticket_code}, request=request)
    await db.commit()
    return ticket
