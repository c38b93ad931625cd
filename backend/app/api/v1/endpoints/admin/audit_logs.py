"""
Admin Audit Logs endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, or_
from datetime import datetime
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.models import User, AuditLog
from app.modules.auth.dependencies import get_current_admin
from app.schemas.admin import AuditLogResponse
from app.utils.csv_export import csv_response
from app.utils.pagination import create_paginated_response

router = APIRouter()

EXPORT_LIMIT = 10000


def _parse_date(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date '{value}'", field=field)


def _audit_query(
    action: Optional[str],
    target_type: Optional[str],
    actor_id: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    search: Optional[str],
):
    # Outer join so system events without an actor are listed too
    query = select(AuditLog, User.email).outerjoin(User, AuditLog.actor_id == User.id)

    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if target_type:
        conditions.append(AuditLog.target_type == target_type)
    if actor_id:
        conditions.append(AuditLog.actor_id == actor_id)
    start = _parse_date(start_date, "start_date")
    if start:
        conditions.append(AuditLog.created_at >= start)
    end = _parse_date(end_date, "end_date")
    if end:
        conditions.append(AuditLog.created_at <= end)
    if search:
        search_term = f"%{search}%"
        conditions.append(or_(
            AuditLog.action.ilike(search_term),
            AuditLog.target_type.ilike(search_term),
            AuditLog.target_id.ilike(search_term),
        ))

    if conditions:
        query = query.where(and_(*conditions))
    return query


def _serialize(log: AuditLog, email: Optional[str]) -> dict:
    item = AuditLogResponse.model_validate(log)
    item.actor_email = email
    return item.model_dump()


@router.get("")
async def list_audit_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    actor_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """List audit logs with filtering and pagination"""
    query = _audit_query(action, target_type, actor_id, start_date, end_date, search)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    query = query.order_by(AuditLog.created_at.desc()).offset((page - 1) * page_size).limit(page_size)
    rows = (await db.execute(query)).all()

    items = [_serialize(log, email) for log, email in rows]
    return create_paginated_response(items, total, page, page_size)


@router.get("/actions", response_model=List[str])
async def list_actions(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Distinct action names, for filter dropdowns"""
    result = await db.execute(select(AuditLog.action).distinct().order_by(AuditLog.action))
    return [row[0] for row in result.all()]


@router.get("/target-types", response_model=List[str])
async def list_target_types(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    result = await db.execute(select(AuditLog.target_type).distinct().order_by(AuditLog.target_type))
    return [row[0] for row in result.all()]


@router.get("/export")
async def export_audit_logs(
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    actor_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Export audit logs to CSV"""
    query = _audit_query(action, target_type, actor_id, start_date, end_date, None)
    query = query.order_by(AuditLog.created_at.desc()).limit(EXPORT_LIMIT)
    rows = (await db.execute(query)).all()

    return csv_response(
        f"audit_logs_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv",
        ["ID", "Timestamp", "Actor", "Action", "Target Type", "Target ID", "IP Address", "Details"],
        [
            [log.id, log.created_at, email or "system", log.action, log.target_type,
             log.target_id, log.ip_address, log.details]
            for log, email in rows
        ],
    )
