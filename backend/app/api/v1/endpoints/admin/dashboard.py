"""
Admin Dashboard endpoints - KPIs and recent activity.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime, timedelta

from app.core.database import get_db
from app.models import (
    User, Faculty, Department, Lecture, Exam, CommunityMessage, ContactMessage, ContactMessageStatus,
    Wallet, MessageAd, Payment, PaymentStatus, RoleRequest, RoleRequestStatus, AuditLog,
)
from app.modules.auth.dependencies import get_current_admin

router = APIRouter()


async def _count(db: AsyncSession, column, *conditions) -> int:
    query = select(func.count(column))
    if conditions:
        query = query.where(*conditions)
    return await db.scalar(query) or 0


@router.get("")
@router.get("/stats")
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Get dashboard KPI statistics (money in kobo)"""
    now = datetime.utcnow()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    week_start = today_start - timedelta(days=7)

    total_balance = await db.scalar(select(func.coalesce(func.sum(Wallet.balance), 0)))
    total_credited = await db.scalar(select(func.coalesce(func.sum(Wallet.total_credited), 0)))
    payment_volume = await db.scalar(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.payment_status == PaymentStatus.SUCCESSFUL
        )
    )
    ad_revenue = await db.scalar(select(func.coalesce(func.sum(MessageAd.cost), 0)))

    return {
        "users": {
            "total": await _count(db, User.id),
            "active": await _count(db, User.id, User.is_active.is_(True)),
            "new_today": await _count(db, User.id, User.created_at >= today_start),
            "new_this_week": await _count(db, User.id, User.created_at >= week_start),
        },
        "academics": {
            "faculties": await _count(db, Faculty.id),
            "departments": await _count(db, Department.id),
            "lectures": await _count(db, Lecture.id),
            "upcoming_exams": await _count(db, Exam.id, Exam.exam_date >= today_start.date()),
        },
        "community": {
            "messages": await _count(db, CommunityMessage.id),
            "messages_this_week": await _count(db, CommunityMessage.id, CommunityMessage.created_at >= week_start),
            "unread_contact_messages": await _count(
                db, ContactMessage.id, ContactMessage.status == ContactMessageStatus.NEW
            ),
        },
        "wallets": {
            "total_balance": int(total_balance or 0),
            "total_credited": int(total_credited or 0),
        },
        "payments": {
            "successful": await _count(db, Payment.id, Payment.payment_status == PaymentStatus.SUCCESSFUL),
            "pending": await _count(db, Payment.id, Payment.payment_status == PaymentStatus.PENDING),
            "failed": await _count(db, Payment.id, Payment.payment_status == PaymentStatus.FAILED),
            "volume": int(payment_volume or 0),
        },
        "ads": {
            "active": await _count(db, MessageAd.id, MessageAd.is_active.is_(True), MessageAd.expires_at > now),
            "total": await _count(db, MessageAd.id),
            "revenue": int(ad_revenue or 0),
        },
        "pending_role_requests": await _count(
            db, RoleRequest.id, RoleRequest.status == RoleRequestStatus.PENDING
        ),
    }


@router.get("/activity")
async def get_recent_activity(
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """Latest audit entries"""
    result = await db.execute(
        select(AuditLog, User.email)
        .outerjoin(User, AuditLog.actor_id == User.id)
        .order_by(AuditLog.created_at.desc())
        .limit(limit)
    )
    return [
        {
            "id": log.id,
            "action": log.action,
            "target_type": log.target_type,
            "target_id": log.target_id,
            "actor_email": email,
            "created_at": log.created_at,
        }
        for log, email in result.all()
    ]
