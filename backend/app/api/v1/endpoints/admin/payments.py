"""
Admin payment management: gateway credentials and the payment ledger.
"""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List, Optional

from app.api.v1.endpoints.payments import payment_serializer
from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.core.logging_config import logger
from app.models import User, Payment, PaymentGateway, PaymentProvider, PaymentStatus
from app.modules.auth.dependencies import get_current_admin
from app.schemas.payments import PaymentGatewayUpsert, PaymentGatewayResponse, PaymentResponse
from app.services.audit_service import log_action
from app.services.payment_service import payment_service
from app.utils.pagination import paginate

gateways_router = APIRouter()
router = APIRouter()

SECRET_FIELDS = ("secret_key", "encryption_key")


@gateways_router.get("", response_model=List[PaymentGatewayResponse])
async def list_payment_gateways(
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """All configured gateways with secrets masked"""
    result = await db.execute(select(PaymentGateway).order_by(PaymentGateway.provider))
    return [PaymentGatewayResponse.masked(gateway) for gateway in result.scalars().all()]


@gateways_router.put("/{provider}", response_model=PaymentGatewayResponse)
async def upsert_payment_gateway(
    provider: PaymentProvider,
    data: PaymentGatewayUpsert,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    """
    Create or update a gateway.

    Blank secret fields keep the stored value so the masked values shown in
    the dashboard can be sent back unchanged.
    """
    if provider == PaymentProvider.DEMO:
        raise ValidationError("The demo provider is configured through PAYMENT_DEMO_ENABLED", field="provider")

    gateway = await payment_service.get_gateway(db, provider)
    created = gateway is None
    if created:
        gateway = PaymentGateway(provider=provider)
        db.add(gateway)

    update_data = data.model_dump(exclude_unset=True)
    changed = []
    for field, value in update_data.items():
        if field in SECRET_FIELDS and (not value or "*" in value):
            continue
        setattr(gateway, field, value)
        changed.append(field)

    if gateway.enabled and not gateway.secret_key:
        raise ValidationError("A secret key is required to enable the gateway", field="secret_key")

    await db.flush()
    await log_action(db, current_admin.id, "payment_gateway_created" if created else "payment_gateway_updated",
                     "payment_gateway", provider.value, details={"fields": changed}, request=request)
    await db.commit()
    await db.refresh(gateway)

    logger.info(f"[Payments] Gateway {provider.value} updated by {current_admin.email}")
    return PaymentGatewayResponse.masked(gateway)


@router.get("")
async def list_payments(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[PaymentStatus] = None,
    provider: Optional[PaymentProvider] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    query = payment_service.payments_query(user_id, status, provider)
    if search:
        search_term = f"%{search}%"
        query = query.where(Payment.payment_reference.ilike(search_term) | Payment.email.ilike(search_term))
    return await paginate(db, query, page, page_size, serializer=payment_serializer)


@router.get("/{reference}", response_model=PaymentResponse)
async def get_payment(
    reference: str,
    db: AsyncSession = Depends(get_db),
    current_admin: User = Depends(get_current_admin)
):
    return await payment_service.get_payment(db, reference)
