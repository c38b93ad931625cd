"""
Wallet funding and event ticket payments.

Flow:
1. POST /payments/initialize (wallet top-up) or
   POST /events/{id}/tickets/purchase (ticket) -> checkout URL from the provider
2. The user pays on the provider page and is sent back to the client
3. POST /payments/verify (client) or the provider webhook settles the payment
   and credits the wallet or issues the ticket once
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.core.exceptions import AuthorizationError, ValidationError
from app.core.rate_limiter import limiter, PAYMENT_LIMIT
from app.models.payment import Payment, PaymentProvider, PaymentStatus, PaymentType
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_user_roles
from app.models.role import RoleName
from app.schemas.payments import (
    PaymentInitRequest,
    PaymentInitResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
    PaymentResponse,
    PublicGatewayResponse,
)
from app.services.payment_service import payment_service
from app.services.settings_service import get_setting_value
from app.services.ticket_service import ticket_service
from app.services.wallet_service import wallet_service
from app.utils.pagination import paginate

router = APIRouter()


def payment_serializer(payment: Payment) -> dict:
    return PaymentResponse.model_validate(payment).model_dump()


@router.get("/gateways", response_model=List[PublicGatewayResponse])
async def list_gateways(db: AsyncSession = Depends(get_db)):
    """Enabled providers the client can offer (no secrets)"""
    return await payment_service.list_enabled_gateways(db)


@router.post("/initialize", response_model=PaymentInitResponse)
@limiter.limit(PAYMENT_LIMIT)
async def initialize_payment(
    request: Request,
    data: PaymentInitRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Start a wallet top-up (rate limited: 10/min).

    Amount is in kobo and must be within the configured funding limits.
    """
    if not await get_setting_value(db, "features.wallet_funding_enabled", True):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Wallet funding is currently disabled"
        )
    if data.payment_type != PaymentType.WALLET_FUNDING:
        raise ValidationError("Tickets are bought through /events/{event_id}/tickets/purchase", field="payment_type")

    payment = await payment_service.initialize_payment(
        db,
        current_user,
        amount=data.amount,
        provider=data.provider,
        payment_type=data.payment_type,
        callback_url=data.callback_url,
    )
    await db.commit()

    return {
        "reference": payment.payment_reference,
        "payment_url": payment.checkout_url,
        "payment_id": payment.id,
        "provider": payment.payment_method,
        "amount": payment.amount,
    }


@router.post("/verify", response_model=PaymentVerifyResponse)
async def verify_payment(
    data: PaymentVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Settle a payment after the checkout redirect. Safe to call repeatedly."""
    payment, already_processed = await payment_service.verify_payment(db, data.reference, current_user)
    await db.commit()

    wallet = await wallet_service.get_wallet(db, current_user.id)
    ticket = None
    if payment.payment_type == PaymentType.EVENT_TICKET:
        ticket = await ticket_service.get_for_payment(db, payment.id)
    return {
        "status": payment.payment_status,
        "already_processed": already_processed,
        "payment": payment,
        "wallet_balance": wallet.balance,
        "ticket_code": ticket.ticket_code if ticket else None,
    }


async def _handle_webhook(provider: PaymentProvider, request: Request, db: AsyncSession) -> dict:
    body = await request.body()
    result = await payment_service.handle_webhook(db, provider, body, request.headers)
    await db.commit()
    return result


@router.post("/webhook/paystack")
async def paystack_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Signed with HMAC-SHA512 of the raw body (x-paystack-signature)"""
    return await _handle_webhook(PaymentProvider.PAYSTACK, request, db)


@router.post("/webhook/flutterwave")
async def flutterwave_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Carries the dashboard secret hash in the verif-hash header"""
    return await _handle_webhook(PaymentProvider.FLUTTERWAVE, request, db)


@router.post("/webhook/korapay")
async def korapay_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """Signed with HMAC-SHA256 (x-korapay-signature)"""
    return await _handle_webhook(PaymentProvider.KORAPAY, request, db)


@router.get("/history")
async def payment_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[PaymentStatus] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    query = payment_service.payments_query(user_id=current_user.id, status=status)
    return await paginate(db, query, page, page_size, serializer=payment_serializer)


@router.get("/{reference}", response_model=PaymentResponse)
async def get_payment(
    reference: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    payment = await payment_service.get_payment(db, reference)
    if payment.user_id != current_user.id and RoleName.ADMIN not in await get_user_roles(db, current_user):
        raise AuthorizationError("This payment belongs to another user")
    return payment
