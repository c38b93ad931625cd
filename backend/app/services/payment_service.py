"""
Payment Service - wallet funding and event tickets through hosted checkouts

Flow:
1. initialize_payment: store a pending Payment, open a checkout with the provider
2. verify_payment (client return) or handle_webhook (provider push) settle it
3. A successful payment credits the wallet (wallet_funding) or issues the
   ticket (event_ticket) exactly once, keyed by reference
"""

import json
import time
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AuthorizationError,
    GatewayNotConfiguredError,
    InvalidSignatureError,
    PaymentGatewayError,
    PaymentNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.security import generate_reference_suffix
from app.models.payment import (
    Payment,
    PaymentGateway,
    PaymentProvider,
    PaymentStatus,
    PaymentTransaction,
    PaymentType,
)
from app.models.user import User
from app.models.wallet import WalletTransactionSource
from app.modules.payments import get_provider, VerificationResult
from app.services.ticket_service import ticket_service
from app.services.wallet_service import wallet_service


def generate_payment_reference(payment_type: PaymentType) -> str:
    """WALLET_FUNDING_<epoch ms>_<9 random chars>"""
    millis = int(time.time() * 1000)
    return f"{PaymentType(payment_type).value.upper()}_{millis}_{generate_reference_suffix(9)}"


class PaymentService:
    """Service for payment gateways, wallet funding and ticket checkouts"""

    # ==================== GATEWAYS ====================

    async def get_gateway(self, db: AsyncSession, provider: PaymentProvider) -> Optional[PaymentGateway]:
        result = await db.execute(select(PaymentGateway).where(PaymentGateway.provider == PaymentProvider(provider)))
        return result.scalar_one_or_none()

    async def get_enabled_gateway(self, db: AsyncSession, provider: PaymentProvider) -> Optional[PaymentGateway]:
        """Enabled gateway for provider. Demo needs no row, only PAYMENT_DEMO_ENABLED."""
        provider = PaymentProvider(provider)
        if provider == PaymentProvider.DEMO:
            if not settings.PAYMENT_DEMO_ENABLED:
                raise GatewayNotConfiguredError(provider.value)
            return None

        gateway = await self.get_gateway(db, provider)
        if not gateway or not gateway.enabled or not gateway.secret_key:
            raise GatewayNotConfiguredError(provider.value)
        return gateway

    async def list_enabled_gateways(self, db: AsyncSession) -> List[Dict[str, Any]]:
        result = await db.execute(
            select(PaymentGateway).where(PaymentGateway.enabled.is_(True)).order_by(PaymentGateway.provider)
        )
        gateways = [
            {"provider": g.provider, "business_name": g.business_name, "mode": g.mode, "public_key": g.public_key}
            for g in result.scalars().all()
        ]
        if settings.PAYMENT_DEMO_ENABLED:
            gateways.append({"provider": PaymentProvider.DEMO, "business_name": settings.APP_NAME, "mode": "test", "public_key": None})
        return gateways

    # ==================== INITIALIZE ====================

    def validate_amount(self, amount: int) -> None:
        if amount < settings.WALLET_MIN_FUNDING:
            raise ValidationError(
                f"Minimum funding amount is ₦{settings.WALLET_MIN_FUNDING / 100:,.0f}", field="amount"
            )
        if amount > settings.WALLET_MAX_FUNDING:
            raise ValidationError(
                f"Maximum funding amount is ₦{settings.WALLET_MAX_FUNDING / 100:,.0f}", field="amount"
            )

    async def initialize_payment(
        self,
        db: AsyncSession,
        user: User,
        amount: int,
        provider: PaymentProvider,
        payment_type: PaymentType = PaymentType.WALLET_FUNDING,
        callback_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Payment:
        """
        Create a pending payment and a provider checkout for it.

        The pending row is committed before the provider is called so a
        provider failure still leaves a failed record behind. ``metadata`` is
        kept on the payment (event_id, event_ticket_id for tickets) and sent
        to the provider.

        Funding limits apply to wallet_funding only; ticket prices are set by
        the event.
        """
        payment_type = PaymentType(payment_type)
        if payment_type == PaymentType.WALLET_FUNDING:
            self.validate_amount(amount)
        elif amount <= 0:
            raise ValidationError("Amount must be positive", field="amount")
        provider = PaymentProvider(provider)
        gateway = await self.get_enabled_gateway(db, provider)

        payment = Payment(
            payment_reference=generate_payment_reference(payment_type),
            user_id=str(user.id),
            amount=amount,
            currency=settings.CURRENCY,
            email=user.email,
            full_name=user.full_name,
            phone=user.phone,
            payment_type=payment_type,
            payment_method=provider,
            payment_status=PaymentStatus.PENDING,
            extra_data=dict(metadata or {}),
        )
        db.add(payment)
        await db.commit()

        client = get_provider(provider, gateway)
        try:
            session = await client.initialize(
                reference=payment.payment_reference,
                amount=amount,
                email=user.email,
                callback_url=callback_url or settings.PAYMENT_CALLBACK_URL,
                full_name=user.full_name,
                phone=user.phone,
                metadata={**(metadata or {}), "user_id": str(user.id), "payment_type": payment_type.value},
            )
        except PaymentGatewayError as e:
            payment.payment_status = PaymentStatus.FAILED
            payment.failure_reason = e.message[:500]
            await db.commit()
            logger.log_payment_event("initialize_failed", payment.payment_reference, provider.value, amount, "failed")
            raise

        payment.checkout_url = session.checkout_url
        if session.provider_reference and session.provider_reference != payment.payment_reference:
            payment.transaction_id = session.provider_reference
        if session.access_code:
            payment.extra_data = {**(payment.extra_data or {}), "access_code": session.access_code}
        await db.flush()

        logger.log_payment_event("initialized", payment.payment_reference, provider.value, amount, "pending")
        return payment

    # ==================== LOOKUP ====================

    async def get_payment(self, db: AsyncSession, reference: str, lock: bool = False) -> Payment:
        query = select(Payment).where(Payment.payment_reference == reference)
        if lock:
            query = query.with_for_update()
        payment = (await db.execute(query)).scalar_one_or_none()
        if not payment:
            raise PaymentNotFoundError(reference)
        return payment

    def payments_query(
        self,
        user_id: Optional[str] = None,
        status: Optional[PaymentStatus] = None,
        provider: Optional[PaymentProvider] = None,
    ):
        query = select(Payment)
        if user_id:
            query = query.where(Payment.user_id == str(user_id))
        if status:
            query = query.where(Payment.payment_status == PaymentStatus(status))
        if provider:
            query = query.where(Payment.payment_method == PaymentProvider(provider))
        return query.order_by(Payment.created_at.desc())

    # ==================== SETTLEMENT ====================

    async def _record_event(self, db: AsyncSession, payment: Optional[Payment], provider: PaymentProvider,
                            event: str, payload: Dict[str, Any], reference: Optional[str] = None) -> None:
        db.add(PaymentTransaction(
            payment_id=payment.id if payment else None,
            payment_reference=payment.payment_reference if payment else reference,
            provider=PaymentProvider(provider),
            event=event,
            payload=payload,
        ))

    async def _settle(self, db: AsyncSession, payment: Payment, result: VerificationResult) -> Payment:
        """Apply a provider result; credits the wallet or issues the ticket at most once per payment"""
        if payment.payment_status == PaymentStatus.SUCCESSFUL:
            return payment

        if result.status == PaymentStatus.SUCCESSFUL:
            if result.amount is not None and result.amount < payment.amount:
                payment.payment_status = PaymentStatus.FAILED
                payment.failure_reason = f"Amount mismatch: expected {payment.amount}, got {result.amount}"
                logger.warning(f"[Payment] {payment.payment_reference}: {payment.failure_reason}")
                await db.flush()
                return payment

            payment.payment_status = PaymentStatus.SUCCESSFUL
            payment.paid_at = datetime.utcnow()
            payment.failure_reason = None
            if result.transaction_id:
                payment.transaction_id = result.transaction_id

            if payment.payment_type == PaymentType.WALLET_FUNDING and payment.user_id and not payment.wallet_transaction_id:
                existing = await wallet_service.find_transaction_by_reference(db, payment.payment_reference)
                if existing:
                    payment.wallet_transaction_id = existing.id
                else:
                    txn = await wallet_service.credit(
                        db,
                        payment.user_id,
                        payment.amount,
                        source=WalletTransactionSource.FUNDING,
                        description=f"Wallet funding via {PaymentProvider(payment.payment_method).value.capitalize()}",
                        reference=payment.payment_reference,
                        metadata={"provider": PaymentProvider(payment.payment_method).value},
                    )
                    payment.wallet_transaction_id = txn.id

            elif payment.payment_type == PaymentType.EVENT_TICKET:
                await ticket_service.issue_for_payment(db, payment)

        elif result.status == PaymentStatus.FAILED:
            payment.payment_status = PaymentStatus.FAILED
            payment.failure_reason = "Declined by provider"

        await db.flush()
        logger.log_payment_event(
            "settled", payment.payment_reference, PaymentProvider(payment.payment_method).value,
            payment.amount, PaymentStatus(payment.payment_status).value,
        )
        return payment

    async def verify_payment(self, db: AsyncSession, reference: str, user: Optional[User] = None) -> Tuple[Payment, bool]:
        """
        Ask the provider about a payment and settle it.

        Returns:
            (payment, already_settled) - already_settled is True when the
            payment was successful before this call and nothing was credited
        """
        payment = await self.get_payment(db, reference, lock=True)
        if user is not None and str(payment.user_id) != str(user.id):
            raise AuthorizationError("This payment belongs to another user")

        if payment.payment_status == PaymentStatus.SUCCESSFUL:
            return payment, True

        provider = PaymentProvider(payment.payment_method)
        gateway = await self.get_enabled_gateway(db, provider)
        result = await get_provider(provider, gateway).verify(reference)

        await self._record_event(db, payment, provider, "verify", result.raw)
        await self._settle(db, payment, result)
        return payment, False

    async def handle_webhook(
        self,
        db: AsyncSession,
        provider: PaymentProvider,
        body: bytes,
        headers: Mapping[str, str],
    ) -> Dict[str, Any]:
        """
        Verify a provider push and settle the referenced payment.

        Raises:
            InvalidSignatureError: signature missing or wrong
        """
        provider = PaymentProvider(provider)
        gateway = await self.get_gateway(db, provider)
        if not gateway or not gateway.secret_key:
            raise GatewayNotConfiguredError(provider.value)

        client = get_provider(provider, gateway)
        if not client.verify_webhook(body, headers):
            logger.warning(f"[Payment] Rejected {provider.value} webhook with bad signature")
            raise InvalidSignatureError()

        try:
            event = json.loads(body)
        except ValueError:
            raise ValidationError("Webhook body is not valid JSON")

        parsed = client.parse_webhook(event)
        if parsed is None:
            logger.info(f"[Payment] Ignored {provider.value} webhook event {event.get('event')}")
            return {"status": "ignored", "event": event.get("event")}

        reference, result = parsed
        payment = (await db.execute(
            select(Payment).where(Payment.payment_reference == reference).with_for_update()
        )).scalar_one_or_none()

        await self._record_event(db, payment, provider, f"webhook:{event.get('event')}", event, reference=reference)

        if not payment:
            logger.warning(f"[Payment] Webhook for unknown reference {reference}")
            return {"status": "unknown_reference", "reference": reference}

        if payment.payment_status == PaymentStatus.SUCCESSFUL:
            return {"status": "already_processed", "reference": reference}

        await self._settle(db, payment, result)
        return {"status": PaymentStatus(payment.payment_status).value, "reference": reference}


# Singleton instance
payment_service = PaymentService()
