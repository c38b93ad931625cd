"""Korapay checkout."""

import hashlib
from typing import Any, Dict, Mapping, Optional, Tuple

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError
from app.core.security import verify_hmac_signature
from app.models.payment import PaymentStatus
from app.modules.payments.base import (
    CheckoutSession,
    PaymentProviderClient,
    VerificationResult,
    kobo_to_naira,
    naira_to_kobo,
)


class KorapayProvider(PaymentProviderClient):
    """Korapay takes and reports amounts in naira; webhooks are HMAC-SHA256 signed."""

    name = "korapay"
    SIGNATURE_HEADER = "x-korapay-signature"

    @property
    def base_url(self) -> str:
        return settings.KORAPAY_BASE_URL

    async def initialize(
        self,
        reference: str,
        amount: int,
        email: str,
        callback_url: str,
        full_name: Optional[str] = None,
        phone: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CheckoutSession:
        payload = {
            "reference": reference,
            "amount": kobo_to_naira(amount),
            "currency": settings.CURRENCY,
            "redirect_url": callback_url,
            "customer": {"email": email, "name": full_name or email},
            "metadata": metadata or {},
        }
        if self.gateway and self.gateway.webhook_url:
            payload["notification_url"] = self.gateway.webhook_url

        body = await self._request("POST", "/merchant/api/v1/charges/initialize", json=payload)
        data = body.get("data") or {}
        if not body.get("status") or not data.get("checkout_url"):
            raise PaymentGatewayError(self.name, body.get("message") or "Initialization failed")

        return CheckoutSession(checkout_url=data["checkout_url"], provider_reference=data.get("reference"), raw=body)

    async def verify(self, reference: str) -> VerificationResult:
        body = await self._request("GET", f"/merchant/api/v1/charges/{reference}")
        data = body.get("data") or {}
        return VerificationResult(
            status=self._map_status(data.get("status")),
            amount=naira_to_kobo(data.get("amount")),
            transaction_id=data.get("payment_reference") or data.get("reference"),
            raw=body,
        )

    def verify_webhook(self, body: bytes, headers: Mapping[str, str]) -> bool:
        return verify_hmac_signature(self.secret_key, body, headers.get(self.SIGNATURE_HEADER), hashlib.sha256)

    def parse_webhook(self, event: Dict[str, Any]) -> Optional[Tuple[str, VerificationResult]]:
        data = event.get("data") or {}
        reference = data.get("reference")
        if not reference or not str(event.get("event", "")).startswith("charge."):
            return None
        return reference, VerificationResult(
            status=self._map_status(data.get("status")),
            amount=naira_to_kobo(data.get("amount")),
            transaction_id=data.get("payment_reference") or data.get("korapay_reference"),
            raw=event,
        )

    @staticmethod
    def _map_status(status: Optional[str]) -> PaymentStatus:
        if status in ("success", "successful"):
            return PaymentStatus.SUCCESSFUL
        if status in ("failed", "expired"):
            return PaymentStatus.FAILED
        return PaymentStatus.PENDING
