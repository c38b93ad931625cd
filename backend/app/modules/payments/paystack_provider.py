"""Paystack hosted checkout."""

import hashlib
from typing import Any, Dict, Mapping, Optional, Tuple

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError
from app.core.security import verify_hmac_signature
from app.models.payment import PaymentStatus
from app.modules.payments.base import CheckoutSession, PaymentProviderClient, VerificationResult


class PaystackProvider(PaymentProviderClient):
    """Paystack amounts are already in kobo."""

    name = "paystack"
    SIGNATURE_HEADER = "x-paystack-signature"

    @property
    def base_url(self) -> str:
        return settings.PAYSTACK_BASE_URL

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
        body = await self._request(
            "POST",
            "/transaction/initialize",
            json={
                "email": email,
                "amount": amount,
                "reference": reference,
                "currency": settings.CURRENCY,
                "callback_url": callback_url,
                "metadata": {**(metadata or {}), "full_name": full_name, "phone": phone},
            },
        )
        data = body.get("data") or {}
        if not body.get("status") or not data.get("authorization_url"):
            raise PaymentGatewayError(self.name, body.get("message") or "Initialization failed")

        return CheckoutSession(
            checkout_url=data["authorization_url"],
            provider_reference=data.get("reference"),
            access_code=data.get("access_code"),
            raw=body,
        )

    async def verify(self, reference: str) -> VerificationResult:
        body = await self._request("GET", f"/transaction/verify/{reference}")
        data = body.get("data") or {}
        return VerificationResult(
            status=self._map_status(data.get("status")),
            amount=data.get("amount"),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            raw=body,
        )

    def verify_webhook(self, body: bytes, headers: Mapping[str, str]) -> bool:
        return verify_hmac_signature(self.secret_key, body, headers.get(self.SIGNATURE_HEADER), hashlib.sha512)

    def parse_webhook(self, event: Dict[str, Any]) -> Optional[Tuple[str, VerificationResult]]:
        data = event.get("data") or {}
        reference = data.get("reference")
        if event.get("event") != "charge.success" or not reference:
            return None
        return reference, VerificationResult(
            status=PaymentStatus.SUCCESSFUL,
            amount=data.get("amount"),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            raw=event,
        )

    @staticmethod
    def _map_status(status: Optional[str]) -> PaymentStatus:
        if status == "success":
            return PaymentStatus.SUCCESSFUL
        if status in ("failed", "abandoned", "reversed"):
            return PaymentStatus.FAILED
        return PaymentStatus.PENDING
