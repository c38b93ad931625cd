"""Flutterwave Standard checkout."""

from typing import Any, Dict, Mapping, Optional, Tuple

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError
from app.core.security import constant_time_equals
from app.models.payment import PaymentStatus
from app.modules.payments.base import (
    CheckoutSession,
    PaymentProviderClient,
    VerificationResult,
    kobo_to_naira,
    naira_to_kobo,
)


class FlutterwaveProvider(PaymentProviderClient):
    """Flutterwave takes and reports amounts in naira."""

    name = "flutterwave"
    SIGNATURE_HEADER = "verif-hash"

    @property
    def base_url(self) -> str:
        return settings.FLUTTERWAVE_BASE_URL

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
        business = self.gateway.business_name if self.gateway and self.gateway.business_name else settings.APP_NAME
        body = await self._request(
            "POST",
            "/v3/payments",
            json={
                "tx_ref": reference,
                "amount": kobo_to_naira(amount),
                "currency": settings.CURRENCY,
                "redirect_url": callback_url,
                "customer": {"email": email, "name": full_name or email, "phonenumber": phone},
                "customizations": {"title": business},
                "meta": metadata or {},
            },
        )
        data = body.get("data") or {}
        if body.get("status") != "success" or not data.get("link"):
            raise PaymentGatewayError(self.name, body.get("message") or "Initialization failed")

        return CheckoutSession(checkout_url=data["link"], provider_reference=reference, raw=body)

    async def verify(self, reference: str) -> VerificationResult:
        body = await self._request("GET", "/v3/transactions/verify_by_reference", params={"tx_ref": reference})
        data = body.get("data") or {}
        return VerificationResult(
            status=self._map_status(data.get("status")),
            amount=naira_to_kobo(data.get("amount")),
            transaction_id=str(data["id"]) if data.get("id") is not None else None,
            raw=body,
        )

    def verify_webhook(self, body: bytes, headers: Mapping[str, str]) -> bool:
        # Flutterwave echoes the dashboard secret hash rather than signing the body
        expected = (self.gateway.encryption_key or self.secret_key) if self.gateway else None
        return constant_time_equals(headers.get(self.SIGNATURE_HEADER), expected)

    def parse_webhook(self, event: Dict[str, Any]) -> Optional[Tuple[str, VerificationResult]]:
        data = event.get("data") or {}
        reference = data.get("tx_ref")
        if event.get("event") != "charge.completed" or not reference:
            return None
        return reference, VerificationResult(
            status=self._map_status(data.get("status")),
            amount=naira_to_kobo(data.get("amount")),
            transaction_id=data.get("flw_ref") or (str(data["id"]) if data.get("id") is not None else None),
            raw=event,
        )

    @staticmethod
    def _map_status(status: Optional[str]) -> PaymentStatus:
        if status == "successful":
            return PaymentStatus.SUCCESSFUL
        if status in ("failed", "cancelled"):
            return PaymentStatus.FAILED
        return PaymentStatus.PENDING
