"""Offline provider for development: every checkout succeeds on verify."""

from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from app.models.payment import PaymentStatus
from app.modules.payments.base import CheckoutSession, PaymentProviderClient, VerificationResult


class DemoProvider(PaymentProviderClient):
    name = "demo"

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
        query = urlencode({"reference": reference, "status": "successful", "demo": "true"})
        return CheckoutSession(checkout_url=f"{callback_url}?{query}", provider_reference=reference)

    async def verify(self, reference: str) -> VerificationResult:
        return VerificationResult(status=PaymentStatus.SUCCESSFUL, transaction_id=f"demo_{reference}")

    def verify_webhook(self, body: bytes, headers: Mapping[str, str]) -> bool:
        return False

    def parse_webhook(self, event: Dict[str, Any]) -> Optional[Tuple[str, VerificationResult]]:
        return None
