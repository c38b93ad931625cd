"""Common interface for payment provider clients."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import settings
from app.core.exceptions import PaymentGatewayError
from app.models.payment import PaymentGateway, PaymentStatus


@dataclass
class CheckoutSession:
    """Result of initialising a hosted checkout"""
    checkout_url: str
    provider_reference: Optional[str] = None
    access_code: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VerificationResult:
    """Provider's view of a payment"""
    status: PaymentStatus
    amount: Optional[int] = None  # kobo, when the provider reports it
    transaction_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class PaymentProviderClient:
    """
    Base provider client.

    ``transport`` lets tests swap the network for ``httpx.MockTransport``.
    """

    name: str = ""
    base_url: str = ""

    def __init__(self, gateway: Optional[PaymentGateway] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.gateway = gateway
        self.secret_key = gateway.secret_key if gateway else None
        self.public_key = gateway.public_key if gateway else None
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.PAYMENT_REQUEST_TIMEOUT,
            transport=self.transport,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body, or raise PaymentGatewayError"""
        try:
            async with self._client() as client:
                response = await client.request(method, path, headers=self._auth_headers(), **kwargs)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise PaymentGatewayError(self.name, f"HTTP {e.response.status_code}: {e.response.text[:200]}")
        except httpx.HTTPError as e:
            raise PaymentGatewayError(self.name, f"{type(e).__name__}: {e}")
        except ValueError:
            raise PaymentGatewayError(self.name, "Invalid JSON response")

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
        raise NotImplementedError

    async def verify(self, reference: str) -> VerificationResult:
        raise NotImplementedError

    def verify_webhook(self, body: bytes, headers: Dict[str, str]) -> bool:
        raise NotImplementedError

    def parse_webhook(self, event: Dict[str, Any]) -> Optional[Tuple[str, VerificationResult]]:
        """(reference, result) for events that settle a payment, None for everything else"""
        raise NotImplementedError


def kobo_to_naira(amount: int) -> float:
    return round(amount / 100, 2)


def naira_to_kobo(amount: Any) -> Optional[int]:
    if amount is None:
        return None
    return int(round(float(amount) * 100))
