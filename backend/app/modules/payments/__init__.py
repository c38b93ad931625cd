# Payment provider clients

from typing import Optional

import httpx

from app.models.payment import PaymentGateway, PaymentProvider
from app.modules.payments.base import CheckoutSession, PaymentProviderClient, VerificationResult
from app.modules.payments.demo_provider import DemoProvider
from app.modules.payments.flutterwave_provider import FlutterwaveProvider
from app.modules.payments.korapay_provider import KorapayProvider
from app.modules.payments.paystack_provider import PaystackProvider

PROVIDERS = {
    PaymentProvider.PAYSTACK: PaystackProvider,
    PaymentProvider.FLUTTERWAVE: FlutterwaveProvider,
    PaymentProvider.KORAPAY: KorapayProvider,
    PaymentProvider.DEMO: DemoProvider,
}

# Tests point this at httpx.MockTransport
_transport: Optional[httpx.AsyncBaseTransport] = None


def set_transport(transport: Optional[httpx.AsyncBaseTransport]) -> None:
    global _transport
    _transport = transport


def get_provider(provider: PaymentProvider, gateway: Optional[PaymentGateway] = None) -> PaymentProviderClient:
    return PROVIDERS[PaymentProvider(provider)](gateway, transport=_transport)


__all__ = [
    "CheckoutSession",
    "PaymentProviderClient",
    "VerificationResult",
    "PaystackProvider",
    "FlutterwaveProvider",
    "KorapayProvider",
    "DemoProvider",
    "get_provider",
    "set_transport",
]
