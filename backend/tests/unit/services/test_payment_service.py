"""
Unit Tests for PaymentService and the provider clients

Provider HTTP calls go through httpx.MockTransport.
"""
import json
import hashlib
import httpx
import pytest

from app.core.exceptions import (
    AuthorizationError, GatewayNotConfiguredError, InvalidSignatureError,
    PaymentGatewayError, ValidationError,
)
from app.core.security import hmac_hexdigest
from app.models import (
    GatewayMode, PaymentGateway, PaymentProvider, PaymentStatus, PaymentType, WalletTransactionType,
)
from app.modules.payments import set_transport
from app.modules.payments.base import naira_to_kobo, kobo_to_naira
from app.services.payment_service import payment_service, generate_payment_reference
from app.services.wallet_service import wallet_service

SECRET = "sk_test_secret"


async def add_gateway(db_session, provider=PaymentProvider.PAYSTACK, **overrides) -> PaymentGateway:
    data = {"provider": provider, "secret_key": SECRET, "public_key": "pk_test", "enabled": True,
            "mode": GatewayMode.TEST}
    data.update(overrides)
    gateway = PaymentGateway(**data)
    db_session.add(gateway)
    await db_session.commit()
    return gateway


def paystack_transport(verify_status="success", verify_amount=None, calls=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if request.url.path == "/transaction/initialize":
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "status": True,
                "data": {
                    "authorization_url": f"https://checkout.paystack.com/{body['reference']}",
                    "access_code": "ac_123",
                    "reference": body["reference"],
                },
            })
        if request.url.path.startswith("/transaction/verify/"):
            reference = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={
                "status": True,
                "data": {"id": 987, "reference": reference, "status": verify_status, "amount": verify_amount},
            })
        return httpx.Response(404, json={"status": False})
    return httpx.MockTransport(handler)


class TestHelpers:

    def test_reference_format(self):
        reference = generate_payment_reference(PaymentType.WALLET_FUNDING)
        prefix, millis, suffix = reference.rsplit("_", 2)

        assert prefix == "WALLET_FUNDING"
        assert millis.isdigit() and len(millis) == 13
        assert len(suffix) == 9

    def test_naira_conversion(self):
        assert naira_to_kobo("1500.50") == 150050
        assert naira_to_kobo(None) is None
        assert kobo_to_naira(150050) == 1500.5

    def test_amount_limits(self):
        with pytest.raises(ValidationError):
            payment_service.validate_amount(100)
        with pytest.raises(ValidationError):
            payment_service.validate_amount(10 ** 12)
        payment_service.validate_amount(50_000)


class TestGateways:

    @pytest.mark.asyncio
    async def test_disabled_gateway_not_usable(self, db_session):
        await add_gateway(db_session, enabled=False)
        with pytest.raises(GatewayNotConfiguredError):
            await payment_service.get_enabled_gateway(db_session, PaymentProvider.PAYSTACK)

    @pytest.mark.asyncio
    async def test_missing_gateway_not_usable(self, db_session):
        with pytest.raises(GatewayNotConfiguredError):
            await payment_service.get_enabled_gateway(db_session, PaymentProvider.KORAPAY)

    @pytest.mark.asyncio
    async def test_enabled_list_has_no_secrets(self, db_session):
        await add_gateway(db_session)
        gateways = await payment_service.list_enabled_gateways(db_session)

        providers = [g["provider"] for g in gateways]
        assert PaymentProvider.PAYSTACK in providers
        assert PaymentProvider.DEMO in providers
        assert all("secret_key" not in g for g in gateways)


class TestPaystackFlow:

    @pytest.mark.asyncio
    async def test_initialize_creates_pending_payment(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        calls = []
        set_transport(paystack_transport(calls=calls))

        payment = await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.PAYSTACK)

        assert payment.payment_status == PaymentStatus.PENDING
        assert payment.checkout_url.endswith(payment.payment_reference)
        assert payment.extra_data == {"access_code": "ac_123"}
        assert calls[0].headers["Authorization"] == f"Bearer {SECRET}"
        assert json.loads(calls[0].content)["amount"] == 50_000

    @pytest.mark.asyncio
    async def test_ticket_checkout_keeps_metadata(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        calls = []
        set_transport(paystack_transport(calls=calls))

        payment = await payment_service.initialize_payment(
            db_session, user, 2_500, PaymentProvider.PAYSTACK,
            payment_type=PaymentType.EVENT_TICKET, metadata={"event_id": "evt-1", "event_ticket_id": "tt-1"},
        )

        assert payment.payment_reference.startswith("EVENT_TICKET_")
        assert payment.extra_data == {"event_id": "evt-1", "event_ticket_id": "tt-1", "access_code": "ac_123"}
        sent = json.loads(calls[0].content)["metadata"]
        assert sent["event_id"] == "evt-1"
        assert sent["payment_type"] == "event_ticket"

    @pytest.mark.asyncio
    async def test_provider_error_marks_payment_failed(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        set_transport(httpx.MockTransport(lambda request: httpx.Response(500, text="boom")))

        with pytest.raises(PaymentGatewayError):
            await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.PAYSTACK)

        payments = (await db_session.execute(payment_service.payments_query(user_id=user.id))).scalars().all()
        assert len(payments) == 1
        assert payments[0].payment_status == PaymentStatus.FAILED
        assert "HTTP 500" in payments[0].failure_reason

    @pytest.mark.asyncio
    async def test_verify_credits_wallet_once(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        set_transport(paystack_transport(verify_amount=50_000))
        payment = await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.PAYSTACK)

        settled, already = await payment_service.verify_payment(db_session, payment.payment_reference, user)
        again, already_again = await payment_service.verify_payment(db_session, payment.payment_reference, user)

        assert settled.payment_status == PaymentStatus.SUCCESSFUL
        assert settled.transaction_id == "987"
        assert already is False
        assert already_again is True
        wallet = await wallet_service.get_wallet(db_session, user.id)
        assert wallet.balance == 50_000
        credits = await wallet_service.list_transactions(db_session, user.id, WalletTransactionType.CREDIT)
        assert len(credits) == 1

    @pytest.mark.asyncio
    async def test_short_payment_is_not_credited(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        set_transport(paystack_transport(verify_amount=10_000))
        payment = await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.PAYSTACK)

        settled, _ = await payment_service.verify_payment(db_session, payment.payment_reference, user)

        assert settled.payment_status == PaymentStatus.FAILED
        assert "Amount mismatch" in settled.failure_reason
        assert (await wallet_service.get_wallet(db_session, user.id)).balance == 0

    @pytest.mark.asyncio
    async def test_declined_payment(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        set_transport(paystack_transport(verify_status="failed"))
        payment = await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.PAYSTACK)

        settled, _ = await payment_service.verify_payment(db_session, payment.payment_reference, user)
        assert settled.payment_status == PaymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_cannot_verify_someone_elses_payment(self, db_session, make_user):
        owner = await make_user()
        other = await make_user()
        await add_gateway(db_session)
        set_transport(paystack_transport())
        payment = await payment_service.initialize_payment(db_session, owner, 50_000, PaymentProvider.PAYSTACK)

        with pytest.raises(AuthorizationError):
            await payment_service.verify_payment(db_session, payment.payment_reference, other)


class TestWebhooks:

    def _event(self, reference, amount=50_000):
        return json.dumps({
            "event": "charge.success",
            "data": {"id": 55, "reference": reference, "status": "success", "amount": amount},
        }).encode()

    @pytest.mark.asyncio
    async def test_signed_webhook_settles_payment(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session)
        set_transport(paystack_transport())
        payment = await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.PAYSTACK)
        body = self._event(payment.payment_reference)
        headers = {"x-paystack-signature": hmac_hexdigest(SECRET, body, hashlib.sha512)}

        first = await payment_service.handle_webhook(db_session, PaymentProvider.PAYSTACK, body, headers)
        second = await payment_service.handle_webhook(db_session, PaymentProvider.PAYSTACK, body, headers)

        assert first["status"] == "successful"
        assert second["status"] == "already_processed"
        assert (await wallet_service.get_wallet(db_session, user.id)).balance == 50_000

    @pytest.mark.asyncio
    async def test_bad_signature_rejected(self, db_session):
        await add_gateway(db_session)
        body = self._event("WALLET_FUNDING_1_abc")

        with pytest.raises(InvalidSignatureError):
            await payment_service.handle_webhook(
                db_session, PaymentProvider.PAYSTACK, body, {"x-paystack-signature": "deadbeef"},
            )

    @pytest.mark.asyncio
    async def test_unknown_reference(self, db_session):
        await add_gateway(db_session)
        body = self._event("WALLET_FUNDING_1_missing")
        headers = {"x-paystack-signature": hmac_hexdigest(SECRET, body)}

        result = await payment_service.handle_webhook(db_session, PaymentProvider.PAYSTACK, body, headers)
        assert result["status"] == "unknown_reference"

    @pytest.mark.asyncio
    async def test_other_events_ignored(self, db_session):
        await add_gateway(db_session)
        body = json.dumps({"event": "transfer.success", "data": {}}).encode()
        headers = {"x-paystack-signature": hmac_hexdigest(SECRET, body)}

        result = await payment_service.handle_webhook(db_session, PaymentProvider.PAYSTACK, body, headers)
        assert result["status"] == "ignored"

    @pytest.mark.asyncio
    async def test_flutterwave_secret_hash(self, db_session, make_user):
        user = await make_user()
        await add_gateway(db_session, provider=PaymentProvider.FLUTTERWAVE, encryption_key="hash-123")
        payment = await payment_service.initialize_payment(db_session, user, 50_000, PaymentProvider.DEMO)
        payment.payment_method = PaymentProvider.FLUTTERWAVE
        await db_session.commit()
        body = json.dumps({
            "event": "charge.completed",
            "data": {"id": 1, "tx_ref": payment.payment_reference, "status": "successful", "amount": 500},
        }).encode()

        result = await payment_service.handle_webhook(
            db_session, PaymentProvider.FLUTTERWAVE, body, {"verif-hash": "hash-123"},
        )
        assert result["status"] == "successful"
        assert (await wallet_service.get_wallet(db_session, user.id)).balance == 50_000


class TestDemoProvider:

    @pytest.mark.asyncio
    async def test_demo_checkout_and_verify(self, db_session, make_user):
        user = await make_user()

        payment = await payment_service.initialize_payment(
            db_session, user, 20_000, PaymentProvider.DEMO, callback_url="http://localhost:3000/done",
        )
        assert payment.checkout_url.startswith("http://localhost:3000/done?reference=")

        settled, _ = await payment_service.verify_payment(db_session, payment.payment_reference, user)
        assert settled.payment_status == PaymentStatus.SUCCESSFUL
        assert (await wallet_service.get_wallet(db_session, user.id)).balance == 20_000
