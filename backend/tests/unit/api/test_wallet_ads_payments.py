"""
Unit Tests for wallet, ads and payment endpoints
"""
import json
import pytest
from httpx import AsyncClient

from app.core.security import hmac_hexdigest
from app.models import GatewayMode, PaymentGateway, PaymentProvider


class TestWallet:

    @pytest.mark.asyncio
    async def test_get_wallet(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/v1/wallet', headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['balance'] == 0
        assert data['currency'] == 'NGN'

    @pytest.mark.asyncio
    async def test_transactions_newest_first(self, client: AsyncClient, make_user, headers_for):
        user = await make_user(balance=300_000)
        await client.post('/api/v1/ads', headers=headers_for(user), json={
            'title': 'Notes for sale', 'link_url': 'https://example.com',
        })

        response = await client.get('/api/v1/wallet/transactions', headers=headers_for(user))

        items = response.json()['items']
        assert [t['transaction_type'] for t in items] == ['debit', 'credit']
        assert items[0]['balance_after'] == 200_000

        debits = await client.get('/api/v1/wallet/transactions', headers=headers_for(user),
                                  params={'type': 'debit'})
        assert debits.json()['total'] == 1

    @pytest.mark.asyncio
    async def test_export_csv(self, client: AsyncClient, make_user, headers_for):
        user = await make_user(balance=50_000)

        response = await client.get('/api/v1/wallet/transactions/export', headers=headers_for(user))

        assert response.headers['content-type'].startswith('text/csv')
        assert '50000' in response.text


class TestAds:

    @pytest.mark.asyncio
    async def test_public_pricing(self, client: AsyncClient):
        prices = await client.get('/api/v1/ads/settings')
        assert prices.json()['ad_cost_native'] == 100_000

        quote = await client.get('/api/v1/ads/quote', params={'ad_type': 'banner', 'duration_days': 14})
        assert quote.json() == {
            'ad_type': 'banner', 'duration_days': 14, 'base_cost': 200_000, 'multiplier': 1.8, 'cost': 360_000,
        }

    @pytest.mark.asyncio
    async def test_quote_unsupported_duration(self, client: AsyncClient):
        response = await client.get('/api/v1/ads/quote', params={'duration_days': 10})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_create_ad_needs_funds(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/ads', headers=auth_headers, json={
            'title': 'Sale', 'link_url': 'https://example.com',
        })

        assert response.status_code == 402
        error = response.json()['error']
        assert error['code'] == 'INSUFFICIENT_FUNDS'
        assert error['details'] == {'required': 100_000, 'available': 0}

    @pytest.mark.asyncio
    async def test_ad_lifecycle(self, client: AsyncClient, make_user, headers_for):
        user = await make_user(balance=500_000)
        headers = headers_for(user)

        created = await client.post('/api/v1/ads', headers=headers, json={
            'title': 'Hostel space', 'link_url': 'https://example.com/hostel', 'ad_type': 'native', 'duration_days': 3,
        })
        assert created.status_code == 201
        ad = created.json()
        assert ad['cost'] == 50_000

        feed = await client.get('/api/v1/ads/feed')
        assert [item['id'] for item in feed.json()] == [ad['id']]

        click = await client.post(f"/api/v1/ads/{ad['id']}/click")
        assert click.json() == {'link_url': 'https://example.com/hostel', 'clicks': 1}

        stats = await client.get('/api/v1/ads/mine/stats', headers=headers)
        assert stats.json()['impressions'] == 1
        assert stats.json()['ctr'] == 100.0

        paused = await client.patch(f"/api/v1/ads/{ad['id']}/toggle", headers=headers)
        assert paused.json()['is_active'] is False
        assert (await client.get('/api/v1/ads/feed')).json() == []

        renewed = await client.post(f"/api/v1/ads/{ad['id']}/renew", headers=headers, json={'duration_days': 7})
        assert renewed.json()['duration_days'] == 10

        wallet = await client.get('/api/v1/wallet', headers=headers)
        assert wallet.json()['balance'] == 500_000 - 50_000 - 100_000

    @pytest.mark.asyncio
    async def test_only_owner_or_admin_deletes(self, client: AsyncClient, make_user, headers_for,
                                               admin_auth_headers):
        owner = await make_user(balance=200_000)
        other = await make_user()
        ad = (await client.post('/api/v1/ads', headers=headers_for(owner), json={
            'title': 'Sale', 'link_url': 'https://example.com',
        })).json()

        denied = await client.delete(f"/api/v1/ads/{ad['id']}", headers=headers_for(other))
        assert denied.status_code == 403

        removed = await client.delete(f"/api/v1/ads/{ad['id']}", headers=admin_auth_headers)
        assert removed.status_code == 200
        assert (await client.get('/api/v1/ads/mine', headers=headers_for(owner))).json() == []


class TestPayments:

    @pytest.mark.asyncio
    async def test_gateways_list_demo(self, client: AsyncClient):
        response = await client.get('/api/v1/payments/gateways')
        assert [g['provider'] for g in response.json()] == ['demo']

    @pytest.mark.asyncio
    async def test_demo_funding_flow(self, client: AsyncClient, auth_headers):
        init = await client.post('/api/v1/payments/initialize', headers=auth_headers, json={
            'amount': 50_000, 'provider': 'demo', 'callback_url': 'http://localhost:3000/wallet',
        })
        assert init.status_code == 200
        reference = init.json()['reference']
        assert init.json()['payment_url'].startswith('http://localhost:3000/wallet?reference=')

        verify = await client.post('/api/v1/payments/verify', headers=auth_headers, json={'reference': reference})
        assert verify.json()['status'] == 'successful'
        assert verify.json()['already_processed'] is False
        assert verify.json()['wallet_balance'] == 50_000

        again = await client.post('/api/v1/payments/verify', headers=auth_headers, json={'reference': reference})
        assert again.json()['already_processed'] is True
        assert again.json()['wallet_balance'] == 50_000

        history = await client.get('/api/v1/payments/history', headers=auth_headers)
        assert history.json()['total'] == 1

    @pytest.mark.asyncio
    async def test_amount_below_minimum(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/payments/initialize', headers=auth_headers, json={
            'amount': 500, 'provider': 'demo',
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/payments/initialize', headers=auth_headers, json={
            'amount': 50_000, 'provider': 'korapay',
        })
        assert response.status_code == 400
        assert response.json()['error']['code'] == 'GATEWAY_NOT_CONFIGURED'

    @pytest.mark.asyncio
    async def test_other_users_payment_hidden(self, client: AsyncClient, auth_headers, make_user, headers_for):
        init = await client.post('/api/v1/payments/initialize', headers=auth_headers, json={
            'amount': 50_000, 'provider': 'demo',
        })
        stranger = await make_user()

        response = await client.get(f"/api/v1/payments/{init.json()['reference']}", headers=headers_for(stranger))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_paystack_webhook_signature(self, client: AsyncClient, db_session, auth_headers):
        db_session.add(PaymentGateway(
            provider=PaymentProvider.PAYSTACK, secret_key='sk_test_hook', enabled=True, mode=GatewayMode.TEST,
        ))
        await db_session.commit()
        body = json.dumps({'event': 'charge.success', 'data': {'reference': 'WALLET_FUNDING_0_unknown'}}).encode()

        rejected = await client.post('/api/v1/payments/webhook/paystack', content=body,
                                     headers={'x-paystack-signature': 'bad'})
        assert rejected.status_code == 401

        accepted = await client.post('/api/v1/payments/webhook/paystack', content=body, headers={
            'x-paystack-signature': hmac_hexdigest('sk_test_hook', body),
            'content-type': 'application/json',
        })
        assert accepted.status_code == 200
        assert accepted.json()['status'] == 'unknown_reference'
