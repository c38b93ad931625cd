"""
Unit Tests for Admin API Endpoints
"""
import pytest
from httpx import AsyncClient

from app.models import RoleName


class TestAdminAccess:

    @pytest.mark.asyncio
    async def test_admin_routes_reject_students(self, client: AsyncClient, auth_headers):
        for path in ['/api/v1/admin/dashboard/stats', '/api/v1/admin/users', '/api/v1/admin/audit-logs']:
            response = await client.get(path, headers=auth_headers)
            assert response.status_code == 403, path

    @pytest.mark.asyncio
    async def test_moderator_is_not_admin(self, client: AsyncClient, moderator_auth_headers):
        response = await client.get('/api/v1/admin/users', headers=moderator_auth_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_superuser_without_role_row(self, client: AsyncClient, make_user, headers_for):
        root = await make_user(is_superuser=True)
        response = await client.get('/api/v1/admin/dashboard/stats', headers=headers_for(root))
        assert response.status_code == 200


class TestUserManagement:

    @pytest.mark.asyncio
    async def test_list_and_filter(self, client: AsyncClient, admin_auth_headers, make_user):
        await make_user(full_name='Ngozi Eze', level=300)
        await make_user(full_name='Tunde Bello', level=100)

        response = await client.get('/api/v1/admin/users', headers=admin_auth_headers, params={'level': 300})
        data = response.json()
        assert data['total'] == 1
        assert data['items'][0]['full_name'] == 'Ngozi Eze'

        searched = await client.get('/api/v1/admin/users', headers=admin_auth_headers, params={'search': 'tunde'})
        assert searched.json()['total'] == 1

        admins = await client.get('/api/v1/admin/users', headers=admin_auth_headers, params={'role': 'admin'})
        assert admins.json()['total'] == 1

    @pytest.mark.asyncio
    async def test_deactivate_user_blocks_login(self, client: AsyncClient, admin_auth_headers, test_user):
        response = await client.patch(f'/api/v1/admin/users/{test_user.id}/status', headers=admin_auth_headers,
                                      json={'is_active': False})
        assert response.json()['is_active'] is False

        login = await client.post('/api/v1/auth/login', json={
            'email': test_user.email, 'password': 'testpassword123',
        })
        assert login.status_code == 403

    @pytest.mark.asyncio
    async def test_cannot_deactivate_self(self, client: AsyncClient, admin_auth_headers, admin_user):
        response = await client.patch(f'/api/v1/admin/users/{admin_user.id}/status', headers=admin_auth_headers,
                                      json={'is_active': False})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_grant_and_revoke_role(self, client: AsyncClient, admin_auth_headers, test_user):
        granted = await client.post(f'/api/v1/admin/users/{test_user.id}/roles', headers=admin_auth_headers,
                                    json={'role': 'course_rep', 'level': 200})
        assert granted.status_code == 201
        assert granted.json()['role'] == 'course_rep'

        detail = await client.get(f'/api/v1/admin/users/{test_user.id}', headers=admin_auth_headers)
        assert detail.json()['roles'] == ['course_rep', 'user']

        revoked = await client.delete(f'/api/v1/admin/users/{test_user.id}/roles/course_rep',
                                      headers=admin_auth_headers)
        assert revoked.status_code == 200

        missing = await client.delete(f'/api/v1/admin/users/{test_user.id}/roles/course_rep',
                                      headers=admin_auth_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_revoke_own_admin(self, client: AsyncClient, admin_auth_headers, admin_user):
        response = await client.delete(f'/api/v1/admin/users/{admin_user.id}/roles/admin',
                                       headers=admin_auth_headers)
        assert response.status_code == 400


class TestRoleRequests:

    @pytest.mark.asyncio
    async def test_request_and_approve(self, client: AsyncClient, auth_headers, admin_auth_headers):
        created = await client.post('/api/v1/roles/requests', headers=auth_headers, json={
            'role': 'course_rep', 'reason': 'Elected class rep', 'level': 200,
        })
        assert created.status_code == 201

        duplicate = await client.post('/api/v1/roles/requests', headers=auth_headers, json={'role': 'course_rep'})
        assert duplicate.status_code == 409

        pending = await client.get('/api/v1/admin/role-requests', headers=admin_auth_headers)
        assert [r['id'] for r in pending.json()] == [created.json()['id']]

        approved = await client.post(f"/api/v1/admin/role-requests/{created.json()['id']}/approve",
                                     headers=admin_auth_headers, json={'note': 'Confirmed with HOD'})
        assert approved.json()['status'] == 'approved'
        assert approved.json()['review_note'] == 'Confirmed with HOD'

        mine = await client.get('/api/v1/roles/mine', headers=auth_headers)
        assert 'course_rep' in [r['role'] for r in mine.json()]

        inbox = await client.get('/api/v1/notifications', headers=auth_headers)
        assert inbox.json()['items'][0]['title'] == 'Your course rep request was approved'
        assert inbox.json()['items'][0]['message'] == 'Confirmed with HOD'

        again = await client.post(f"/api/v1/admin/role-requests/{created.json()['id']}/reject",
                                  headers=admin_auth_headers)
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_admin_role_cannot_be_requested(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/roles/requests', headers=auth_headers, json={'role': 'admin'})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_reject(self, client: AsyncClient, auth_headers, admin_auth_headers):
        created = (await client.post('/api/v1/roles/requests', headers=auth_headers,
                                     json={'role': 'moderator'})).json()

        rejected = await client.post(f"/api/v1/admin/role-requests/{created['id']}/reject",
                                     headers=admin_auth_headers)
        assert rejected.json()['status'] == 'rejected'

        mine = await client.get('/api/v1/roles/requests/me', headers=auth_headers)
        assert mine.json()[0]['status'] == 'rejected'


class TestSettings:

    @pytest.mark.asyncio
    async def test_defaults_created_on_read(self, client: AsyncClient, admin_auth_headers):
        response = await client.get('/api/v1/admin/settings', headers=admin_auth_headers)

        keys = [s['key'] for s in response.json()]
        assert 'general.signup_enabled' in keys
        assert 'features.ads_enabled' in keys

    @pytest.mark.asyncio
    async def test_disabling_signup(self, client: AsyncClient, admin_auth_headers, test_user_data):
        await client.put('/api/v1/admin/settings/general.signup_enabled', headers=admin_auth_headers,
                         json={'value': False})

        response = await client.post('/api/v1/auth/register', json=test_user_data)
        assert response.status_code == 403

        public = await client.get('/api/v1/settings/public')
        assert public.json()['general.signup_enabled'] is False

    @pytest.mark.asyncio
    async def test_bulk_update(self, client: AsyncClient, admin_auth_headers):
        response = await client.put('/api/v1/admin/settings', headers=admin_auth_headers, json={
            'settings': {'features.ads_enabled': False, 'general.current_academic_year': '2025/2026'},
        })

        assert {s['key']: s['value'] for s in response.json()} == {
            'features.ads_enabled': False,
            'general.current_academic_year': '2025/2026',
        }

    @pytest.mark.asyncio
    async def test_unknown_setting(self, client: AsyncClient, admin_auth_headers):
        response = await client.get('/api/v1/admin/settings/nope.nothing', headers=admin_auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_security_setup_is_idempotent(self, client: AsyncClient, make_user, headers_for):
        root = await make_user(is_superuser=True)

        first = await client.post('/api/v1/admin/security/setup', headers=headers_for(root))
        second = await client.post('/api/v1/admin/security/setup', headers=headers_for(root))

        assert first.json()['admin_role_created'] is True
        assert first.json()['ad_settings_created'] is True
        assert len(first.json()['created_settings']) > 0
        assert second.json() == {'created_settings': [], 'ad_settings_created': False, 'admin_role_created': False}


class TestAuditLogs:

    @pytest.mark.asyncio
    async def test_actions_are_recorded(self, client: AsyncClient, admin_auth_headers, admin_user):
        await client.post('/api/v1/faculties', headers=admin_auth_headers, json={'name': 'Faculty of Law'})

        response = await client.get('/api/v1/admin/audit-logs', headers=admin_auth_headers,
                                    params={'action': 'faculty_created'})

        item = response.json()['items'][0]
        assert item['actor_email'] == admin_user.email
        assert item['details'] == {'name': 'Faculty of Law'}

        actions = await client.get('/api/v1/admin/audit-logs/actions', headers=admin_auth_headers)
        assert 'faculty_created' in actions.json()

    @pytest.mark.asyncio
    async def test_invalid_date_filter(self, client: AsyncClient, admin_auth_headers):
        response = await client.get('/api/v1/admin/audit-logs', headers=admin_auth_headers,
                                    params={'start_date': 'last tuesday'})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_export(self, client: AsyncClient, admin_auth_headers):
        await client.post('/api/v1/faculties', headers=admin_auth_headers, json={'name': 'Faculty of Law'})

        response = await client.get('/api/v1/admin/audit-logs/export', headers=admin_auth_headers)

        assert response.headers['content-type'].startswith('text/csv')
        assert 'faculty_created' in response.text


class TestPaymentGateways:

    @pytest.mark.asyncio
    async def test_secrets_are_masked_and_kept(self, client: AsyncClient, admin_auth_headers):
        created = await client.put('/api/v1/admin/payment-gateways/paystack', headers=admin_auth_headers, json={
            'public_key': 'pk_test_1', 'secret_key': 'sk_test_abcdef', 'enabled': True,
        })
        assert created.status_code == 200
        assert created.json()['secret_key'] == '****cdef'

        echoed = await client.put('/api/v1/admin/payment-gateways/paystack', headers=admin_auth_headers, json={
            'secret_key': '****cdef', 'business_name': 'UniPortal',
        })
        assert echoed.json()['secret_key'] == '****cdef'
        assert echoed.json()['business_name'] == 'UniPortal'

        public = await client.get('/api/v1/payments/gateways')
        assert 'paystack' in [g['provider'] for g in public.json()]

    @pytest.mark.asyncio
    async def test_enable_without_secret(self, client: AsyncClient, admin_auth_headers):
        response = await client.put('/api/v1/admin/payment-gateways/korapay', headers=admin_auth_headers,
                                    json={'enabled': True})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_demo_not_configurable(self, client: AsyncClient, admin_auth_headers):
        response = await client.put('/api/v1/admin/payment-gateways/demo', headers=admin_auth_headers,
                                    json={'enabled': True})
        assert response.status_code == 400


class TestWalletAdmin:

    @pytest.mark.asyncio
    async def test_credit_and_reconcile(self, client: AsyncClient, admin_auth_headers, test_user):
        response = await client.post(f'/api/v1/admin/wallets/{test_user.id}/adjust', headers=admin_auth_headers,
                                     json={'transaction_type': 'credit', 'amount': 25_000, 'reason': 'Refund'})

        assert response.status_code == 200
        assert response.json()['source'] == 'admin_credit'
        assert response.json()['balance_after'] == 25_000

        report = await client.get(f'/api/v1/admin/wallets/{test_user.id}/reconcile', headers=admin_auth_headers)
        assert report.json()['consistent'] is True

    @pytest.mark.asyncio
    async def test_debit_beyond_balance(self, client: AsyncClient, admin_auth_headers, test_user):
        response = await client.post(f'/api/v1/admin/wallets/{test_user.id}/adjust', headers=admin_auth_headers,
                                     json={'transaction_type': 'debit', 'amount': 1_000, 'reason': 'Correction'})
        assert response.status_code == 402

    @pytest.mark.asyncio
    async def test_all_transactions(self, client: AsyncClient, admin_auth_headers, make_user):
        user = await make_user(balance=10_000)
        await make_user(balance=20_000)

        everything = await client.get('/api/v1/admin/transactions', headers=admin_auth_headers)
        one_user = await client.get('/api/v1/admin/transactions', headers=admin_auth_headers,
                                    params={'user_id': str(user.id)})

        assert everything.json()['total'] == 2
        assert one_user.json()['total'] == 1


class TestAdminAds:

    @pytest.mark.asyncio
    async def test_price_change_applies_to_quotes(self, client: AsyncClient, admin_auth_headers):
        await client.put('/api/v1/admin/ad-settings', headers=admin_auth_headers, json={'ad_cost_native': 50_000})

        quote = await client.get('/api/v1/ads/quote', params={'duration_days': 7})
        assert quote.json()['cost'] == 50_000

    @pytest.mark.asyncio
    async def test_deactivate_ad(self, client: AsyncClient, admin_auth_headers, make_user, headers_for):
        owner = await make_user(balance=100_000)
        ad = (await client.post('/api/v1/ads', headers=headers_for(owner), json={
            'title': 'Spam', 'link_url': 'https://example.com',
        })).json()

        response = await client.post(f"/api/v1/admin/ads/{ad['id']}/deactivate", headers=admin_auth_headers)

        assert response.json()['is_active'] is False
        assert (await client.get('/api/v1/ads/feed')).json() == []


class TestDashboard:

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, admin_auth_headers, make_user):
        await make_user(balance=40_000)

        response = await client.get('/api/v1/admin/dashboard/stats', headers=admin_auth_headers)

        data = response.json()
        assert data['users']['total'] == 2
        assert data['wallets']['total_balance'] == 40_000
        assert data['pending_role_requests'] == 0

    @pytest.mark.asyncio
    async def test_student_dashboard(self, client: AsyncClient, auth_headers, admin_auth_headers):
        response = await client.get('/api/v1/dashboard', headers=auth_headers)

        data = response.json()
        assert data['wallet'] == {'balance': 0, 'currency': 'NGN'}
        assert data['user']['roles'] == [RoleName.USER.value]
        assert data['upcoming_exams'] == []
