"""
Integration Tests for the student journey: sign up, fund the wallet, buy an ad
"""
import pytest
from httpx import AsyncClient
from faker import Faker

fake = Faker()


class TestStudentJourney:
    """Register -> login -> fund wallet -> place an ad -> admin sees it"""

    @pytest.mark.asyncio
    async def test_register_fund_and_advertise(self, client: AsyncClient, admin_auth_headers):
        email = fake.unique.email()
        password = 'securePassword123'

        register_response = await client.post('/api/v1/auth/register', json={
            'email': email,
            'password': password,
            'full_name': fake.name(),
            'department': 'Computer Science',
            'level': 100,
        })
        assert register_response.status_code == 201

        login_response = await client.post('/api/v1/auth/login', json={'email': email, 'password': password})
        assert login_response.status_code == 200
        headers = {'Authorization': f"Bearer {login_response.json()['access_token']}"}

        # Fund with the demo provider
        init = await client.post('/api/v1/payments/initialize', headers=headers, json={
            'amount': 150_000, 'provider': 'demo',
        })
        reference = init.json()['reference']
        verify = await client.post('/api/v1/payments/verify', headers=headers, json={'reference': reference})
        assert verify.json()['wallet_balance'] == 150_000

        # Spend on a banner ad for a day
        ad = await client.post('/api/v1/ads', headers=headers, json={
            'title': 'Tutorials for MTH 101', 'link_url': 'https://example.com/mth101',
            'ad_type': 'banner', 'duration_days': 1,
        })
        assert ad.status_code == 201
        assert ad.json()['cost'] == 40_000

        wallet = await client.get('/api/v1/wallet', headers=headers)
        assert wallet.json()['balance'] == 110_000

        # Admin view agrees
        stats = await client.get('/api/v1/admin/dashboard/stats', headers=admin_auth_headers)
        assert stats.json()['payments']['volume'] == 150_000
        assert stats.json()['ads']['revenue'] == 40_000

        user_id = register_response.json()['id']
        report = await client.get(f'/api/v1/admin/wallets/{user_id}/reconcile', headers=admin_auth_headers)
        assert report.json()['consistent'] is True
        assert report.json()['ledger_balance'] == 110_000


class TestTimetableJourney:
    """Admin publishes a timetable; the student dashboard shows the right slice"""

    @pytest.mark.asyncio
    async def test_dashboard_shows_own_lectures(self, client: AsyncClient, admin_auth_headers, test_user,
                                                auth_headers):
        from app.services.timetable_service import today_name

        today = today_name()
        for department in ['Computer Science', 'Mathematics']:
            await client.post('/api/v1/lectures', headers=admin_auth_headers, json={
                'day': today, 'time': '08:00', 'subject': f'{department} 201',
                'faculty': test_user.faculty, 'department': department, 'level': 200,
            })

        dashboard = await client.get('/api/v1/dashboard', headers=auth_headers)

        assert dashboard.json()['today'] == today
        assert [l['subject'] for l in dashboard.json()['todays_lectures']] == ['Computer Science 201']


class TestAPIHealthCheck:
    """Test API health and basic endpoints"""

    @pytest.mark.asyncio
    async def test_api_root(self, client: AsyncClient):
        response = await client.get('/')
        assert response.status_code == 200
        assert response.json()['health'] == '/health'
