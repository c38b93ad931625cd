"""
Unit Tests for Authentication API Endpoints
"""
import pyotp
import pytest
from httpx import AsyncClient
from faker import Faker

from app.core.security import create_refresh_token
from app.services.mfa_service import mfa_service


fake = Faker()

TEST_PASSWORD = 'testpassword123'


class TestUserRegistration:
    """Test user registration endpoint"""

    @pytest.mark.asyncio
    async def test_register_success(self, client: AsyncClient, test_user_data):
        """Test successful user registration"""
        response = await client.post('/api/v1/auth/register', json=test_user_data)

        assert response.status_code == 201
        data = response.json()
        assert data['email'] == test_user_data['email']
        assert data['level'] == 200
        assert data['roles'] == ['user']
        assert 'hashed_password' not in data

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        """Test registration with duplicate email fails"""
        response = await client.post('/api/v1/auth/register', json={
            'email': test_user.email,
            'password': TEST_PASSWORD,
            'full_name': fake.name(),
        })

        assert response.status_code == 400
        assert 'already registered' in response.json()['error']['message'].lower()

    @pytest.mark.asyncio
    async def test_register_invalid_email(self, client: AsyncClient, test_user_data):
        """Test registration with invalid email"""
        test_user_data['email'] = 'not-an-email'
        response = await client.post('/api/v1/auth/register', json=test_user_data)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_register_with_short_password(self, client: AsyncClient, test_user_data):
        """Test registration with too short password"""
        test_user_data['password'] = '123'
        response = await client.post('/api/v1/auth/register', json=test_user_data)
        assert response.status_code == 422


class TestUserLogin:
    """Test user login endpoint"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, test_user):
        """Test successful login"""
        response = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': TEST_PASSWORD,
        })

        assert response.status_code == 200
        data = response.json()
        assert data['token_type'] == 'bearer'
        assert data['access_token']
        assert data['refresh_token']
        assert data['user']['id'] == str(test_user.id)
        assert data['user']['last_login'] is not None

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        """Test login with wrong password"""
        response = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': 'wrongpassword',
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/login', json={
            'email': fake.email(),
            'password': TEST_PASSWORD,
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, client: AsyncClient, db_session, test_user):
        test_user.is_active = False
        await db_session.commit()

        response = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': TEST_PASSWORD,
        })
        assert response.status_code == 403


class TestLoginWithMFA:
    """Accounts with MFA need a second factor at login"""

    async def _enable_mfa(self, db_session, user) -> str:
        data = await mfa_service.setup(db_session, user)
        await mfa_service.enable(db_session, user, pyotp.TOTP(data['secret']).now())
        await db_session.commit()
        return data['secret']

    @pytest.mark.asyncio
    async def test_code_required(self, client: AsyncClient, db_session, test_user):
        await self._enable_mfa(db_session, test_user)

        response = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': TEST_PASSWORD,
        })

        assert response.status_code == 401
        assert response.json()['error']['code'] == 'MFA_REQUIRED'

    @pytest.mark.asyncio
    async def test_valid_code_logs_in(self, client: AsyncClient, db_session, test_user):
        secret = await self._enable_mfa(db_session, test_user)

        response = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': TEST_PASSWORD,
            'totp_code': pyotp.TOTP(secret).now(),
        })
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_code_rejected(self, client: AsyncClient, db_session, test_user):
        await self._enable_mfa(db_session, test_user)

        response = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': TEST_PASSWORD,
            'totp_code': '000000',
        })
        assert response.status_code == 401
        assert response.json()['error']['code'] == 'MFA_INVALID'


class TestCurrentUser:
    """Test /me and token endpoints"""

    @pytest.mark.asyncio
    async def test_get_current_user(self, client: AsyncClient, test_user, auth_headers):
        """Test getting current user info"""
        response = await client.get('/api/v1/auth/me', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['email'] == test_user.email

    @pytest.mark.asyncio
    async def test_get_current_user_without_token(self, client: AsyncClient):
        """Test getting current user without auth token"""
        response = await client.get('/api/v1/auth/me')
        assert response.status_code in [401, 403]

    @pytest.mark.asyncio
    async def test_get_current_user_invalid_token(self, client: AsyncClient):
        """Test getting current user with invalid token"""
        response = await client.get('/api/v1/auth/me', headers={'Authorization': 'Bearer invalid'})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, auth_headers):
        response = await client.patch('/api/v1/auth/me', headers=auth_headers, json={
            'level': 300,
            'bio': 'Final year is coming',
        })

        assert response.status_code == 200
        assert response.json()['level'] == 300

    @pytest.mark.asyncio
    async def test_update_profile_reg_number_taken(self, client: AsyncClient, make_user, auth_headers):
        await make_user(reg_number='2021/123456')

        response = await client.patch('/api/v1/auth/me', headers=auth_headers, json={
            'reg_number': '2021/123456',
        })
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_refresh(self, client: AsyncClient, test_user):
        refresh = create_refresh_token({'sub': str(test_user.id), 'email': test_user.email})

        response = await client.post('/api/v1/auth/refresh', json={'refresh_token': refresh})

        assert response.status_code == 200
        assert response.json()['access_token']

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, client: AsyncClient, auth_headers):
        access = auth_headers['Authorization'].split(' ', 1)[1]

        response = await client.post('/api/v1/auth/refresh', json={'refresh_token': access})
        assert response.status_code == 401


class TestChangePassword:

    @pytest.mark.asyncio
    async def test_change_password(self, client: AsyncClient, test_user, auth_headers):
        response = await client.post('/api/v1/auth/change-password', headers=auth_headers, json={
            'current_password': TEST_PASSWORD,
            'new_password': 'anotherpassword1',
        })
        assert response.status_code == 200

        login = await client.post('/api/v1/auth/login', json={
            'email': test_user.email,
            'password': 'anotherpassword1',
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/v1/auth/change-password', headers=auth_headers, json={
            'current_password': 'not-my-password',
            'new_password': 'anotherpassword1',
        })
        assert response.status_code == 400


class TestSetupAdmin:
    """First administrator bootstrap"""

    def _payload(self, token='test-setup-token'):
        return {
            'setup_token': token,
            'email': fake.unique.email(),
            'password': TEST_PASSWORD,
            'full_name': fake.name(),
        }

    @pytest.mark.asyncio
    async def test_creates_first_admin(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/setup-admin', json=self._payload())

        assert response.status_code == 201
        user = response.json()['user']
        assert user['is_superuser'] is True
        assert 'admin' in user['roles']

    @pytest.mark.asyncio
    async def test_wrong_token(self, client: AsyncClient):
        response = await client.post('/api/v1/auth/setup-admin', json=self._payload('nope'))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_refused_once_admin_exists(self, client: AsyncClient, admin_user):
        response = await client.post('/api/v1/auth/setup-admin', json=self._payload())
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_new_admin_can_reach_admin_api(self, client: AsyncClient, db_session):
        response = await client.post('/api/v1/auth/setup-admin', json=self._payload())
        token = response.json()['access_token']

        stats = await client.get('/api/v1/admin/dashboard/stats', headers={'Authorization': f'Bearer {token}'})
        assert stats.status_code == 200
