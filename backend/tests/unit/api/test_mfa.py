"""
Unit Tests for MFA endpoints
"""
import pyotp
import pytest
from httpx import AsyncClient


async def enable_mfa(client: AsyncClient, headers: dict) -> str:
    setup = await client.post('/api/v1/auth/mfa/setup', headers=headers)
    secret = setup.json()['secret']
    verify = await client.post('/api/v1/auth/mfa/verify', headers=headers,
                               json={'code': pyotp.TOTP(secret).now()})
    assert verify.json()['enabled'] is True
    return secret


class TestMFAEndpoints:

    @pytest.mark.asyncio
    async def test_status_starts_disabled(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/v1/auth/mfa/status', headers=auth_headers)
        assert response.json() == {'enabled': False, 'configured': False, 'recovery_codes_remaining': 0}

    @pytest.mark.asyncio
    async def test_setup_returns_uri(self, client: AsyncClient, auth_headers, test_user):
        response = await client.post('/api/v1/auth/mfa/setup', headers=auth_headers)

        data = response.json()
        assert data['provisioning_uri'].startswith('otpauth://totp/')
        assert data['issuer']

    @pytest.mark.asyncio
    async def test_wrong_code_does_not_enable(self, client: AsyncClient, auth_headers):
        await client.post('/api/v1/auth/mfa/setup', headers=auth_headers)

        response = await client.post('/api/v1/auth/mfa/verify', headers=auth_headers, json={'code': '000000'})

        assert response.status_code == 401
        status = await client.get('/api/v1/auth/mfa/status', headers=auth_headers)
        assert status.json()['enabled'] is False

    @pytest.mark.asyncio
    async def test_recovery_flow(self, client: AsyncClient, auth_headers, test_user):
        await enable_mfa(client, auth_headers)

        codes = (await client.post('/api/v1/auth/mfa/recovery-codes', headers=auth_headers)).json()['codes']
        assert len(codes) == 3

        recovered = await client.post('/api/v1/auth/mfa/recover', json={
            'email': test_user.email, 'password': 'testpassword123', 'recovery_code': codes[0],
        })
        assert recovered.status_code == 200
        assert recovered.json()['access_token']

        login = await client.post('/api/v1/auth/login', json={
            'email': test_user.email, 'password': 'testpassword123',
        })
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_recover_with_wrong_password(self, client: AsyncClient, auth_headers, test_user):
        await enable_mfa(client, auth_headers)
        codes = (await client.post('/api/v1/auth/mfa/recovery-codes', headers=auth_headers)).json()['codes']

        response = await client.post('/api/v1/auth/mfa/recover', json={
            'email': test_user.email, 'password': 'not-it-at-all', 'recovery_code': codes[0],
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_disable_with_totp(self, client: AsyncClient, auth_headers):
        secret = await enable_mfa(client, auth_headers)

        response = await client.post('/api/v1/auth/mfa/disable', headers=auth_headers,
                                     json={'code': pyotp.TOTP(secret).now()})

        assert response.json()['enabled'] is False

    @pytest.mark.asyncio
    async def test_setup_again_keeps_login_protected(self, client: AsyncClient, auth_headers, test_user):
        email = test_user.email
        old_secret = await enable_mfa(client, auth_headers)

        setup = await client.post('/api/v1/auth/mfa/setup', headers=auth_headers)
        new_secret = setup.json()['secret']
        assert new_secret != old_secret

        status = await client.get('/api/v1/auth/mfa/status', headers=auth_headers)
        assert status.json()['enabled'] is True

        bare = await client.post('/api/v1/auth/login', json={
            'email': email, 'password': 'testpassword123',
        })
        assert bare.status_code == 401
        assert bare.json()['error']['code'] == 'MFA_REQUIRED'

        with_old = await client.post('/api/v1/auth/login', json={
            'email': email, 'password': 'testpassword123', 'totp_code': pyotp.TOTP(old_secret).now(),
        })
        assert with_old.status_code == 200

        confirm = await client.post('/api/v1/auth/mfa/verify', headers=auth_headers,
                                    json={'code': pyotp.TOTP(new_secret).now()})
        assert confirm.json()['enabled'] is True

        with_new = await client.post('/api/v1/auth/login', json={
            'email': email, 'password': 'testpassword123', 'totp_code': pyotp.TOTP(new_secret).now(),
        })
        assert with_new.status_code == 200
