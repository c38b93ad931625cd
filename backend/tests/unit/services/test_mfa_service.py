"""
Unit Tests for MFAService (TOTP + recovery codes)
"""
import pyotp
import pytest

from app.core.config import settings
from app.core.exceptions import InvalidMFACodeError, ValidationError
from app.services.mfa_service import mfa_service, normalize_code, generate_recovery_code


async def enrol(db_session, user) -> str:
    data = await mfa_service.setup(db_session, user)
    await mfa_service.enable(db_session, user, pyotp.TOTP(data["secret"]).now())
    return data["secret"]


class TestHelpers:

    def test_normalize_code(self):
        assert normalize_code(" abcd-efgh ijkl ") == "ABCDEFGHIJKL"
        assert normalize_code(None) == ""

    def test_recovery_code_alphabet(self):
        code = generate_recovery_code()
        assert len(code) == settings.MFA_RECOVERY_CODE_LENGTH
        assert not set(code) & set("01OI")

    def test_verify_code_shape(self):
        secret = pyotp.random_base32()
        assert mfa_service.verify_code(secret, "12345") is False
        assert mfa_service.verify_code(secret, "abcdef") is False
        assert mfa_service.verify_code(None, "123456") is False
        assert mfa_service.verify_code(secret, pyotp.TOTP(secret).now()) is True


class TestEnrolment:

    @pytest.mark.asyncio
    async def test_setup_leaves_mfa_disabled(self, db_session, make_user):
        user = await make_user()
        data = await mfa_service.setup(db_session, user)

        assert len(data["secret"]) == 32
        assert data["provisioning_uri"].startswith("otpauth://totp/")
        status = await mfa_service.status(db_session, user.id)
        assert status == {"enabled": False, "configured": True, "recovery_codes_remaining": 0}

    @pytest.mark.asyncio
    async def test_enable_with_valid_code(self, db_session, make_user):
        user = await make_user()
        await enrol(db_session, user)
        assert await mfa_service.is_enabled(db_session, user.id) is True

    @pytest.mark.asyncio
    async def test_enable_with_wrong_code(self, db_session, make_user):
        user = await make_user()
        await mfa_service.setup(db_session, user)

        with pytest.raises(InvalidMFACodeError):
            await mfa_service.enable(db_session, user, "000000")

    @pytest.mark.asyncio
    async def test_enable_without_setup(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValidationError):
            await mfa_service.enable(db_session, user, "123456")

    @pytest.mark.asyncio
    async def test_check_login(self, db_session, make_user):
        user = await make_user()
        assert await mfa_service.check_login(db_session, user, None) is True

        secret = await enrol(db_session, user)
        assert await mfa_service.check_login(db_session, user, None) is False
        assert await mfa_service.check_login(db_session, user, pyotp.TOTP(secret).now()) is True


class TestRecoveryCodes:

    @pytest.mark.asyncio
    async def test_codes_require_enabled_mfa(self, db_session, make_user):
        user = await make_user()
        with pytest.raises(ValidationError):
            await mfa_service.generate_recovery_codes(db_session, user)

    @pytest.mark.asyncio
    async def test_code_is_single_use(self, db_session, make_user):
        user = await make_user()
        await enrol(db_session, user)
        codes = await mfa_service.generate_recovery_codes(db_session, user)

        assert len(codes) == settings.MFA_RECOVERY_CODE_COUNT
        assert await mfa_service.consume_recovery_code(db_session, user.id, codes[0].lower()) is True
        assert await mfa_service.consume_recovery_code(db_session, user.id, codes[0]) is False
        assert await mfa_service.remaining_recovery_codes(db_session, user.id) == len(codes) - 1

    @pytest.mark.asyncio
    async def test_regenerating_invalidates_old_codes(self, db_session, make_user):
        user = await make_user()
        await enrol(db_session, user)
        old_codes = await mfa_service.generate_recovery_codes(db_session, user)
        await mfa_service.generate_recovery_codes(db_session, user)

        assert await mfa_service.consume_recovery_code(db_session, user.id, old_codes[0]) is False

    @pytest.mark.asyncio
    async def test_recover_disables_mfa(self, db_session, make_user):
        user = await make_user()
        await enrol(db_session, user)
        codes = await mfa_service.generate_recovery_codes(db_session, user)

        await mfa_service.recover(db_session, user, codes[1])

        assert await mfa_service.is_enabled(db_session, user.id) is False
        assert await mfa_service.remaining_recovery_codes(db_session, user.id) == 0

    @pytest.mark.asyncio
    async def test_disable_with_recovery_code(self, db_session, make_user):
        user = await make_user()
        await enrol(db_session, user)
        codes = await mfa_service.generate_recovery_codes(db_session, user)

        await mfa_service.disable(db_session, user, codes[0])

        status = await mfa_service.status(db_session, user.id)
        assert status["enabled"] is False
        assert status["configured"] is False

    @pytest.mark.asyncio
    async def test_disable_with_bad_code(self, db_session, make_user):
        user = await make_user()
        await enrol(db_session, user)

        with pytest.raises(InvalidMFACodeError):
            await mfa_service.disable(db_session, user, "999999")
