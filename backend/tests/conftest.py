"""
UniPortal - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator, Callable, Dict
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from faker import Faker

# Set testing environment before the app reads its settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test_uniportal.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['AD_SWEEP_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['PAYMENT_DEMO_ENABLED'] = 'true'
os.environ['ADMIN_SETUP_TOKEN'] = 'test-setup-token'
os.environ['MFA_RECOVERY_CODE_COUNT'] = '3'

from app.main import app
from app.core.database import Base, get_db, get_engine, get_session_local
from app.core.security import create_access_token
from app.models import User, RoleName, WalletTransactionSource
from app.modules.payments import set_transport
from app.services.user_service import create_user
from app.services.wallet_service import wallet_service

fake = Faker()

TEST_PASSWORD = 'testpassword123'


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database for each test"""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_local()() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_payment_transport():
    """Provider clients go back to the real transport after each test"""
    yield
    set_transport(None)


def token_headers(user: User) -> Dict[str, str]:
    token = create_access_token({'sub': str(user.id), 'email': user.email})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def issued_headers() -> Dict[int, Dict[str, str]]:
    """Headers minted when each user is created, keyed by object identity"""
    return {}


@pytest.fixture
def headers_for(issued_headers) -> Callable:
    """
    Auth headers for any user built with make_user.

    A failed request rolls the shared session back and expires every loaded
    User, so the headers come from creation time rather than from user.id.
    """
    def _headers_for(user: User) -> Dict[str, str]:
        return issued_headers.get(id(user)) or token_headers(user)
    return _headers_for


@pytest.fixture
def make_user(db_session: AsyncSession, issued_headers) -> Callable:
    """Factory: await make_user(roles=[...], balance=..., **profile)"""
    async def _make_user(roles=None, balance: int = 0, is_superuser: bool = False, **profile) -> User:
        user = await create_user(
            db_session,
            email=profile.pop('email', None) or fake.unique.email(),
            password=profile.pop('password', TEST_PASSWORD),
            full_name=profile.pop('full_name', None) or fake.name(),
            is_superuser=is_superuser,
            roles=roles,
            **profile,
        )
        if balance:
            await wallet_service.credit(
                db_session, user.id, balance, WalletTransactionSource.FUNDING, 'Test funding',
                reference=f'TEST_{user.id}',
            )
        await db_session.commit()
        await db_session.refresh(user)
        issued_headers[id(user)] = token_headers(user)
        return user
    return _make_user


@pytest.fixture
async def test_user(make_user) -> User:
    """A plain student account"""
    return await make_user(faculty='Faculty of Science', department='Computer Science', level=200)


@pytest.fixture
async def admin_user(make_user) -> User:
    """An account holding the admin role"""
    return await make_user(roles=[RoleName.ADMIN])


@pytest.fixture
async def moderator_user(make_user) -> User:
    return await make_user(roles=[RoleName.MODERATOR])


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return token_headers(test_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return token_headers(admin_user)


@pytest.fixture
def moderator_auth_headers(moderator_user: User) -> dict:
    return token_headers(moderator_user)


@pytest.fixture
def test_user_data() -> dict:
    """Registration payload"""
    return {
        'email': fake.unique.email(),
        'password': TEST_PASSWORD,
        'full_name': fake.name(),
        'phone': '08012345678',
        'faculty': 'Faculty of Science',
        'department': 'Computer Science',
        'level': 200,
    }
