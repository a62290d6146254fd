"""
Pytest configuration and shared fixtures for the wellness API tests.
"""

import os
import tempfile

# Settings are read at import time, so the environment goes first
_tmp_dir = tempfile.mkdtemp(prefix="wellness-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp_dir}/test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["CACHE_USE_REDIS"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(_tmp_dir, "uploads")
os.environ.pop("CRON_API_KEY", None)

from datetime import date, timedelta
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from wellness.core.cache import cache
from wellness.core.database import AsyncSessionLocal, engine
from wellness.core.security import SecurityUtils
from wellness.main import app
from wellness.models import (
    Base,
    BonusTransaction,
    DiscountType,
    PromoCode,
    Service,
    Specialist,
    User,
    UserRole,
)


@pytest_asyncio.fixture(autouse=True)
async def setup_database():
    """Fresh schema and an empty cache for every test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    cache._fallback_cache.clear()
    yield
    cache._fallback_cache.clear()


@pytest_asyncio.fixture
async def db_session():
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://localhost") as ac:
        yield ac


async def create_user(db_session, email, role=UserRole.USER, balance=0, **kwargs) -> User:
    user = User(
        email=email,
        first_name=kwargs.pop("first_name", "Анна"),
        last_name=kwargs.pop("last_name", "Иванова"),
        role=role,
        bonus_balance=Decimal(str(balance)),
        **kwargs,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    # the refresh opened a transaction; SQLite allows one writer at a time
    await db_session.commit()
    return user


def auth_headers(user: User) -> dict:
    token = SecurityUtils.create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


async def fetch_balance(user_id) -> Decimal:
    """Balance as stored, read through a separate session."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User.bonus_balance).where(User.id == user_id))
        return Decimal(str(result.scalar_one()))


async def fetch_transactions(user_id):
    async with AsyncSessionLocal() as session:
        result = await session.execute(
            select(BonusTransaction)
            .where(BonusTransaction.user_id == user_id)
            .order_by(BonusTransaction.created_at)
        )
        return list(result.scalars().all())


@pytest_asyncio.fixture
async def user(db_session):
    return await create_user(db_session, "client@example.com", balance=1000)


@pytest_asyncio.fixture
async def other_user(db_session):
    return await create_user(db_session, "other@example.com", first_name="Борис", last_name="Петров")


@pytest_asyncio.fixture
async def admin(db_session):
    return await create_user(db_session, "admin@example.com", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def specialist_user(db_session):
    return await create_user(db_session, "doctor@example.com", role=UserRole.SPECIALIST)


@pytest_asyncio.fixture
async def specialist(db_session, specialist_user):
    specialist = Specialist(
        first_name="Мария",
        last_name="Смирнова",
        position="Массажист",
        experience=7,
        user_id=specialist_user.id,
    )
    db_session.add(specialist)
    await db_session.commit()
    await db_session.refresh(specialist)
    await db_session.commit()
    return specialist


@pytest_asyncio.fixture
async def service(db_session):
    service = Service(name="Массаж спины", price=Decimal("3000"), duration=60)
    db_session.add(service)
    await db_session.commit()
    await db_session.refresh(service)
    await db_session.commit()
    return service


@pytest_asyncio.fixture
async def promo(db_session):
    promo = PromoCode(
        code="SPRING10",
        description="Весенняя скидка",
        discount_type=DiscountType.PERCENTAGE.value,
        discount_value=Decimal("10"),
        current_uses=0,
        is_active=True,
        services=[],
    )
    db_session.add(promo)
    await db_session.commit()
    await db_session.refresh(promo)
    await db_session.commit()
    return promo


@pytest.fixture
def future_date() -> str:
    return (date.today() + timedelta(days=3)).isoformat()


@pytest.fixture
def booking_payload(specialist, service, future_date) -> dict:
    return {
        "specialistId": str(specialist.id),
        "serviceId": str(service.id),
        "date": future_date,
        "timeStart": "10:00",
        "timeEnd": "11:00",
        "userName": "Анна Иванова",
        "userEmail": "client@example.com",
        "userPhone": "+79991234567",
    }
