"""
Test configuration and fixtures
FastAPI + SQLAlchemy async on in-memory SQLite
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from datetime import date, time
import os
import tempfile

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Set test environment before the app reads its settings
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-with-at-least-32-chars")
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="eventhall-uploads-")

# Import all models BEFORE creating fixtures (critical for create_all to work)
from app.core.database import Base
import app.models  # noqa: F401
from app.core.security import create_access_token
from app.core.storage import LocalFileStorage
from app.models.booking import Booking, BookingStatus, BookingPaymentStatus, EventType
from app.models.event import Event, EventStatus
from app.models.payment import Payment, PaymentMethod, PaymentStatus
from app.models.user import User, UserRole

@pytest_asyncio.fixture(scope="function")
async def test_db():
    """Fresh in-memory database per test"""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_db) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async_session_maker = async_sessionmaker(
        test_db,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(str(tmp_path / "uploads"), "/uploads")


@pytest_asyncio.fixture
async def client(db_session, storage):
    """Create test client with dependency override"""
    from app.main import app
    from app.core.database import get_session
    from app.core.storage import get_storage

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_storage] = lambda: storage

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


async def create_user(db_session, email: str, role: UserRole = UserRole.USER) -> User:
    user = User(
        email=email,
        full_name=email.split("@")[0].title(),
        phone="0911000000",
        role=role,
        is_active=True
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    return await create_user(db_session, "customer@example.com")


@pytest_asyncio.fixture
async def other_user(db_session):
    return await create_user(db_session, "someone@example.com")


@pytest_asyncio.fixture
async def test_admin(db_session):
    return await create_user(db_session, "admin@example.com", UserRole.ADMIN)


def auth_headers(user: User) -> dict:
    token = create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def auth_headers_user(test_user):
    return auth_headers(test_user)


@pytest_asyncio.fixture
async def auth_headers_other(other_user):
    return auth_headers(other_user)


@pytest_asyncio.fixture
async def auth_headers_admin(test_admin):
    return auth_headers(test_admin)


async def create_booking(db_session, user: User = None, **overrides) -> Booking:
    values = dict(
        user_id=user.id if user else None,
        customer_name="Abebe Kebede",
        customer_email="abebe@example.com",
        customer_phone="0911223344",
        event_type=EventType.WEDDING,
        event_date=date(2026, 12, 20),
        event_time=time(14, 30),
        guest_count=100,
        duration_hours=5,
        price_calculated=20000,
        status=BookingStatus.PENDING,
        payment_status=BookingPaymentStatus.UNPAID,
    )
    values.update(overrides)
    booking = Booking(**values)
    db_session.add(booking)
    await db_session.commit()
    return booking


async def create_event(db_session, **overrides) -> Event:
    values = dict(
        title="New Year Gala",
        event_type=EventType.CORPORATE,
        location="Addis Ababa",
        event_date=date(2026, 12, 31),
        event_time=time(19, 0),
        ticket_price=500,
        total_tickets=None,
        status=EventStatus.PUBLISHED,
    )
    values.update(overrides)
    event = Event(**values)
    db_session.add(event)
    await db_session.commit()
    return event


async def create_event_payment(db_session, event: Event, user: User, with_proof: bool = True, **overrides) -> Payment:
    values = dict(
        event_id=event.id,
        user_id=user.id,
        amount=event.ticket_price,
        currency="ETB",
        payment_method=PaymentMethod.TELEBIRR,
        phone_number="0911223344",
        transaction_id=os.urandom(8).hex().upper(),
        status=PaymentStatus.PENDING,
        proof_image_url="/uploads/payments/proof.png" if with_proof else None,
    )
    values.update(overrides)
    payment = Payment(**values)
    db_session.add(payment)
    await db_session.commit()
    return payment


@pytest_asyncio.fixture
async def test_booking(db_session, test_user):
    return await create_booking(db_session, test_user)


@pytest_asyncio.fixture
async def test_event(db_session):
    return await create_event(db_session)


@pytest.fixture
def make_booking(db_session):
    async def factory(user=None, **overrides):
        return await create_booking(db_session, user, **overrides)
    return factory


@pytest.fixture
def make_event(db_session):
    async def factory(**overrides):
        return await create_event(db_session, **overrides)
    return factory


@pytest.fixture
def make_event_payment(db_session):
    async def factory(event, user, with_proof=True, **overrides):
        return await create_event_payment(db_session, event, user, with_proof, **overrides)
    return factory
