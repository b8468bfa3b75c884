"""
Test configuration and fixtures
Each test gets a fresh in-memory SQLite schema; geocoding and payments are stubbed
"""

import asyncio
import pytest
import pytest_asyncio
from typing import AsyncGenerator, Dict, List, Optional
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4
import os

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

# Set test environment before the app reads its settings
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["GEOCODE_CACHE_ENABLED"] = "false"
os.environ["PAYMENT_SIMULATION_DELAY_SECONDS"] = "0"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"

# Import all models BEFORE creating fixtures (critical for create_all to work)
from app.core.database import Base
from app.core.exceptions import GeocodeError, PaymentError
from app.core.security import create_access_token
from app.models.user import User, UserRole
from app.models.venue import Venue
from app.models.event import Event
from app.models.venue_booking import VenueBooking, VenueBookingStatus
from app.models.payment import Payment
from app.models.ticket_booking import TicketBooking
from app.services.geo import Coordinates
from app.services.payment_service import PaymentGateway, PaymentResult

# Known places for the stub geocoder
AUCKLAND = Coordinates(latitude=-36.8485, longitude=174.7633)
PONSONBY = Coordinates(latitude=-36.8563, longitude=174.7465)
WELLINGTON = Coordinates(latitude=-41.2865, longitude=174.7762)


class StubGeocoder:
    """Geocoder double answering from a fixed table"""

    def __init__(self, places: Optional[Dict[str, Coordinates]] = None, fail: bool = False):
        self.places = places if places is not None else {
            "auckland": AUCKLAND,
            "ponsonby": PONSONBY,
            "wellington": WELLINGTON,
        }
        self.fail = fail
        self.calls: List[str] = []

    async def geocode(self, location: str) -> Optional[Coordinates]:
        self.calls.append(location)
        if self.fail:
            raise GeocodeError(location, message="Geocoding service is unavailable")
        return self.places.get(location.strip().lower())


class RecordingGateway(PaymentGateway):
    """Payment gateway double that records charges and refunds"""

    def __init__(self, fail: bool = False, delay: float = 0):
        self.fail = fail
        self.delay = delay
        self.charges: List[PaymentResult] = []
        self.refunds: List[str] = []

    async def charge(self, amount, currency="usd", metadata=None) -> PaymentResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise PaymentError("Card declined")
        result = PaymentResult(reference=f"test_{uuid4().hex}", amount=amount, currency=currency)
        self.charges.append(result)
        return result

    async def refund(self, reference: str) -> None:
        self.refunds.append(reference)


@pytest_asyncio.fixture(scope="function")
async def test_db():
    """Create async database engine for tests"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
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
def geocoder():
    return StubGeocoder()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest_asyncio.fixture
async def client(db_session, geocoder, gateway):
    """Create test client with dependency overrides"""
    from app.main import app
    from app.core.database import get_session
    from app.services.geocoding_service import get_geocoder
    from app.services.payment_service import get_payment_gateway

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


# User fixtures; a literal hash keeps bcrypt out of the hot path
async def _create_user(db_session, role: UserRole, prefix: str) -> User:
    user = User(
        email=f"{prefix}_{uuid4().hex[:8]}@example.com",
        password_hash="not-a-real-hash",
        full_name=f"{prefix.title()} User",
        role=role,
        is_active=True
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    return await _create_user(db_session, UserRole.USER, "user")


@pytest_asyncio.fixture
async def other_user(db_session):
    return await _create_user(db_session, UserRole.USER, "other")


@pytest_asyncio.fixture
async def test_admin(db_session):
    return await _create_user(db_session, UserRole.ADMIN, "admin")


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers_user(test_user):
    return auth_headers_for(test_user)


@pytest.fixture
def auth_headers_other(other_user):
    return auth_headers_for(other_user)


@pytest.fixture
def auth_headers_admin(test_admin):
    return auth_headers_for(test_admin)


async def create_venue(
    db_session,
    name: str = "Test Hall",
    price_per_day: str = "100.00",
    capacity: int = 200,
    coordinates: Optional[Coordinates] = AUCKLAND,
    location: str = "Auckland"
) -> Venue:
    """Helper function to insert a venue directly"""
    venue = Venue(
        name=name,
        location=location,
        capacity=capacity,
        price_per_day=Decimal(price_per_day),
        latitude=coordinates.latitude if coordinates else None,
        longitude=coordinates.longitude if coordinates else None,
    )
    db_session.add(venue)
    await db_session.commit()
    await db_session.refresh(venue)
    return venue


@pytest_asyncio.fixture
async def test_venue(db_session):
    return await create_venue(db_session)


@pytest.fixture
def standard_services():
    return {
        "catering": "standard",
        "decoration": "standard",
        "photography": "standard",
        "music": "standard",
    }


@pytest_asyncio.fixture
async def test_event(db_session, test_user, test_venue):
    """Public event with two ticket tiers"""
    event = Event(
        title="Test Concert",
        description="Test concert description",
        category="music",
        date=datetime.now(timezone.utc) + timedelta(days=30),
        is_public=True,
        organizer_id=test_user.id,
        venue_id=test_venue.id,
        ticket_prices=[
            {"seat_type": "general", "price": 25.0, "available_seats": 10},
            {"seat_type": "vip", "price": 80.0, "available_seats": 2},
        ]
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event


async def create_booking_row(
    db_session,
    venue_id,
    user_id,
    start: str,
    end: str,
    status: VenueBookingStatus = VenueBookingStatus.CONFIRMED
) -> VenueBooking:
    """Helper function to insert a booking without going through the orchestrator"""
    booking = VenueBooking(
        venue_id=venue_id,
        user_id=user_id,
        start_date=date.fromisoformat(start),
        end_date=date.fromisoformat(end),
        guests=10,
        status=status,
        total_cost=Decimal("100.00"),
    )
    db_session.add(booking)
    await db_session.commit()
    await db_session.refresh(booking)
    return booking
