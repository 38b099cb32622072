"""Shared fixtures: in-memory database, app client, seeded boats and staff.

External services (mail, Stripe, PayPal, S3, Redis, reCAPTCHA) are never
reached: their settings are cleared below and the few call sites the API tests
go through are replaced by fakes.
"""

import os

# Configure the app before it is imported anywhere
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUDIT_ENABLED"] = "false"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["NEXTAUTH_SECRET"] = "test-booking-secret"
os.environ["PASSWORD_MIN_SCORE"] = "3"
for _name in (
    "REDIS_URL",
    "RATE_LIMIT_REDIS_URL",
    "RECAPTCHA_SECRET_KEY",
    "STRIPE_SECRET_KEY",
    "STRIPE_WEBHOOK_SECRET",
    "PAYPAL_CLIENT_ID",
    "PAYPAL_CLIENT_SECRET",
    "RESEND_API_KEY",
    "SMTP_HOST",
    "STORAGE_ACCESS_KEY",
    "STORAGE_SECRET_KEY",
    "STORAGE_BUCKET",
):
    os.environ.pop(_name, None)

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import narcisse.domain  # noqa: E402,F401
from narcisse.core.cache import clear_memory_cache  # noqa: E402
from narcisse.core.ratelimit import reset_memory_buckets  # noqa: E402
from narcisse.core.security import create_access_token, get_password_hash  # noqa: E402
from narcisse.db.base import Base, enable_sqlite_foreign_keys, get_db, session_scope  # noqa: E402
from narcisse.domain.boat import Boat  # noqa: E402
from narcisse.domain.user import User  # noqa: E402
from narcisse.services.emails import EmailOutcome  # noqa: E402

STAFF_PASSWORD = "Colmar-Barque-2031!"


@pytest.fixture(autouse=True)
def _reset_process_state():
    clear_memory_cache()
    reset_memory_buckets()
    yield
    clear_memory_cache()
    reset_memory_buckets()


@pytest.fixture(autouse=True)
def sent_confirmations(monkeypatch) -> list[str]:
    """Booking ids a confirmation e-mail was requested for."""
    sent: list[str] = []

    async def fake_send(session, booking_id, *, invoice_email=None, force=False):
        sent.append(booking_id)
        return EmailOutcome(False, "DISABLED_IN_TESTS")

    monkeypatch.setattr("narcisse.services.booking.send_booking_confirmation", fake_send)
    monkeypatch.setattr("narcisse.services.online_payments.send_booking_confirmation", fake_send)
    return sent


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(test_engine)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def boats(session_factory) -> list[Boat]:
    """Two active 12-seat boats; ids 1 and 2 drive the slot rotation."""
    async with session_factory() as session:
        fleet = [Boat(name="Narcisse", capacity=12), Boat(name="Iris", capacity=12)]
        session.add_all(fleet)
        await session.commit()
        for boat in fleet:
            await session.refresh(boat)
    return fleet


async def _make_user(session_factory, email: str, role: str, **extra) -> User:
    async with session_factory() as session:
        user = User(
            email=email,
            first_name=extra.pop("first_name", role.title()),
            last_name=extra.pop("last_name", "Test"),
            role=role,
            password_hash=get_password_hash(STAFF_PASSWORD),
            **extra,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin(session_factory) -> User:
    return await _make_user(session_factory, "admin@sweet-narcisse.fr", "ADMIN")


@pytest_asyncio.fixture
async def superadmin(session_factory) -> User:
    return await _make_user(session_factory, "owner@sweet-narcisse.fr", "SUPERADMIN")


@pytest_asyncio.fixture
async def employee(session_factory) -> User:
    return await _make_user(session_factory, "pilote@sweet-narcisse.fr", "EMPLOYEE")


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    from narcisse.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_scope(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()
