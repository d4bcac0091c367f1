"""Test configuration and fixtures."""

import json
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from sqlalchemy import Integer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from otp_service.clients import CustomerClient, NotificationClient, NumberInformationClient
from otp_service.config import OTPServiceConfig
from otp_service.db.sqlalchemy.adapter import SQLAlchemyAdapter
from otp_service.db.sqlalchemy.models import BaseOTPTable
from otp_service.service import OTPService
from otp_service.types import OTPStatus

TEST_MSISDN = "+306912345678"
TEST_PIN = 482913

# ============================================================================
# Database Models for Testing
# ============================================================================


class Base(DeclarativeBase):
    """Base class for test database models."""


class OTP(BaseOTPTable[int], Base):
    """Test OTP model."""

    __tablename__ = "otp"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


# ============================================================================
# Test Configuration
# ============================================================================


class MockOTPConfig(OTPServiceConfig):
    """OTP service configuration pointing at the stubbed remote services."""

    customer_service_url = "http://customer-service"
    number_information_url = "http://numbers.test/api/info"
    notification_service_url = "http://notifications.test/api/notify"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RemoteServices:
    """
    Stub for the customer, number information and notification services.

    Every request is recorded. Responses are configured per service through
    the public attributes.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.customer_status = 200
        self.customer_body: Any = {"accountId": 42, "name": "Test Customer"}
        self.number_status = 200
        self.notification_status = 200
        self.failing_channels: set[str] = set()
        self.unreachable_hosts: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host in self.unreachable_hosts:
            raise httpx.ConnectError("Connection refused", request=request)

        if host == "customer-service":
            return httpx.Response(self.customer_status, json=self.customer_body)
        if host == "numbers.test":
            return httpx.Response(self.number_status, text="valid")
        if host == "notifications.test":
            payload = json.loads(request.content)
            if payload["channel"] in self.failing_channels:
                return httpx.Response(503, json={"error": "channel down"})
            return httpx.Response(
                self.notification_status, json={"delivered": True, **payload}
            )
        return httpx.Response(404)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    @property
    def notifications(self) -> list[dict[str, Any]]:
        """JSON bodies of all notification requests."""
        return [json.loads(r.content) for r in self.requests_to("notifications.test")]


# ============================================================================
# Basic Fixtures
# ============================================================================


@pytest.fixture
def test_config() -> MockOTPConfig:
    """Provide a test configuration."""
    return MockOTPConfig()


@pytest.fixture
def current_time() -> datetime:
    """Provide current UTC time."""
    return datetime.now(UTC)


@pytest.fixture
def clock(current_time: datetime) -> FrozenClock:
    """Provide a controllable clock starting at the current time."""
    return FrozenClock(current_time)


@pytest.fixture
def remote() -> RemoteServices:
    """Provide stubbed remote services."""
    return RemoteServices()


@pytest.fixture
async def http_client(remote: RemoteServices) -> AsyncIterator[httpx.AsyncClient]:
    """Provide an httpx client routed to the stubbed remote services."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(remote.handler)) as client:
        yield client


@pytest.fixture
def customer_client(
    test_config: MockOTPConfig, http_client: httpx.AsyncClient
) -> CustomerClient:
    return CustomerClient(test_config.customer_service_url, client=http_client)


@pytest.fixture
def number_client(
    test_config: MockOTPConfig, http_client: httpx.AsyncClient
) -> NumberInformationClient:
    return NumberInformationClient(test_config.number_information_url, client=http_client)


@pytest.fixture
def notification_client(
    test_config: MockOTPConfig, http_client: httpx.AsyncClient
) -> NotificationClient:
    return NotificationClient(test_config.notification_service_url, client=http_client)


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def async_engine():  # type: ignore[no-untyped-def]
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncSession:  # type: ignore[no-untyped-def]
    """Create an async database session."""
    async_session_maker = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def otp_db(async_session: AsyncSession) -> SQLAlchemyAdapter[OTP]:
    """Create a SQLAlchemyAdapter instance."""
    return SQLAlchemyAdapter(async_session, OTP)


@pytest.fixture
async def active_otp(
    otp_db: SQLAlchemyAdapter[OTP], current_time: datetime
) -> OTP:
    """Create an active OTP directly in the database."""
    return await otp_db.create(
        customer_id=42,
        msisdn=TEST_MSISDN,
        pin=TEST_PIN,
        created_on=current_time,
        status=OTPStatus.ACTIVE,
        attempt_count=0,
        application_id=1,
    )


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def otp_service(
    otp_db: SQLAlchemyAdapter[OTP],
    test_config: MockOTPConfig,
    customer_client: CustomerClient,
    number_client: NumberInformationClient,
    notification_client: NotificationClient,
    clock: FrozenClock,
) -> OTPService[OTP]:
    """Create an OTPService with a fixed pin and a frozen clock."""
    return OTPService(
        db=otp_db,
        config=test_config,
        customer_client=customer_client,
        number_client=number_client,
        notification_client=notification_client,
        pin_generator=lambda: TEST_PIN,
        clock=clock,
    )
