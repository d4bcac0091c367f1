"""Example FastAPI application serving the OTP endpoints.

This example demonstrates:
- Setting up an OTP model with BaseOTPTable
- Creating database session and OTPDatabase adapter
- Configuring the remote customer, number and notification services
- Registering the OTP router
"""
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import Depends, FastAPI
from sqlalchemy import Integer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from otp_service import (
    BaseOTPTable,
    OTPServiceConfig,
    SQLAlchemyAdapter,
    build_clients,
    get_otp_router,
    get_otp_service_dependency,
)

# Database configuration
DATABASE_URL = "sqlite+aiosqlite:///./otp.db"


class Base(DeclarativeBase):
    pass


class OTP(BaseOTPTable[int], Base):
    """OTP table."""

    __tablename__ = "otp"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


engine = create_async_engine(DATABASE_URL, echo=False)
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session."""
    async with async_session_maker() as session:
        yield session


async def get_otp_db(
    session: AsyncSession = Depends(get_async_session),
) -> SQLAlchemyAdapter[OTP]:
    """Dependency to get OTP database adapter."""
    return SQLAlchemyAdapter(session, OTP)


class MyOTPConfig(OTPServiceConfig):
    """Remote endpoints for a local development setup."""

    customer_service_url = "http://localhost:8081"
    number_information_url = "http://localhost:8082/api/number-info"
    notification_service_url = "http://localhost:8083/api/notifications"
    validity_window = timedelta(seconds=120)


config = MyOTPConfig()
customers, numbers, notifications = build_clients(config)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Create tables on startup and close HTTP clients on shutdown."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    for client in (customers, numbers, notifications):
        await client.aclose()
    await engine.dispose()


app = FastAPI(
    title="OTP Service Example",
    description="Issue, resend and validate one-time passcodes",
    lifespan=lifespan,
)

get_otp_service = get_otp_service_dependency(
    get_otp_db,
    config,
    customer_client=customers,
    number_client=numbers,
    notification_client=notifications,
)
app.include_router(get_otp_router(get_otp_service), prefix="/otp", tags=["OTP"])


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("""
    Starting OTP service example

    1. Send an OTP:
       POST http://localhost:8000/otp/send
       {"msisdn": "+306912345678"}

    2. Validate it with the pin delivered to the phone:
       POST http://localhost:8000/otp/{id}/validate?pin=123456

    3. Or resend it on one channel:
       POST http://localhost:8000/otp/{id}/resend?channel=SMS

    API Docs: http://localhost:8000/docs
    """)

    uvicorn.run(app, host="0.0.0.0", port=8000)
