"""FastAPI dependencies for the OTP service."""

from collections.abc import Callable
from typing import Any

from fastapi import Depends  # type: ignore[import-untyped]

from otp_service.clients import (
    CustomerClient,
    NotificationClient,
    NumberInformationClient,
)
from otp_service.config import OTPServiceConfig
from otp_service.db.adapter import OTPDatabase
from otp_service.security import PinGenerator, generate_pin
from otp_service.service import OTPService


def get_otp_service_dependency(
    get_otp_db: Callable[..., Any],
    config: OTPServiceConfig,
    customer_client: CustomerClient | None = None,
    number_client: NumberInformationClient | None = None,
    notification_client: NotificationClient | None = None,
    pin_generator: PinGenerator = generate_pin,
) -> Callable[..., Any]:
    """
    Create a dependency that builds an OTPService per request.

    Clients that are not passed in are created once from ``config`` and
    shared by every request, so their connection pools are reused. The
    repository comes from ``get_otp_db`` on each request.

    Args:
        get_otp_db: Callable (or dependency) that returns an OTPDatabase
        config: OTP service configuration
        customer_client: Customer directory client override
        number_client: Number information client override
        notification_client: Notification client override
        pin_generator: Pin source override

    Returns:
        FastAPI dependency function

    Example:
        ```python
        config = MyOTPConfig()
        get_otp_service = get_otp_service_dependency(get_otp_db, config)
        app.include_router(get_otp_router(get_otp_service), prefix="/otp")
        ```
    """
    customers = customer_client or CustomerClient(
        config.customer_service_url, timeout=config.request_timeout
    )
    numbers = number_client or NumberInformationClient(
        config.number_information_url, timeout=config.request_timeout
    )
    notifications = notification_client or NotificationClient(
        config.notification_service_url, timeout=config.request_timeout
    )

    async def get_otp_service(
        db: OTPDatabase[Any] = Depends(get_otp_db),
    ) -> OTPService[Any]:
        """Dependency that returns an OTPService bound to the request's repository."""
        return OTPService(
            db=db,
            config=config,
            customer_client=customers,
            number_client=numbers,
            notification_client=notifications,
            pin_generator=pin_generator,
        )

    return get_otp_service
