"""Protocols defining the OTP record interface."""

from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from otp_service.types import OTPStatus


@runtime_checkable
class OTPProtocol(Protocol):
    """
    Protocol defining the required interface for OTP records.

    Any OTP model (SQLAlchemy, Pydantic, etc.) used with adapters
    must provide these attributes.
    """

    id: Any
    customer_id: int
    msisdn: str
    pin: int
    created_on: datetime
    status: OTPStatus
    attempt_count: int
    application_id: int


@runtime_checkable
class PydanticOTPProtocol(OTPProtocol, Protocol):
    """Protocol for Pydantic-based OTP documents."""

    def model_dump(
        self, *, by_alias: bool = False, exclude_none: bool = True
    ) -> dict[str, Any]:
        """Serialize model to dictionary."""
        ...

    @classmethod
    def model_validate(cls, obj: Any) -> "PydanticOTPProtocol":  # noqa: ANN401
        """Validate and create model from dictionary."""
        ...
