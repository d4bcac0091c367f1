"""Exceptions raised by the OTP lifecycle operations."""

from typing import Any


class OTPServiceError(Exception):
    """Base exception for all otp-service failures."""

    def __init__(
        self,
        message: str,
        service: str | None = None,
        status_code: int | None = None,
        details: Any = None,  # noqa: ANN401
    ) -> None:
        self.message = message
        self.service = service
        self.status_code = status_code
        self.details = details
        prefix = f"[{service}] " if service else ""
        super().__init__(f"{prefix}{message}")


class OTPNotFoundError(OTPServiceError):
    """Raised when no OTP matches the requested id (and pin/status)."""


class OTPExpiredError(OTPServiceError):
    """Raised when the pin matched but the validity window has passed."""


class UpstreamServiceError(OTPServiceError):
    """Raised when a remote lookup or notification call fails."""


class PersistenceError(OTPServiceError):
    """Raised when the repository cannot read or write an OTP."""
