"""Type definitions for otp-service."""

from enum import StrEnum


class OTPStatus(StrEnum):
    """Lifecycle status of an OTP. VERIFIED and EXPIRED are terminal."""

    ACTIVE = "ACTIVE"
    VERIFIED = "VERIFIED"
    EXPIRED = "EXPIRED"


class Channel(StrEnum):
    """Delivery channel understood by the notification service."""

    AUTO = "AUTO"
    SMS = "SMS"
    EMAIL = "E-MAIL"
