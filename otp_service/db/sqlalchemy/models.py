"""SQLAlchemy models for OTP records."""

from datetime import datetime

from sqlalchemy import BigInteger, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column  # type: ignore[import-untyped]

from otp_service.db.sqlalchemy.types import UTCDateTime
from otp_service.types import OTPStatus


class BaseOTPTable[ID]:
    """
    Base class for OTP models.

    Generic type parameter ID allows for different primary key types (int, UUID, etc.).
    The concrete model declares the ``id`` column and the table name.

    Fields:
        - customer_id: Account resolved by the customer directory (indexed)
        - msisdn: Phone number the OTP was sent to
        - pin: 6-digit pin
        - created_on: Creation timestamp, timezone-aware UTC
        - status: ACTIVE, VERIFIED or EXPIRED
        - attempt_count: Number of validation attempts
        - application_id: Application that requested the OTP

    Example:
        ```python
        from sqlalchemy.orm import DeclarativeBase

        class Base(DeclarativeBase):
            pass

        class OTP(BaseOTPTable[int], Base):
            __tablename__ = "otp"

            id: Mapped[int] = mapped_column(Integer, primary_key=True)
        ```
    """

    customer_id: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    msisdn: Mapped[str] = mapped_column(String(32), nullable=False)
    pin: Mapped[int] = mapped_column(Integer, nullable=False)
    created_on: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    status: Mapped[OTPStatus] = mapped_column(
        Enum(OTPStatus, native_enum=False, length=16),
        default=OTPStatus.ACTIVE,
        nullable=False,
    )
    attempt_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    application_id: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
