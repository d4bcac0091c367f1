"""MongoDB document models for OTP records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from otp_service.types import OTPStatus


class BaseOTPDocument(BaseModel):
    """
    Base Pydantic model for OTP documents in MongoDB.

    Users may inherit from this class to add their own fields.

    Fields:
        - id: MongoDB ObjectId as string (assigned on insert)
        - customer_id: Account resolved by the customer directory
        - msisdn: Phone number the OTP was sent to
        - pin: 6-digit pin
        - created_on: Creation timestamp, timezone-aware UTC
        - status: ACTIVE, VERIFIED or EXPIRED
        - attempt_count: Number of validation attempts
        - application_id: Application that requested the OTP

    Example:
        ```python
        class OTP(BaseOTPDocument):
            channel_hint: str | None = None
        ```
    """

    # MongoDB _id field (ObjectId as string)
    id: str | None = Field(default=None, alias="_id")

    customer_id: int = Field(..., description="Customer account id")
    msisdn: str = Field(..., description="Recipient phone number", max_length=32)
    pin: int = Field(..., ge=100000, le=999999, description="6-digit pin")
    created_on: datetime = Field(..., description="When the OTP was created")

    status: OTPStatus = Field(default=OTPStatus.ACTIVE, description="Lifecycle status")
    attempt_count: int = Field(default=0, description="Validation attempts")
    application_id: int = Field(default=1, description="Requesting application")

    model_config = ConfigDict(
        populate_by_name=True,  # Allow both 'id' and '_id'
        from_attributes=True,
    )
