"""Pydantic schemas for request/response and remote service payloads."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field  # type: ignore[import-untyped]

from otp_service.types import Channel, OTPStatus


class SendRequest(BaseModel):
    """Request schema for OTP generation."""

    msisdn: str = Field(
        ..., min_length=1, max_length=32, description="Phone number to send OTP to"
    )


class OTPResponse(BaseModel):
    """Public view of an OTP. The pin is never exposed."""

    id: int | str = Field(..., description="OTP identifier")
    customer_id: int = Field(..., description="Account the OTP was issued for")
    msisdn: str = Field(..., description="Phone number the OTP was sent to")
    created_on: datetime = Field(..., description="Creation timestamp (UTC)")
    status: OTPStatus = Field(..., description="Lifecycle status")
    attempt_count: int = Field(..., description="Validation attempts so far")
    application_id: int = Field(..., description="Requesting application")

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Generic message response schema."""

    message: str = Field(..., description="Response message")


# Remote service payloads


class Customer(BaseModel):
    """Customer resolved by the customer directory."""

    account_id: int = Field(..., alias="accountId")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class NotificationRequest(BaseModel):
    """Message handed to the notification service."""

    channel: Channel
    msisdn: str
    message: str


class NotificationResult(BaseModel):
    """Delivery outcome. Contents are passed through uninterpreted."""

    model_config = ConfigDict(extra="allow")
