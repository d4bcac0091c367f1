"""Configuration class for the OTP service."""

from datetime import timedelta

from otp_service.types import Channel


class OTPServiceConfig:
    """
    Configuration for OTP generation, delivery and validation.

    Configuration can be set via class attributes on a subclass or by passing
    keyword overrides to the constructor. Endpoints are validated on creation.

    Example:
        ```python
        class MyOTPConfig(OTPServiceConfig):
            number_information_url = "https://numbers.example.com/api/info"
            notification_service_url = "https://notify.example.com/api/send"
            validity_window = timedelta(minutes=2)

        config = MyOTPConfig()
        ```
    """

    # Remote collaborators
    customer_service_url: str = "http://customer-service"
    number_information_url: str = ""
    notification_service_url: str = ""

    request_timeout: float = 10.0
    """Timeout in seconds applied to every outbound HTTP call."""

    # OTP configuration
    validity_window: timedelta = timedelta(seconds=120)
    application_id: int = 1

    # Resend configuration
    resend_channels: tuple[Channel, ...] = (Channel.SMS, Channel.EMAIL)
    email_resend_message: str = "OTP was sent on your contact phone"

    def __init__(self, **overrides: object) -> None:
        """Apply overrides and validate configuration."""
        for name, value in overrides.items():
            if not hasattr(type(self), name):
                raise ValueError(f"Unknown configuration option: {name}")
            setattr(self, name, value)
        self.validate_endpoints()

    def validate_endpoints(self) -> None:
        """
        Validate remote endpoints and resend channels.

        Raises:
            ValueError: if an endpoint is missing or not an http(s) URL,
                if the validity window is not positive, or if no resend
                channel is configured
        """
        endpoints = {
            "customer_service_url": self.customer_service_url,
            "number_information_url": self.number_information_url,
            "notification_service_url": self.notification_service_url,
        }
        for name, url in endpoints.items():
            if not url:
                raise ValueError(f"{name} must be set")
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"{name} must be an http(s) URL, got: {url}")

        if self.validity_window <= timedelta(0):
            raise ValueError("validity_window must be positive")

        if not self.resend_channels:
            raise ValueError("resend_channels must contain at least one channel")

    def resend_message(self, channel: Channel, pin: int) -> str:
        """
        Message body sent on a given channel when an OTP is resent.

        E-mail only notifies that the code went to the contact phone; every
        other channel carries the pin itself.
        """
        if channel is Channel.EMAIL:
            return self.email_resend_message
        return str(pin)
