"""otp-service - issue, deliver and validate one-time passcodes."""

from otp_service.clients import (
    CustomerClient,
    NotificationClient,
    NumberInformationClient,
    build_clients,
)
from otp_service.config import OTPServiceConfig
from otp_service.db import (
    BaseOTPTable,
    OTPDatabase,
    SQLAlchemyAdapter,
)
from otp_service.dependencies import get_otp_service_dependency
from otp_service.exceptions import (
    OTPExpiredError,
    OTPNotFoundError,
    OTPServiceError,
    PersistenceError,
    UpstreamServiceError,
)
from otp_service.router import get_otp_router
from otp_service.schemas import (
    Customer,
    MessageResponse,
    NotificationRequest,
    NotificationResult,
    OTPResponse,
    SendRequest,
)
from otp_service.service import OTPService
from otp_service.types import Channel, OTPStatus

__version__ = "0.1.0"

__all__ = [
    "BaseOTPTable",
    "Channel",
    "Customer",
    "CustomerClient",
    "MessageResponse",
    "NotificationClient",
    "NotificationRequest",
    "NotificationResult",
    "NumberInformationClient",
    "OTPDatabase",
    "OTPExpiredError",
    "OTPNotFoundError",
    "OTPResponse",
    "OTPService",
    "OTPServiceConfig",
    "OTPServiceError",
    "OTPStatus",
    "PersistenceError",
    "SQLAlchemyAdapter",
    "SendRequest",
    "UpstreamServiceError",
    "build_clients",
    "get_otp_router",
    "get_otp_service_dependency",
]

# Conditionally export MongoDB classes if motor is installed
try:
    from otp_service.db import BaseOTPDocument, MongoDBAdapter

    __all__ += ["BaseOTPDocument", "MongoDBAdapter"]
except ImportError:
    # MongoDB support not installed
    pass
