"""Database models and adapters for otp-service."""

from otp_service.db.adapter import OTPDatabase
from otp_service.db.sqlalchemy.adapter import SQLAlchemyAdapter
from otp_service.db.sqlalchemy.models import BaseOTPTable
from otp_service.db.sqlalchemy.types import UTCDateTime

__all__ = [
    "BaseOTPTable",
    "OTPDatabase",
    "SQLAlchemyAdapter",
    "UTCDateTime",
]

# Conditionally export MongoDB classes if motor is installed
try:
    from otp_service.db.mongodb.adapter import MongoDBAdapter
    from otp_service.db.mongodb.models import BaseOTPDocument

    __all__ += ["BaseOTPDocument", "MongoDBAdapter"]
except ImportError:
    # MongoDB support not installed
    pass
