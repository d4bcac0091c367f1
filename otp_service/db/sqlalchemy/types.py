"""SQLAlchemy column types for OTP records."""

from datetime import UTC, datetime

from sqlalchemy import types
from sqlalchemy.engine import Dialect


class UTCDateTime(types.TypeDecorator):
    """
    DateTime column that round-trips timezone-aware UTC values.

    Backends without timezone support (SQLite) return naive values, which
    would make freshness arithmetic against ``datetime.now(UTC)`` fail. Values
    are normalised to naive UTC on the way in and tagged with UTC on the way
    out.
    """

    impl = types.DateTime
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, _dialect: Dialect
    ) -> datetime | None:
        if value is None or value.tzinfo is None:
            return value
        return value.astimezone(UTC).replace(tzinfo=None)

    def process_result_value(
        self, value: datetime | None, _dialect: Dialect
    ) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
