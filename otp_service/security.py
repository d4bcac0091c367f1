"""Pin generation and freshness checks."""

import secrets
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

PIN_MIN = 100000
PIN_MAX = 999999

PinGenerator = Callable[[], int]


def generate_pin() -> int:
    """
    Generate a cryptographically secure 6-digit pin.

    The pin is drawn uniformly from [100000, 999999], so it never has a
    leading zero.

    Returns:
        Pin as an integer

    Example:
        >>> pin = generate_pin()
        >>> 100000 <= pin <= 999999
        True
    """
    return PIN_MIN + secrets.randbelow(PIN_MAX - PIN_MIN + 1)


def is_fresh(
    created_on: datetime,
    validity_window: timedelta,
    now: datetime | None = None,
) -> bool:
    """
    Check whether an OTP is still inside its validity window.

    An OTP is fresh when it was created strictly after ``now - validity_window``.
    Exactly at the boundary it is already expired.

    Args:
        created_on: Timezone-aware creation timestamp
        validity_window: How long the OTP is accepted after creation
        now: Reference time, defaults to the current UTC time

    Returns:
        True if the OTP can still be verified
    """
    if now is None:
        now = datetime.now(UTC)
    return created_on > now - validity_window
