"""Repository protocol consumed by the OTP lifecycle operations."""

from typing import Any, Protocol

from otp_service.db.protocols import OTPProtocol
from otp_service.types import OTPStatus


class OTPDatabase[OTPType: OTPProtocol](Protocol):
    """
    Async repository of OTP records.

    Implemented by ``SQLAlchemyAdapter`` and ``MongoDBAdapter``. Every method
    raises ``PersistenceError`` when the underlying store fails; lookups that
    simply find nothing return ``None``.
    """

    async def find_all(self, customer_id: int | None = None) -> list[OTPType]:
        """Return all OTPs, restricted to one customer when ``customer_id`` is given."""
        ...

    async def find_by_id(self, otp_id: Any) -> OTPType | None:  # noqa: ANN401
        """Return the OTP with the given id."""
        ...

    async def find_by_id_and_status(
        self, otp_id: Any, status: OTPStatus  # noqa: ANN401
    ) -> OTPType | None:
        """Return the OTP with the given id if it is in ``status``."""
        ...

    async def find_by_id_and_pin_and_status(
        self, otp_id: Any, pin: int, status: OTPStatus  # noqa: ANN401
    ) -> OTPType | None:
        """Return the OTP with the given id and pin if it is in ``status``."""
        ...

    async def create(self, **fields: object) -> OTPType:
        """Insert a new OTP; the repository assigns its id."""
        ...

    async def save(self, otp: OTPType) -> OTPType:
        """Insert or update an OTP by id."""
        ...

    async def transition(
        self,
        otp: OTPType,
        new_status: OTPStatus,
        expected_status: OTPStatus,
    ) -> bool:
        """
        Move ``otp`` to ``new_status`` and count one validation attempt.

        The write only happens while the stored status is still
        ``expected_status``. On success ``otp`` is updated in place.

        Returns:
            False if another writer changed the status first
        """
        ...
