import typing
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from otp_service.db.protocols import OTPProtocol
from otp_service.exceptions import PersistenceError
from otp_service.types import OTPStatus


class SQLAlchemyAdapter[OTPType: OTPProtocol]:
    """
    SQLAlchemy implementation of the OTPDatabase protocol.

    Wraps an AsyncSession and stores OTP records using SQLAlchemy ORM.
    Store failures are rolled back and re-raised as ``PersistenceError``.

    Example:
        ```python
        from sqlalchemy.ext.asyncio import AsyncSession
        from fastapi import Depends

        async def get_otp_db(
            session: AsyncSession = Depends(get_async_session)
        ) -> SQLAlchemyAdapter[OTP]:
            return SQLAlchemyAdapter(session, OTP)
        ```
    """

    def __init__(self, session: AsyncSession, otp_model: type[OTPType]) -> None:
        """
        Initialize the database adapter.

        Args:
            session: SQLAlchemy async session
            otp_model: OTP model class inheriting from BaseOTPTable
        """
        self.session = session
        self.otp_model = otp_model

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceError(
                f"Failed to {operation}", service="database", details=str(e)
            ) from e

    async def find_all(self, customer_id: int | None = None) -> list[OTPType]:
        """
        Retrieve all OTPs, optionally only those of one customer.

        Args:
            customer_id: Customer to filter on, None for no filtering

        Returns:
            OTPs ordered by id
        """
        model = typing.cast(typing.Any, self.otp_model)
        statement = select(model).order_by(model.id)
        if customer_id is not None:
            statement = statement.where(model.customer_id == customer_id)
        async with self._guard("list OTPs"):
            result = await self.session.execute(statement)
            return list(result.scalars().all())

    async def find_by_id(self, otp_id: typing.Any) -> OTPType | None:  # noqa: ANN401
        """
        Retrieve OTP by ID.

        Args:
            otp_id: OTP ID to search for

        Returns:
            OTP object if found, None otherwise
        """
        async with self._guard("read OTP"):
            return await self.session.get(self.otp_model, otp_id)

    async def find_by_id_and_status(
        self, otp_id: typing.Any, status: OTPStatus  # noqa: ANN401
    ) -> OTPType | None:
        """Retrieve OTP by ID if it currently has the given status."""
        model = typing.cast(typing.Any, self.otp_model)
        statement = select(model).where(model.id == otp_id, model.status == status)
        async with self._guard("read OTP"):
            result = await self.session.execute(statement)
            return result.scalar_one_or_none()

    async def find_by_id_and_pin_and_status(
        self, otp_id: typing.Any, pin: int, status: OTPStatus  # noqa: ANN401
    ) -> OTPType | None:
        """Retrieve OTP by ID and pin if it currently has the given status."""
        model = typing.cast(typing.Any, self.otp_model)
        statement = select(model).where(
            model.id == otp_id, model.pin == pin, model.status == status
        )
        async with self._guard("read OTP"):
            result = await self.session.execute(statement)
            return result.scalar_one_or_none()

    async def create(self, **fields: object) -> OTPType:
        """
        Insert a new OTP record.

        Args:
            **fields: Column values; the id is assigned by the database

        Returns:
            Created OTP object
        """
        otp = self.otp_model(**fields)  # type: ignore[call-arg]
        async with self._guard("create OTP"):
            self.session.add(otp)
            await self.session.commit()
            await self.session.refresh(otp)
        return otp

    async def save(self, otp: OTPType) -> OTPType:
        """
        Insert or update an OTP record.

        Args:
            otp: OTP object to persist

        Returns:
            Persisted OTP object
        """
        async with self._guard("save OTP"):
            self.session.add(otp)
            await self.session.commit()
            await self.session.refresh(otp)
        return otp

    async def transition(
        self,
        otp: OTPType,
        new_status: OTPStatus,
        expected_status: OTPStatus,
    ) -> bool:
        """
        Conditionally move an OTP to a new status and count the attempt.

        Issues a single UPDATE guarded by the expected status, so two
        concurrent validations cannot both consume the same OTP.

        Args:
            otp: OTP object to update
            new_status: Status to set
            expected_status: Status the stored row must still have

        Returns:
            True if the row was updated, False if its status had changed
        """
        model = typing.cast(typing.Any, self.otp_model)
        statement = (
            update(model)
            .where(model.id == otp.id, model.status == expected_status)
            .values(status=new_status, attempt_count=model.attempt_count + 1)
            .execution_options(synchronize_session=False)
        )
        async with self._guard("update OTP status"):
            result = await self.session.execute(statement)
            await self.session.commit()
            if result.rowcount == 0:
                return False
            await self.session.refresh(otp)
        return True
