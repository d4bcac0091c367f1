"""OTP lifecycle: generation, delivery, resend, validation and queries."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from otp_service.clients import CustomerClient, NotificationClient, NumberInformationClient
from otp_service.config import OTPServiceConfig
from otp_service.db.adapter import OTPDatabase
from otp_service.db.protocols import OTPProtocol
from otp_service.exceptions import (
    OTPExpiredError,
    OTPNotFoundError,
    OTPServiceError,
    UpstreamServiceError,
)
from otp_service.schemas import NotificationRequest, NotificationResult
from otp_service.security import PinGenerator, generate_pin, is_fresh
from otp_service.types import Channel, OTPStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


async def join_all(*aws: Awaitable[Any]) -> list[Any]:
    """
    Run awaitables concurrently and return their results in order.

    The first failure is raised and the remaining awaitables are cancelled.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


class OTPService[OTPType: OTPProtocol]:
    """
    Orchestrates the OTP lifecycle on top of a repository and three remote clients.

    Example:
        ```python
        config = MyOTPConfig()
        customers, numbers, notifications = build_clients(config)
        service = OTPService(
            db=SQLAlchemyAdapter(session, OTP),
            config=config,
            customer_client=customers,
            number_client=numbers,
            notification_client=notifications,
        )
        otp = await service.send("+306912345678")
        await service.validate(otp.id, pin_from_user)
        ```
    """

    def __init__(
        self,
        db: OTPDatabase[OTPType],
        config: OTPServiceConfig,
        customer_client: CustomerClient,
        number_client: NumberInformationClient,
        notification_client: NotificationClient,
        pin_generator: PinGenerator = generate_pin,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.db = db
        self.config = config
        self.customer_client = customer_client
        self.number_client = number_client
        self.notification_client = notification_client
        self.pin_generator = pin_generator
        self.clock = clock

    async def get_all(self, customer_id: int | None = None) -> list[OTPType]:
        """
        Read all OTPs.

        Args:
            customer_id: Only return OTPs of this customer; None returns all
        """
        return await self.db.find_all(customer_id)

    async def get(self, otp_id: Any) -> OTPType:  # noqa: ANN401
        """
        Read an already generated OTP.

        Raises:
            OTPNotFoundError: if no OTP has this id
        """
        otp = await self.db.find_by_id(otp_id)
        if otp is None:
            raise OTPNotFoundError(f"OTP {otp_id} not found")
        return otp

    async def send(self, msisdn: str) -> OTPType:
        """
        Generate, store and deliver a new OTP.

        The customer lookup and the number check run concurrently and must
        both succeed before anything is written. The OTP is then stored and
        delivered once on the default channel. A failed delivery is logged
        and the stored OTP is still returned, since it can be resent.

        Args:
            msisdn: Phone number to send the OTP to

        Returns:
            The stored OTP

        Raises:
            UpstreamServiceError: if either lookup fails
            PersistenceError: if the OTP cannot be stored
        """
        customer, _ = await join_all(
            self.customer_client.get_customer(msisdn),
            self.number_client.check(msisdn),
        )

        pin = self.pin_generator()
        otp = await self.db.create(
            customer_id=customer.account_id,
            msisdn=msisdn,
            pin=pin,
            created_on=self.clock(),
            status=OTPStatus.ACTIVE,
            attempt_count=0,
            application_id=self.config.application_id,
        )
        logger.info("Created OTP %s for customer %s", otp.id, otp.customer_id)

        try:
            await self.notification_client.notify(
                NotificationRequest(channel=Channel.AUTO, msisdn=msisdn, message=str(pin))
            )
        except UpstreamServiceError as e:
            logger.warning("Delivery of OTP %s failed: %s", otp.id, e)

        return otp

    async def resend(self, otp_id: Any, channel: Channel | None = None) -> OTPType:  # noqa: ANN401
        """
        Deliver an active OTP again.

        ``None`` or ``Channel.AUTO`` resends on every configured resend
        channel; any other channel resends on that channel only. Dispatches
        run concurrently. Individual channel failures are logged and
        tolerated; the call only fails if every channel failed.

        Returns:
            The OTP, unchanged

        Raises:
            OTPNotFoundError: if no active OTP has this id
            UpstreamServiceError: if no channel could deliver
        """
        otp = await self.db.find_by_id_and_status(otp_id, OTPStatus.ACTIVE)
        if otp is None:
            raise OTPNotFoundError(f"Active OTP {otp_id} not found")

        if channel is None or channel is Channel.AUTO:
            channels = self.config.resend_channels
        else:
            channels = (channel,)

        requests = [
            NotificationRequest(
                channel=selected,
                msisdn=otp.msisdn,
                message=self.config.resend_message(selected, otp.pin),
            )
            for selected in channels
        ]
        results = await asyncio.gather(
            *(self.notification_client.notify(request) for request in requests),
            return_exceptions=True,
        )

        failures = self._collect_failures(otp.id, requests, results)
        if len(failures) == len(requests):
            raise UpstreamServiceError(
                f"Resend of OTP {otp.id} failed on every channel",
                service=self.notification_client.service_name,
                details=[str(failure) for failure in failures],
            )
        return otp

    @staticmethod
    def _collect_failures(
        otp_id: Any,  # noqa: ANN401
        requests: list[NotificationRequest],
        results: list[NotificationResult | BaseException],
    ) -> list[OTPServiceError]:
        failures: list[OTPServiceError] = []
        for request, result in zip(requests, results, strict=True):
            if isinstance(result, OTPServiceError):
                logger.warning(
                    "Resend of OTP %s on %s failed: %s", otp_id, request.channel, result
                )
                failures.append(result)
            elif isinstance(result, BaseException):
                raise result
        return failures

    async def validate(self, otp_id: Any, pin: int) -> None:  # noqa: ANN401
        """
        Validate a pin and consume the OTP.

        A matching active OTP is moved to VERIFIED if it is still inside the
        validity window and to EXPIRED otherwise; the attempt is counted in
        both cases. Either way the OTP cannot be validated again.

        Args:
            otp_id: OTP id
            pin: Pin entered by the user

        Raises:
            OTPNotFoundError: if no active OTP matches the id and pin
            OTPExpiredError: if the pin matched after the validity window
        """
        otp = await self.db.find_by_id_and_pin_and_status(otp_id, pin, OTPStatus.ACTIVE)
        if otp is None:
            raise OTPNotFoundError(f"Active OTP {otp_id} with this pin not found")

        if is_fresh(otp.created_on, self.config.validity_window, now=self.clock()):
            new_status = OTPStatus.VERIFIED
        else:
            new_status = OTPStatus.EXPIRED

        if not await self.db.transition(otp, new_status, OTPStatus.ACTIVE):
            # A concurrent validation consumed it between read and write
            raise OTPNotFoundError(f"Active OTP {otp_id} with this pin not found")

        if new_status is OTPStatus.EXPIRED:
            logger.warning("OTP %s validated after expiry", otp.id)
            raise OTPExpiredError(f"OTP {otp_id} has expired")

        logger.info("OTP %s verified", otp.id)
