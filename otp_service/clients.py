"""HTTP clients for the customer directory, number information and notification services."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError  # type: ignore[import-untyped]

from otp_service.config import OTPServiceConfig
from otp_service.exceptions import UpstreamServiceError
from otp_service.schemas import Customer, NotificationRequest, NotificationResult

logger = logging.getLogger(__name__)


class BaseServiceClient:
    """
    Async HTTP client for a single remote service.

    Every transport error, timeout, non-2xx response or undecodable body is
    raised as ``UpstreamServiceError`` tagged with the service name. There is
    no retry: callers see the first failure.
    """

    service_name = "remote"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Base URL of the remote service
            timeout: Request timeout in seconds
            client: Pre-built httpx client to use instead of creating one
        """
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "BaseServiceClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _map_exception(self, exc: httpx.HTTPError) -> UpstreamServiceError:
        if isinstance(exc, httpx.TimeoutException):
            return UpstreamServiceError("Request timed out", service=self.service_name)
        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
            return UpstreamServiceError(
                f"HTTP {status_code} error",
                service=self.service_name,
                status_code=status_code,
                details=exc.response.text,
            )
        return UpstreamServiceError(
            f"Failed to connect: {exc}", service=self.service_name
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:  # noqa: ANN401
        logger.debug("%s %s (%s)", method, url, self.service_name)
        try:
            response = await self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._map_exception(e) from e
        return response

    def _parse[T: BaseModel](self, response: httpx.Response, model: type[T]) -> T:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamServiceError(
                "Invalid response body",
                service=self.service_name,
                status_code=response.status_code,
                details=response.text,
            ) from e


class CustomerClient(BaseServiceClient):
    """Resolves a phone number to a customer account."""

    service_name = "customer-service"

    async def get_customer(self, msisdn: str) -> Customer:
        """
        Look up the customer owning a phone number.

        Args:
            msisdn: Phone number in international format

        Returns:
            Customer with its account id

        Raises:
            UpstreamServiceError: if the lookup fails
        """
        response = await self._request(
            "GET", f"{self.base_url}/customers", params={"number": msisdn}
        )
        return self._parse(response, Customer)


class NumberInformationClient(BaseServiceClient):
    """Checks that a phone number is valid and reachable."""

    service_name = "number-information"

    async def check(self, msisdn: str) -> str:
        """
        Validate a phone number.

        Any successful response means the number is valid; the body is
        returned as-is.

        Raises:
            UpstreamServiceError: if the number is rejected or the call fails
        """
        response = await self._request("GET", self.base_url, params={"msisdn": msisdn})
        return response.text


class NotificationClient(BaseServiceClient):
    """Dispatches a message over a delivery channel."""

    service_name = "notification-service"

    async def notify(self, request: NotificationRequest) -> NotificationResult:
        """
        Send a notification.

        Args:
            request: Channel, recipient and message

        Returns:
            Delivery result as reported by the notification service

        Raises:
            UpstreamServiceError: if the dispatch fails
        """
        response = await self._request(
            "POST", self.base_url, json=request.model_dump(mode="json")
        )
        if not response.content:
            return NotificationResult()
        return self._parse(response, NotificationResult)


def build_clients(
    config: OTPServiceConfig,
) -> tuple[CustomerClient, NumberInformationClient, NotificationClient]:
    """
    Create the three remote clients from configuration.

    Returns:
        Customer, number information and notification clients, in that order
    """
    return (
        CustomerClient(config.customer_service_url, timeout=config.request_timeout),
        NumberInformationClient(
            config.number_information_url, timeout=config.request_timeout
        ),
        NotificationClient(
            config.notification_service_url, timeout=config.request_timeout
        ),
    )
