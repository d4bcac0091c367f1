"""API router for OTP endpoints."""

from collections.abc import Callable
from typing import Any

from fastapi import (  # type: ignore[import-untyped]
    APIRouter,
    Depends,
    HTTPException,
    Query,
    status,
)

from otp_service.exceptions import (
    OTPExpiredError,
    OTPNotFoundError,
    OTPServiceError,
    PersistenceError,
    UpstreamServiceError,
)
from otp_service.schemas import MessageResponse, OTPResponse, SendRequest
from otp_service.service import OTPService
from otp_service.types import Channel


def to_http_exception(exc: OTPServiceError) -> HTTPException:
    """
    Map a service error to the HTTP error returned to clients.

    NotFound -> 404, Expired -> 410, upstream failures -> 502,
    persistence failures -> 503.
    """
    if isinstance(exc, OTPNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, OTPExpiredError):
        code = status.HTTP_410_GONE
    elif isinstance(exc, UpstreamServiceError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, PersistenceError):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=exc.message)


def get_otp_router(
    get_otp_service: Callable[..., Any],
    parse_id: Callable[[str], Any] = int,
) -> APIRouter:
    """
    Create an APIRouter with the OTP endpoints.

    Args:
        get_otp_service: Dependency returning an OTPService
        parse_id: Converts the path id to the repository's id type
            (``int`` for SQLAlchemy, ``str`` for MongoDB)

    Returns:
        Configured APIRouter instance

    Example:
        ```python
        app = FastAPI()
        get_otp_service = get_otp_service_dependency(get_otp_db, MyOTPConfig())
        app.include_router(get_otp_router(get_otp_service), prefix="/otp", tags=["otp"])
        ```
    """
    router = APIRouter()

    def resolve_id(otp_id: str) -> Any:  # noqa: ANN401
        try:
            return parse_id(otp_id)
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"OTP {otp_id} not found",
            ) from e

    @router.get(
        "/",
        response_model=list[OTPResponse],
        summary="List OTPs",
        description="List all OTPs, optionally only those of one customer",
    )
    async def list_otps(
        customer_id: int | None = Query(default=None, alias="customerId"),
        service: OTPService[Any] = Depends(get_otp_service),
    ) -> list[OTPResponse]:
        try:
            otps = await service.get_all(customer_id)
        except OTPServiceError as e:
            raise to_http_exception(e) from e
        return [OTPResponse.model_validate(otp) for otp in otps]

    @router.get(
        "/{otp_id}",
        response_model=OTPResponse,
        summary="Get OTP",
    )
    async def get_otp(
        otp_id: str,
        service: OTPService[Any] = Depends(get_otp_service),
    ) -> OTPResponse:
        try:
            otp = await service.get(resolve_id(otp_id))
        except OTPServiceError as e:
            raise to_http_exception(e) from e
        return OTPResponse.model_validate(otp)

    @router.post(
        "/send",
        response_model=OTPResponse,
        status_code=status.HTTP_201_CREATED,
        summary="Send OTP",
        description="Generate a new OTP and send it to the given phone number",
    )
    async def send_otp(
        request: SendRequest,
        service: OTPService[Any] = Depends(get_otp_service),
    ) -> OTPResponse:
        """
        Generate and send an OTP.

        Raises:
            HTTPException: 502 if the customer or number lookup fails
            HTTPException: 503 if the OTP cannot be stored
        """
        try:
            otp = await service.send(request.msisdn)
        except OTPServiceError as e:
            raise to_http_exception(e) from e
        return OTPResponse.model_validate(otp)

    @router.post(
        "/{otp_id}/resend",
        response_model=OTPResponse,
        summary="Resend OTP",
        description="Deliver an active OTP again on one or all resend channels",
    )
    async def resend_otp(
        otp_id: str,
        channel: Channel | None = Query(default=None),
        service: OTPService[Any] = Depends(get_otp_service),
    ) -> OTPResponse:
        """
        Resend an active OTP.

        Raises:
            HTTPException: 404 if no active OTP has this id
            HTTPException: 502 if every channel failed
        """
        try:
            otp = await service.resend(resolve_id(otp_id), channel)
        except OTPServiceError as e:
            raise to_http_exception(e) from e
        return OTPResponse.model_validate(otp)

    @router.post(
        "/{otp_id}/validate",
        response_model=MessageResponse,
        summary="Validate OTP",
        description="Validate a pin; the OTP is consumed by the first matching attempt",
    )
    async def validate_otp(
        otp_id: str,
        pin: int = Query(...),
        service: OTPService[Any] = Depends(get_otp_service),
    ) -> MessageResponse:
        """
        Validate an OTP pin.

        Raises:
            HTTPException: 404 if no active OTP matches id and pin
            HTTPException: 410 if the pin matched after expiry
        """
        try:
            await service.validate(resolve_id(otp_id), pin)
        except OTPServiceError as e:
            raise to_http_exception(e) from e
        return MessageResponse(message="OK")

    return router
