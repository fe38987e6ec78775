from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

from coursepay.core.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error with consistent schema."""

    log_level = "error"

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidPayloadError(AppError):
    log_level = "debug"

    def __init__(self, message: str = "Invalid payload", details: dict[str, Any] | None = None):
        super().__init__(message, code="INVALID_PAYLOAD", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class SignatureMismatchError(AppError):
    """Computed HMAC disagrees with the supplied signature. Possible tampering."""

    log_level = "warning"

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message, code="SIGNATURE_MISMATCH", status_code=status.HTTP_400_BAD_REQUEST)


class GatewayError(AppError):
    def __init__(
        self,
        message: str = "Payment gateway error",
        code: str = "GATEWAY_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, status_code=status_code, details=details)


class OrderCreationFailedError(GatewayError):
    def __init__(self, message: str = "Order creation failed", details: dict[str, Any] | None = None):
        super().__init__(message, code="ORDER_CREATION_FAILED", details=details)


class GatewayTimeoutError(GatewayError):
    log_level = "warning"

    def __init__(self, message: str = "Payment gateway timed out"):
        super().__init__(
            message,
            code="GATEWAY_TIMEOUT",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"retryable": True},
        )


class StoreError(AppError):
    def __init__(
        self,
        message: str = "Entitlement store error",
        code: str = "STORE_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, status_code=status_code, details=details)


class StoreTimeoutError(StoreError):
    log_level = "warning"

    def __init__(self, message: str = "Entitlement store timed out"):
        super().__init__(
            message,
            code="STORE_TIMEOUT",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"retryable": True},
        )


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = {
        "error": {
            "message": exc.message,
            "code": exc.code,
            "details": exc.details,
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    getattr(log, exc.log_level)(
        exc.code.lower(),
        path=request.url.path,
        message=exc.message,
        details=exc.details,
    )
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    errors = jsonable_encoder(exc.errors(), exclude={"ctx", "input", "url"})
    return await app_exception_handler(request, InvalidPayloadError(details={"errors": errors}))


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    log.exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
