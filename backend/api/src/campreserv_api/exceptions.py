"""FastAPI exception handlers for converting CampreservError to HTTP responses.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: validation and business rule violations
- 402 Payment Required: payment failures
- 404 Not Found: resource not found
- 409 Conflict: availability conflicts and invalid state transitions
- 502 Bad Gateway: upstream Stripe failures

Usage:
    from campreserv_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from campreserv.models.errors import CampreservError, ErrorCode
from campreserv.utils.logging import get_logger

logger = get_logger(__name__)

# Codes not listed map to 400
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Not found errors -> 404 Not Found
    ErrorCode.CAMPGROUND_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.SITE_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.SITE_CLASS_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.GUEST_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.PORTFOLIO_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.RESERVATION_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.HOLD_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.PAYMENT_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.PAYOUT_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Conflicts -> 409 Conflict
    ErrorCode.SITE_UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.RESERVATION_ALREADY_CANCELLED: HTTP_409_CONFLICT,
    ErrorCode.INVALID_STATUS_TRANSITION: HTTP_409_CONFLICT,
    ErrorCode.RESERVATION_ID_CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.CONCURRENT_UPDATE: HTTP_409_CONFLICT,
    ErrorCode.HOLD_EXPIRED: HTTP_409_CONFLICT,
    ErrorCode.HOLD_MISMATCH: HTTP_409_CONFLICT,
    # Payment errors -> 402 Payment Required
    ErrorCode.PAYMENT_FAILED: HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.DEPOSIT_REQUIRED: HTTP_402_PAYMENT_REQUIRED,
    # Upstream Stripe failures -> 502 Bad Gateway
    ErrorCode.STRIPE_API_ERROR: HTTP_502_BAD_GATEWAY,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def campreserv_error_handler(request: Request, exc: CampreservError) -> JSONResponse:
    """Render a CampreservError as the standard error envelope."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CampreservError, campreserv_error_handler)  # type: ignore[arg-type]
