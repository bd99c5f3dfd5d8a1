"""Correlation ID middleware for request tracing.

Takes X-Correlation-ID from the request (the API client sends it) or mints
one, exposes it to every log line of the request, echoes it on the response
and logs one access line per request.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from campreserv.utils.logging import clear_correlation_id, get_logger, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

logger = get_logger("campreserv_api.access")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware that manages correlation IDs for request tracing."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response
        finally:
            clear_correlation_id()
