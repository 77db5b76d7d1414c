"""
Request logging middleware
"""

import logging
import uuid
from time import perf_counter

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One log line per request and per response, correlated by request id.

    An incoming ``X-Request-ID`` is reused; otherwise a short id is generated.
    Both the id and the handling time are echoed back as response headers.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        peer = request.client.host if request.client else "-"
        logger.info(
            "[%s] %s %s?%s from %s",
            request_id,
            request.method,
            request.url.path,
            request.url.query,
            peer,
        )

        started = perf_counter()
        response = await call_next(request)
        elapsed = perf_counter() - started

        logger.info("[%s] %d in %.3fs", request_id, response.status_code, elapsed)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response
