"""Request logging middleware."""

import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and latency for every request.

    Query strings are left out of the log line since they can carry patient
    names from search boxes. A request id is echoed back so a client report
    can be matched to the server log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "[%s] %s %s failed after %.3fs",
                request_id,
                request.method,
                request.url.path,
                time.perf_counter() - started,
            )
            raise

        elapsed = time.perf_counter() - started
        logger.info(
            "[%s] %s %s -> %d (%.3fs)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )

        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
