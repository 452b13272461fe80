"""
Request logging middleware for the admin API.
"""

import time
import uuid
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import bind_log_context, get_logger, unbind_log_context

logger = get_logger(__name__)

# Polled by load balancers and the terminal shell; not worth a log line each
QUIET_PATHS = frozenset({"/api/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each admin request with its timing.

    The request id is bound to the structlog context so queue and
    storage log lines emitted while handling the request carry it too.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        quiet = request.url.path in QUIET_PATHS

        bind_log_context(request_id=request_id)
        start = time.perf_counter()

        if not quiet:
            logger.info(
                "request_started",
                method=request.method,
                path=request.url.path,
                client=request.client.host if request.client else "unknown",
            )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        finally:
            unbind_log_context("request_id")

        duration_ms = (time.perf_counter() - start) * 1000
        if not quiet or response.status_code >= 400:
            logger.info(
                "request_completed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
