"""Request logging middleware."""

import logging
import time
from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.commons.telemetry.logger import (
    clear_log_context,
    get_logger,
    set_correlation_id,
    set_log_context,
)

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line when a request starts and one when it ends.

    The request ID doubles as the logging correlation ID, so it is the
    reference returned to clients for storage faults. Server errors are
    logged at warning level.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = set_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        clear_log_context()
        set_log_context(method=request.method, path=request.url.path)

        start_time = time.perf_counter()
        logger.info(
            f"{request.method} {request.url.path} started",
            extra={
                "client_ip": request.client.host if request.client else "unknown",
                "content_length": request.headers.get("content-length"),
            },
        )

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.warning(
                f"{request.method} {request.url.path} raised",
                extra={"duration_ms": _elapsed_ms(start_time)},
            )
            raise

        level = (
            logging.WARNING if response.status_code >= 500 else logging.INFO
        )
        logger.log(
            level,
            f"{request.method} {request.url.path} completed",
            extra={
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(start_time),
            },
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
