"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.infrastructure.blob import BlobErrorKind, BlobStorageError
from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import DomainException, InvalidUploadException

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build standardized error response."""
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        headers={"X-Request-ID": request_id},
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
    )


# kind -> (HTTP status, error code, client message)
_STORAGE_ERRORS: dict[BlobErrorKind, tuple[int, str, str]] = {
    BlobErrorKind.CONTAINER_NOT_FOUND: (
        status.HTTP_404_NOT_FOUND,
        "CONTAINER_NOT_FOUND",
        "The storage container does not exist",
    ),
    BlobErrorKind.NOT_FOUND: (
        status.HTTP_404_NOT_FOUND,
        "BLOB_NOT_FOUND",
        "The requested file was not found",
    ),
}
_BACKEND_ERROR = (
    status.HTTP_502_BAD_GATEWAY,
    "STORAGE_ERROR",
    "The storage backend reported an error",
)


def _handle_storage_error(request: Request, exc: BlobStorageError) -> JSONResponse:
    """Map a propagated storage error; backend detail stays in the log."""
    status_code, code, message = _STORAGE_ERRORS.get(exc.kind, _BACKEND_ERROR)
    extra = {
        "error_kind": exc.kind.value,
        "error_code": exc.error_code,
        "container": exc.container,
        "blob_name": exc.name,
    }
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Storage backend error: {exc}", exc_info=exc, extra=extra)
    else:
        logger.warning(f"Storage error: {exc}", extra=extra)

    return _build_error_response(
        request=request,
        code=code,
        message=message,
        status_code=status_code,
        details={"name": exc.name} if exc.name else None,
    )


def _handle_exception(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle exception and return appropriate error response.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={
                "error_code": exc.code,
                "error_message": exc.message,
                "details": exc.details,
            },
        )
        return _build_error_response(
            request=request,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    if isinstance(exc, BlobStorageError):
        return _handle_storage_error(request, exc)

    if isinstance(exc, TimeoutError):
        logger.error("Storage operation timed out", exc_info=exc)
        return _build_error_response(
            request=request,
            code="STORAGE_TIMEOUT",
            message="The storage backend did not respond in time",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        )

    if isinstance(exc, InvalidUploadException):
        logger.warning(f"Invalid upload: {exc.reason}")
        return _build_error_response(
            request=request,
            code="INVALID_UPLOAD",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request=request,
            code="DOMAIN_ERROR",
            message=str(exc),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions."""
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
