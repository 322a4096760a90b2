"""API middleware components."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware.error_handler import APIError, error_handler_middleware
from src.api.middleware.logging import REQUEST_ID_HEADER, LoggingMiddleware


def install_middleware(app: FastAPI, cors_origins: list[str]) -> None:
    """Add CORS, request logging and error mapping, outermost last.

    The error handler wraps the logging middleware so that error envelopes
    still see the request ID set for the request.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(LoggingMiddleware)
    app.middleware("http")(error_handler_middleware)


__all__ = [
    "APIError",
    "LoggingMiddleware",
    "REQUEST_ID_HEADER",
    "error_handler_middleware",
    "install_middleware",
]
