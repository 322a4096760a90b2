"""FastAPI application factory and lifespan management."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.dependencies import get_settings, init_services, shutdown_services
from src.api.middleware import install_middleware
from src.api.openapi.routes import files, health
from src.commons.telemetry import build_formatter, configure_logging, get_logger

logger = get_logger(__name__)


def _setup_logging() -> None:
    """Configure logging for the application.

    Runs at import time so our handlers are in place before uvicorn starts.
    """
    settings = get_settings()
    log_level = settings.telemetry.log_level or settings.app.log_level

    configure_logging(
        level=log_level,
        format_type=settings.telemetry.log_format,
        logger_name="src",
        log_file=settings.telemetry.log_file,
        backup_count=settings.telemetry.log_file_backup_count,
    )

    logging.getLogger().setLevel(getattr(logging, log_level.upper()))


def _configure_uvicorn_logging() -> None:
    """Point uvicorn loggers at our formatter.

    Called during lifespan when uvicorn handlers are available.
    """
    settings = get_settings()
    level = getattr(
        logging, (settings.telemetry.log_level or settings.app.log_level).upper()
    )
    formatter = build_formatter(settings.telemetry.log_format)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(level)
        for handler in uvicorn_logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)
        if not uvicorn_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(formatter)
            handler.setLevel(level)
            uvicorn_logger.addHandler(handler)
            uvicorn_logger.propagate = False


_setup_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown.

    Builds the storage adapter on startup and closes it on exit.
    """
    _configure_uvicorn_logging()
    logger.info("Files API booting up...")

    settings = get_settings()
    try:
        await init_services(settings)
    except Exception:
        logger.critical("Unhandled exception during startup", exc_info=True)
        raise
    logger.info("API is now ready to serve files to and from blob storage")

    try:
        yield
    finally:
        logger.info("Files API shutting down...")
        await shutdown_services()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Files microservice - upload and list files in blob storage",
        docs_url="/docs" if settings.server.docs_enabled else None,
        redoc_url="/redoc" if settings.server.docs_enabled else None,
        openapi_url="/openapi.json" if settings.server.docs_enabled else None,
        lifespan=lifespan,
    )

    install_middleware(app, settings.server.cors_origins)
    _register_routes(app, settings.server.api_prefix)

    return app


def _register_routes(app: FastAPI, api_prefix: str) -> None:
    """Register API routes. Health checks stay at the root for probes."""
    app.include_router(health.router, tags=["Health"])
    app.include_router(files.router, prefix=api_prefix, tags=["Files"])


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.server.reload,
    )


# Create default app instance
app = create_app()
