"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.application.services.blob_storage import BlobService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers."""
    return get_factory(settings)


def get_blob_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> BlobService:
    """Get the blob service bound to the shared storage adapter.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.

    Returns:
        Configured blob service.
    """
    return BlobService(
        blob_storage=factory.get_blob_storage(),
        operation_timeout_seconds=settings.blob_storage.operation_timeout_seconds,
        download_chunk_size=settings.blob_storage.download_chunk_size,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
BlobServiceDep = Annotated[BlobService, Depends(get_blob_service)]


async def init_services(settings: Settings) -> None:
    """Initialize infrastructure services on startup.

    Args:
        settings: Application settings.
    """
    factory = get_factory(settings)

    # Build the adapter eagerly to fail fast on bad configuration
    storage = factory.get_blob_storage()

    if settings.blob_storage.create_container:
        created = await storage.create_container()
        if created:
            logger.info(f"Created container {storage.container_name}")


async def shutdown_services() -> None:
    """Shutdown all infrastructure services."""
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
