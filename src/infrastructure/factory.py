"""Infrastructure factory for creating storage adapters from configuration."""

from typing import Any, cast

from src.commons.infrastructure.blob import (
    AzureBlobStorage,
    BlobStorageBase,
    InMemoryBlobStorage,
    MinioBlobStorage,
)
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches them so one adapter is shared by all requests.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance for the configured provider.

        Returns:
            Configured blob storage provider.

        Raises:
            ValueError: If the provider is not supported.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            storage: BlobStorageBase
            if blob_settings.provider == "azure":
                storage = AzureBlobStorage(
                    connection_string=blob_settings.connection_string,
                    container_name=blob_settings.container_name,
                )
            elif blob_settings.provider == "minio":
                storage = MinioBlobStorage(
                    endpoint=blob_settings.endpoint,
                    access_key=blob_settings.access_key,
                    secret_key=blob_settings.secret_key,
                    bucket=blob_settings.container_name,
                    secure=blob_settings.use_ssl,
                    region=blob_settings.region,
                )
            elif blob_settings.provider == "memory":
                storage = InMemoryBlobStorage(
                    container_name=blob_settings.container_name
                )
            else:
                raise ValueError(
                    f"Unsupported blob storage provider: {blob_settings.provider}"
                )
            logger.info(
                f"Blob storage initialized: provider={blob_settings.provider}, "
                f"container={blob_settings.container_name}"
            )
            self._instances["blob_storage"] = storage
        return cast("BlobStorageBase", self._instances["blob_storage"])

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            try:
                await instance.close()
            except Exception:
                logger.warning(f"Failed to close {name}", exc_info=True)

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
