"""Unit tests for infrastructure factory."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.commons.infrastructure.blob import (
    AzureBlobStorage,
    InMemoryBlobStorage,
    MinioBlobStorage,
)
from src.commons.settings.models import BlobStorageSettings, Settings
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)


@pytest.fixture(autouse=True)
def reset_factory_before_each():
    """Reset factory singleton before each test."""
    reset_factory()
    yield
    reset_factory()


def _settings(**blob_storage) -> Settings:
    return Settings(blob_storage=BlobStorageSettings(**blob_storage))


class TestInfrastructureFactory:
    """Tests for InfrastructureFactory."""

    def test_factory_init(self):
        settings = _settings()
        factory = InfrastructureFactory(settings)
        assert factory._settings is settings
        assert factory._instances == {}

    def test_memory_provider(self):
        factory = InfrastructureFactory(_settings(container_name="uploads"))

        storage = factory.get_blob_storage()

        assert isinstance(storage, InMemoryBlobStorage)
        assert storage.container_name == "uploads"

    def test_blob_storage_is_cached(self):
        factory = InfrastructureFactory(_settings())
        assert factory.get_blob_storage() is factory.get_blob_storage()

    def test_azure_provider(self):
        factory = InfrastructureFactory(
            _settings(
                provider="azure",
                connection_string="UseDevelopmentStorage=true",
                container_name="files",
            )
        )

        with patch(
            "src.commons.infrastructure.blob.azure_provider.ContainerClient"
        ) as client_class:
            storage = factory.get_blob_storage()

        assert isinstance(storage, AzureBlobStorage)
        client_class.from_connection_string.assert_called_once_with(
            conn_str="UseDevelopmentStorage=true", container_name="files"
        )

    def test_minio_provider(self):
        factory = InfrastructureFactory(
            _settings(
                provider="minio",
                endpoint="minio:9000",
                access_key="minioadmin",
                secret_key="minioadmin",
                container_name="files",
            )
        )

        with patch(
            "src.commons.infrastructure.blob.minio_provider.Minio"
        ) as client_class:
            storage = factory.get_blob_storage()

        assert isinstance(storage, MinioBlobStorage)
        assert storage.container_name == "files"
        assert client_class.call_args.kwargs["endpoint"] == "minio:9000"

    def test_unsupported_provider(self):
        settings = _settings()
        bogus = MagicMock()
        bogus.blob_storage.provider = "gcs"
        factory = InfrastructureFactory(settings)
        factory._settings = bogus

        with pytest.raises(ValueError, match="Unsupported blob storage provider"):
            factory.get_blob_storage()

    async def test_close_all(self):
        factory = InfrastructureFactory(_settings())
        storage = MagicMock()
        storage.close = AsyncMock()
        factory._instances["blob_storage"] = storage

        await factory.close_all()

        storage.close.assert_awaited_once()
        assert factory._instances == {}

    async def test_close_all_logs_failures(self, caplog):
        factory = InfrastructureFactory(_settings())
        storage = MagicMock()
        storage.close = AsyncMock(side_effect=RuntimeError("socket gone"))
        factory._instances["blob_storage"] = storage

        await factory.close_all()

        assert "Failed to close blob_storage" in caplog.text
        assert factory._instances == {}


class TestFactorySingleton:
    """Tests for factory singleton functions."""

    def test_get_factory_requires_settings(self):
        with pytest.raises(ValueError, match="Settings required"):
            get_factory()

    def test_get_factory_returns_same_instance(self):
        settings = _settings()
        factory1 = get_factory(settings)
        factory2 = get_factory()
        assert factory1 is factory2

    def test_reset_factory(self):
        factory1 = get_factory(_settings())
        reset_factory()
        factory2 = get_factory(_settings())
        assert factory1 is not factory2
