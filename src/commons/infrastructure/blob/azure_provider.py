"""Azure Blob Storage implementation of blob storage."""

import time
from collections.abc import AsyncIterator
from typing import BinaryIO

from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import ContainerClient

from src.commons.infrastructure.blob.base import (
    DEFAULT_CONTENT_TYPE,
    BlobDownload,
    BlobErrorKind,
    BlobItem,
    BlobStorageBase,
    BlobStorageError,
    HealthStatus,
    StoredBlob,
)
from src.commons.telemetry import get_logger, timed

logger = get_logger(__name__)


class AzureBlobStorage(BlobStorageBase):
    """Azure Blob Storage implementation backed by the async SDK.

    One instance wraps one container client and is shared across requests.
    """

    def __init__(
        self,
        connection_string: str,
        container_name: str,
        client: ContainerClient | None = None,
    ) -> None:
        """Initialize the container client.

        Args:
            connection_string: Storage account connection string.
            container_name: Container holding the blobs.
            client: Pre-built container client (mainly for tests).
        """
        if client is None:
            if not connection_string:
                raise ValueError("Azure Blob Storage connection string is required")
            client = ContainerClient.from_connection_string(
                conn_str=connection_string,
                container_name=container_name,
            )
        self._client = client
        self._container_name = container_name

    @property
    def container_name(self) -> str:
        return self._container_name

    @property
    def container_uri(self) -> str:
        return str(self._client.url).rstrip("/")

    def _translate(self, error: AzureError, name: str | None = None) -> BlobStorageError:
        """Map an Azure SDK error onto a tagged storage error."""
        error_code = getattr(error, "error_code", None)
        code = str(error_code) if error_code is not None else None
        if code == "ContainerNotFound":
            kind = BlobErrorKind.CONTAINER_NOT_FOUND
        elif isinstance(error, ResourceExistsError):
            kind = BlobErrorKind.ALREADY_EXISTS
        elif isinstance(error, ResourceNotFoundError):
            kind = BlobErrorKind.NOT_FOUND
        else:
            kind = BlobErrorKind.BACKEND
        return BlobStorageError(
            kind,
            str(error.message) if error.message else str(error),
            container=self._container_name,
            name=name,
            error_code=code,
        )

    async def list_blobs(self) -> AsyncIterator[BlobItem]:  # type: ignore[override]
        """Page through the whole container listing."""
        try:
            async for blob in self._client.list_blobs():
                settings = blob.content_settings
                yield BlobItem(
                    name=blob.name,
                    content_type=settings.content_type if settings else None,
                )
        except AzureError as e:
            raise self._translate(e) from e

    @timed
    async def upload(
        self,
        name: str,
        data: BinaryIO,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> StoredBlob:
        """Upload a blob; the SDK chunks large streams into blocks."""
        blob_client = self._client.get_blob_client(name)
        try:
            await blob_client.upload_blob(
                data,
                overwrite=False,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            raise self._translate(e, name) from e
        return StoredBlob(uri=str(blob_client.url), name=blob_client.blob_name)

    async def download(self, name: str, chunk_size: int = 8192) -> BlobDownload:
        """Open a blob download.

        Chunk sizes are governed by the client's ``max_chunk_get_size``;
        ``chunk_size`` is accepted for interface compatibility.
        """
        blob_client = self._client.get_blob_client(name)
        try:
            downloader = await blob_client.download_blob()
        except AzureError as e:
            raise self._translate(e, name) from e

        async def _stream() -> AsyncIterator[bytes]:
            try:
                async for chunk in downloader.chunks():
                    yield chunk
            except AzureError as e:
                raise self._translate(e, name) from e

        settings = downloader.properties.content_settings
        return BlobDownload(
            name=name,
            content_type=settings.content_type if settings else None,
            content=_stream(),
        )

    async def delete(self, name: str) -> None:
        blob_client = self._client.get_blob_client(name)
        try:
            await blob_client.delete_blob()
        except AzureError as e:
            raise self._translate(e, name) from e

    async def create_container(self) -> bool:
        try:
            await self._client.create_container()
        except ResourceExistsError:
            return False
        except AzureError as e:
            raise self._translate(e) from e
        logger.info(f"Created blob container: {self._container_name}")
        return True

    async def health_check(self) -> HealthStatus:
        """Check service health by probing the container."""
        start = time.perf_counter()
        details = {"container": self._container_name}
        try:
            exists = await self._client.exists()
        except HttpResponseError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Azure Blob Storage health check failed: {e.message}",
                details={**details, "error": str(e.error_code)},
            )
        except AzureError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Azure Blob Storage health check failed: {e}",
                details={**details, "error": str(e)},
            )

        latency_ms = (time.perf_counter() - start) * 1000
        if not exists:
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"Container {self._container_name} does not exist",
                details=details,
            )
        return HealthStatus(
            healthy=True,
            latency_ms=latency_ms,
            message="Azure Blob Storage is healthy",
            details=details,
        )

    async def close(self) -> None:
        await self._client.close()
