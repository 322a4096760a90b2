"""Abstract base class for container-scoped blob storage operations."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class BlobErrorKind(str, Enum):
    """Kind of failure reported by a storage adapter."""

    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    CONTAINER_NOT_FOUND = "container_not_found"
    BACKEND = "backend"


class BlobStorageError(Exception):
    """Raised by storage adapters for every backend failure.

    Callers branch on ``kind`` instead of on vendor exception types.
    """

    def __init__(
        self,
        kind: BlobErrorKind,
        message: str,
        *,
        container: str | None = None,
        name: str | None = None,
        error_code: str | None = None,
    ) -> None:
        self.kind = kind
        self.container = container
        self.name = name
        self.error_code = error_code
        super().__init__(message)


@dataclass(frozen=True)
class BlobItem:
    """A single entry of a container listing."""

    name: str
    content_type: str | None = None


@dataclass(frozen=True)
class StoredBlob:
    """Identity of a stored blob as assigned by the backend."""

    uri: str
    name: str


@dataclass
class BlobDownload:
    """Open download of a blob: content type plus a chunk stream."""

    name: str
    content_type: str | None
    content: AsyncIterator[bytes]


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Abstract base class for a single blob container.

    Implementations should handle:
    - Azure Blob Storage
    - MinIO / AWS S3
    - In-memory (tests and local runs)
    """

    @property
    @abstractmethod
    def container_name(self) -> str:
        """Name of the configured container."""

    @property
    @abstractmethod
    def container_uri(self) -> str:
        """Absolute base URI of the container, without trailing slash."""

    @abstractmethod
    def list_blobs(self) -> AsyncIterator[BlobItem]:
        """Iterate over every blob in the container.

        Yields:
            One item per stored blob.

        Raises:
            BlobStorageError: CONTAINER_NOT_FOUND if the container is missing.
        """
        ...

    @abstractmethod
    async def upload(
        self,
        name: str,
        data: BinaryIO,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> StoredBlob:
        """Store a new blob, streaming from a file-like object.

        Existing blobs are never overwritten.

        Args:
            name: Blob key.
            data: Readable binary stream.
            content_type: MIME type of the content.

        Returns:
            Reference of the stored blob.

        Raises:
            BlobStorageError: ALREADY_EXISTS if the key is taken.
        """

    @abstractmethod
    async def download(self, name: str, chunk_size: int = 8192) -> BlobDownload:
        """Open a blob for streaming download.

        Args:
            name: Blob key.
            chunk_size: Size of each streamed chunk in bytes.

        Returns:
            Download handle with content type and chunk iterator.

        Raises:
            BlobStorageError: NOT_FOUND if the blob doesn't exist.
        """

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Delete a blob.

        Raises:
            BlobStorageError: NOT_FOUND if the blob doesn't exist.
        """

    @abstractmethod
    async def create_container(self) -> bool:
        """Create the container.

        Returns:
            True if created, False if it already existed.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health.

        Returns:
            Health status with latency info.
        """

    async def close(self) -> None:  # noqa: B027
        """Release network resources held by the adapter."""
