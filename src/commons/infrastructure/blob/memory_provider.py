"""In-memory implementation of blob storage."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import BinaryIO

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


@dataclass(frozen=True)
class _StoredObject:
    content: bytes
    content_type: str


class InMemoryBlobStorage(BlobStorageBase):
    """Process-local container for tests and backend-less runs.

    Content is held in memory, so uploads are buffered here.
    """

    def __init__(
        self,
        container_name: str = "files",
        base_uri: str = "memory://local",
        *,
        exists: bool = True,
    ) -> None:
        self._container_name = container_name
        self._base_uri = base_uri.rstrip("/")
        self._objects: dict[str, _StoredObject] = {}
        self._exists = exists
        self._lock = asyncio.Lock()

    @property
    def container_name(self) -> str:
        return self._container_name

    @property
    def container_uri(self) -> str:
        return f"{self._base_uri}/{self._container_name}"

    def _require_container(self) -> None:
        if not self._exists:
            raise BlobStorageError(
                BlobErrorKind.CONTAINER_NOT_FOUND,
                f"Container not found: {self._container_name}",
                container=self._container_name,
            )

    def _not_found(self, name: str) -> BlobStorageError:
        return BlobStorageError(
            BlobErrorKind.NOT_FOUND,
            f"Blob not found: {self._container_name}/{name}",
            container=self._container_name,
            name=name,
        )

    async def list_blobs(self) -> AsyncIterator[BlobItem]:  # type: ignore[override]
        self._require_container()
        # Snapshot so concurrent writers don't break iteration
        for name, stored in sorted(self._objects.items()):
            yield BlobItem(
                name=name,
                content_type=stored.content_type,
            )

    async def upload(
        self,
        name: str,
        data: BinaryIO,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> StoredBlob:
        self._require_container()
        # Read fully before publishing so a failed read leaves nothing behind
        content = data.read()
        async with self._lock:
            if name in self._objects:
                raise BlobStorageError(
                    BlobErrorKind.ALREADY_EXISTS,
                    f"Blob already exists: {self._container_name}/{name}",
                    container=self._container_name,
                    name=name,
                )
            self._objects[name] = _StoredObject(
                content=content, content_type=content_type
            )
        return StoredBlob(uri=f"{self.container_uri}/{name}", name=name)

    async def download(self, name: str, chunk_size: int = 8192) -> BlobDownload:
        self._require_container()
        stored = self._objects.get(name)
        if stored is None:
            raise self._not_found(name)

        async def _stream() -> AsyncIterator[bytes]:
            for offset in range(0, len(stored.content), chunk_size):
                yield stored.content[offset : offset + chunk_size]

        return BlobDownload(
            name=name,
            content_type=stored.content_type,
            content=_stream(),
        )

    async def delete(self, name: str) -> None:
        self._require_container()
        async with self._lock:
            if self._objects.pop(name, None) is None:
                raise self._not_found(name)

    async def create_container(self) -> bool:
        if self._exists:
            return False
        self._exists = True
        return True

    async def health_check(self) -> HealthStatus:
        return HealthStatus(
            healthy=self._exists,
            latency_ms=0.0,
            message="In-memory storage is healthy"
            if self._exists
            else f"Container {self._container_name} does not exist",
            details={"container": self._container_name},
        )
