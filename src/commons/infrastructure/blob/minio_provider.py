"""MinIO implementation of blob storage."""

import asyncio
import itertools
import time
from collections.abc import AsyncIterator
from typing import Any, BinaryIO

from minio import Minio
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError

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

_MISSING_KEY_CODES = {"NoSuchKey", "NoSuchObject"}
_LIST_BATCH_SIZE = 1000
# Minimum S3 multipart part size; required when the stream length is unknown.
_PART_SIZE = 10 * 1024 * 1024
# Transport failures and non-XML error responses raised by the SDK
_BACKEND_ERRORS = (MinioException, HTTPError)

logger = get_logger(__name__)


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of blob storage.

    Works with both MinIO (local development) and AWS S3 (production).
    The bucket plays the role of the container.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        """Initialize MinIO client.

        Args:
            endpoint: MinIO/S3 endpoint (e.g., "localhost:9000").
            access_key: Access key ID.
            secret_key: Secret access key.
            bucket: Bucket holding the blobs.
            secure: Use HTTPS connection.
            region: AWS region (optional, for S3).
        """
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint
        self._secure = secure
        self._bucket = bucket

    @property
    def container_name(self) -> str:
        return self._bucket

    @property
    def container_uri(self) -> str:
        scheme = "https" if self._secure else "http"
        return f"{scheme}://{self._endpoint}/{self._bucket}"

    def _translate(self, error: Exception, name: str | None = None) -> BlobStorageError:
        """Map an SDK or transport error onto a tagged storage error."""
        code = error.code if isinstance(error, S3Error) else None
        if code == "NoSuchBucket":
            kind = BlobErrorKind.CONTAINER_NOT_FOUND
        elif code in _MISSING_KEY_CODES:
            kind = BlobErrorKind.NOT_FOUND
        else:
            kind = BlobErrorKind.BACKEND
        return BlobStorageError(
            kind,
            str(error),
            container=self._bucket,
            name=name,
            error_code=code,
        )

    async def list_blobs(self) -> AsyncIterator[BlobItem]:  # type: ignore[override]
        """Iterate over every object in the bucket in batches."""
        loop = asyncio.get_event_loop()
        objects = self._client.list_objects(
            bucket_name=self._bucket,
            recursive=True,
            include_user_meta=True,
        )

        def _next_batch() -> list[Any]:
            try:
                return list(itertools.islice(objects, _LIST_BATCH_SIZE))
            except (S3Error, *_BACKEND_ERRORS) as e:
                raise self._translate(e) from e

        while True:
            batch = await loop.run_in_executor(None, _next_batch)
            if not batch:
                break
            for obj in batch:
                yield BlobItem(
                    name=obj.object_name or "",
                    content_type=_metadata_content_type(obj.metadata),
                )

    @timed
    async def upload(
        self,
        name: str,
        data: BinaryIO,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> StoredBlob:
        """Upload a blob, refusing to replace an existing object."""
        loop = asyncio.get_event_loop()

        def _upload() -> None:
            # S3 has no create-only put; stat first. A concurrent writer
            # between stat and put wins with last-write-wins semantics.
            try:
                self._client.stat_object(bucket_name=self._bucket, object_name=name)
            except S3Error as e:
                if e.code not in _MISSING_KEY_CODES:
                    raise self._translate(e, name) from e
            except _BACKEND_ERRORS as e:
                raise self._translate(e, name) from e
            else:
                raise BlobStorageError(
                    BlobErrorKind.ALREADY_EXISTS,
                    f"Blob already exists: {self._bucket}/{name}",
                    container=self._bucket,
                    name=name,
                )

            try:
                self._client.put_object(
                    bucket_name=self._bucket,
                    object_name=name,
                    data=data,
                    length=-1,
                    content_type=content_type,
                    part_size=_PART_SIZE,
                )
            except (S3Error, *_BACKEND_ERRORS) as e:
                raise self._translate(e, name) from e

        await loop.run_in_executor(None, _upload)
        return StoredBlob(uri=f"{self.container_uri}/{name}", name=name)

    async def download(self, name: str, chunk_size: int = 8192) -> BlobDownload:
        """Open an object and stream it in chunks."""
        loop = asyncio.get_event_loop()

        def _open() -> Any:
            try:
                return self._client.get_object(
                    bucket_name=self._bucket, object_name=name
                )
            except (S3Error, *_BACKEND_ERRORS) as e:
                raise self._translate(e, name) from e

        response = await loop.run_in_executor(None, _open)

        async def _stream() -> AsyncIterator[bytes]:
            try:
                while True:
                    try:
                        chunk: bytes = await loop.run_in_executor(
                            None, response.read, chunk_size
                        )
                    except _BACKEND_ERRORS as e:
                        raise self._translate(e, name) from e
                    if not chunk:
                        break
                    yield chunk
            finally:
                response.close()
                response.release_conn()

        return BlobDownload(
            name=name,
            content_type=response.headers.get("Content-Type"),
            content=_stream(),
        )

    async def delete(self, name: str) -> None:
        """Delete an object, reporting NOT_FOUND when it is absent."""
        loop = asyncio.get_event_loop()

        def _delete() -> None:
            try:
                # remove_object succeeds silently on missing keys
                self._client.stat_object(bucket_name=self._bucket, object_name=name)
                self._client.remove_object(bucket_name=self._bucket, object_name=name)
            except (S3Error, *_BACKEND_ERRORS) as e:
                raise self._translate(e, name) from e

        await loop.run_in_executor(None, _delete)

    async def create_container(self) -> bool:
        """Create the bucket if missing."""
        loop = asyncio.get_event_loop()

        def _create() -> bool:
            try:
                if self._client.bucket_exists(bucket_name=self._bucket):
                    return False
                self._client.make_bucket(bucket_name=self._bucket)
                return True
            except (S3Error, *_BACKEND_ERRORS) as e:
                raise self._translate(e) from e

        created = await loop.run_in_executor(None, _create)
        if created:
            logger.info(f"Created bucket {self._bucket}")
        return created

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            loop = asyncio.get_event_loop()
            exists = await loop.run_in_executor(
                None, lambda: self._client.bucket_exists(bucket_name=self._bucket)
            )
            latency_ms = (time.perf_counter() - start) * 1000
            if not exists:
                return HealthStatus(
                    healthy=False,
                    latency_ms=latency_ms,
                    message=f"Bucket {self._bucket} does not exist",
                    details={"endpoint": self._endpoint},
                )
            return HealthStatus(
                healthy=True,
                latency_ms=latency_ms,
                message="MinIO is healthy",
                details={"endpoint": self._endpoint},
            )
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )


def _metadata_content_type(metadata: Any) -> str | None:
    """Read the content type from MinIO's listing metadata extension."""
    if not metadata:
        return None
    for key, value in dict(metadata).items():
        if key.lower() == "content-type":
            return str(value)
    return None
