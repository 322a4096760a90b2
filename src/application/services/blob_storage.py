"""Blob service translating storage adapter outcomes into DTOs."""

import asyncio
import uuid
from typing import BinaryIO

from src.application.dtos.blob import BlobDto, BlobReference, BlobResponseDto
from src.commons.infrastructure.blob import (
    DEFAULT_CONTENT_TYPE,
    BlobErrorKind,
    BlobStorageBase,
    BlobStorageError,
)
from src.commons.telemetry import LogContext, get_correlation_id, get_logger


class BlobService:
    """Lists, uploads, downloads and deletes files in one container.

    Expected outcomes (name clash, missing blob) come back as DTOs or
    ``None``; unexpected backend faults on upload and delete are logged
    with a reference ID that is the only detail returned to the caller.
    """

    def __init__(
        self,
        blob_storage: BlobStorageBase,
        operation_timeout_seconds: float | None = None,
        download_chunk_size: int = 64 * 1024,
    ) -> None:
        """Initialize the service.

        Args:
            blob_storage: Container-scoped storage adapter.
            operation_timeout_seconds: Upper bound for each backend call,
                no limit when None.
            download_chunk_size: Chunk size for download streams.
        """
        self._storage = blob_storage
        self._timeout = operation_timeout_seconds
        self._chunk_size = download_chunk_size
        self._logger = get_logger(__name__)

    async def list_blobs(self) -> list[BlobDto] | None:
        """List every blob in the container.

        Returns:
            One DTO per blob (empty when the container is empty), or None
            when the container itself does not exist.
        """
        base_uri = self._storage.container_uri
        files: list[BlobDto] = []
        try:
            async with asyncio.timeout(self._timeout):
                async for item in self._storage.list_blobs():
                    files.append(
                        BlobDto(
                            uri=f"{base_uri}/{item.name}",
                            name=item.name,
                            content_type=item.content_type,
                        )
                    )
        except BlobStorageError as e:
            if e.kind is not BlobErrorKind.CONTAINER_NOT_FOUND:
                raise
            self._logger.error(
                f"Container '{self._storage.container_name}' was not found."
            )
            return None
        return files

    async def upload(
        self,
        filename: str,
        data: BinaryIO,
        content_type: str | None = None,
    ) -> BlobResponseDto:
        """Store a file under its own name, never overwriting.

        Args:
            filename: Blob key to store the content under.
            data: Readable stream with the file content.
            content_type: MIME type, defaults to application/octet-stream.

        Returns:
            Response DTO describing the outcome.
        """
        with LogContext(blob_name=filename):
            try:
                async with asyncio.timeout(self._timeout):
                    stored = await self._storage.upload(
                        filename,
                        data,
                        content_type=content_type or DEFAULT_CONTENT_TYPE,
                    )
            except BlobStorageError as e:
                if e.kind is BlobErrorKind.ALREADY_EXISTS:
                    self._logger.error(
                        f"File with name {filename} already exists in container. "
                        "Set another name to store the file in the container: "
                        f"'{self._storage.container_name}'."
                    )
                    return BlobResponseDto.failed(
                        f"File with name {filename} already exists. "
                        "Please use another name to store your file.",
                        BlobErrorKind.ALREADY_EXISTS,
                    )
                return self._unexpected(e, e.kind)
            except TimeoutError as e:
                return self._unexpected(e, BlobErrorKind.BACKEND)

        return BlobResponseDto.succeeded(
            f"File {filename} Uploaded Successfully",
            BlobReference(uri=stored.uri, name=stored.name),
        )

    async def download(self, name: str) -> BlobDto | None:
        """Open a blob for download.

        Returns:
            DTO carrying the content stream and content type, or None when
            the blob does not exist.

        Raises:
            BlobStorageError: On backend faults other than a missing blob.
        """
        try:
            async with asyncio.timeout(self._timeout):
                download = await self._storage.download(
                    name, chunk_size=self._chunk_size
                )
        except BlobStorageError as e:
            if e.kind is not BlobErrorKind.NOT_FOUND:
                raise
            self._logger.error(f"File {name} was not found.")
            return None

        return BlobDto(
            uri=f"{self._storage.container_uri}/{name}",
            name=download.name,
            content_type=download.content_type,
            content=download.content,
        )

    async def delete(self, name: str) -> BlobResponseDto:
        """Delete a blob by name."""
        with LogContext(blob_name=name):
            try:
                async with asyncio.timeout(self._timeout):
                    await self._storage.delete(name)
            except BlobStorageError as e:
                if e.kind is BlobErrorKind.NOT_FOUND:
                    self._logger.error(f"File {name} was not found.")
                    return BlobResponseDto.failed(
                        f"File with name {name} not found.",
                        BlobErrorKind.NOT_FOUND,
                    )
                return self._unexpected(e, e.kind)
            except TimeoutError as e:
                return self._unexpected(e, BlobErrorKind.BACKEND)

        return BlobResponseDto.succeeded(
            f"File: {name} has been successfully deleted."
        )

    def _unexpected(self, error: Exception, kind: BlobErrorKind) -> BlobResponseDto:
        """Log an unexpected fault and return a response carrying only its reference."""
        reference = get_correlation_id() or str(uuid.uuid4())
        self._logger.error(
            f"Unhandled storage exception. ID: {reference} - Message: {error}",
            exc_info=error,
            extra={"reference_id": reference, "error_kind": kind.value},
        )
        return BlobResponseDto.failed(
            f"Unexpected error. Check log with reference ID: {reference}.",
            kind,
        )
