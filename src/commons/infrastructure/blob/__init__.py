"""Blob storage abstractions and implementations."""

from src.commons.infrastructure.blob.azure_provider import AzureBlobStorage
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
from src.commons.infrastructure.blob.memory_provider import InMemoryBlobStorage
from src.commons.infrastructure.blob.minio_provider import MinioBlobStorage

__all__ = [
    # Base classes
    "BlobDownload",
    "BlobItem",
    "BlobStorageBase",
    "HealthStatus",
    "StoredBlob",
    "DEFAULT_CONTENT_TYPE",
    # Implementations
    "AzureBlobStorage",
    "InMemoryBlobStorage",
    "MinioBlobStorage",
    # Errors
    "BlobErrorKind",
    "BlobStorageError",
]
