"""Application services for file storage."""

from src.application.services.blob_storage import BlobService

__all__ = [
    "BlobService",
]
