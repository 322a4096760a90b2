"""Data transfer objects for the API boundary."""

from src.application.dtos.blob import BlobDto, BlobReference, BlobResponseDto

__all__ = [
    "BlobDto",
    "BlobReference",
    "BlobResponseDto",
]
