"""Application layer - use cases and orchestration.

This layer contains:
- Services: Blob storage use cases
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import BlobDto, BlobReference, BlobResponseDto
from src.application.services import BlobService

__all__ = [
    # DTOs
    "BlobDto",
    "BlobReference",
    "BlobResponseDto",
    # Services
    "BlobService",
]
