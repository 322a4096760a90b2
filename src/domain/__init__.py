"""Domain layer - business rules and errors."""

from src.domain.exceptions import DomainException, InvalidUploadException

__all__ = [
    "DomainException",
    "InvalidUploadException",
]
