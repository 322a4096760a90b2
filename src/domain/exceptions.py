"""Domain exceptions for the files service."""


class DomainException(Exception):
    """Base exception for domain errors."""


class InvalidUploadException(DomainException):
    """Raised when an upload request carries no usable file."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Invalid upload: {reason}")
