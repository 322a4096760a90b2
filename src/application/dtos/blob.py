"""DTOs for blob listing, upload, download and delete operations."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

from src.commons.infrastructure.blob import BlobErrorKind


class _PascalModel(BaseModel):
    """Immutable model serialized with PascalCase keys (``Uri``, ``Name``)."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        frozen=True,
    )


class BlobDto(_PascalModel):
    """A stored blob as returned by listings and downloads."""

    uri: str | None = Field(default=None, description="Absolute URI of the blob")
    name: str = Field(description="Blob key, unique within the container")
    content_type: str | None = Field(default=None, description="MIME type")
    content: Any = Field(
        default=None,
        exclude=True,
        repr=False,
        description="Async byte stream, only set on downloads",
    )


class BlobReference(_PascalModel):
    """URI and name of the blob affected by an upload."""

    uri: str | None = None
    name: str | None = None


class BlobResponseDto(_PascalModel):
    """Outcome of a mutating operation (upload or delete)."""

    error: bool = Field(description="Whether the operation failed")
    status: str = Field(description="Human-readable outcome message")
    blob: BlobReference = Field(default_factory=BlobReference)
    error_kind: BlobErrorKind | None = Field(default=None, exclude=True)

    @model_validator(mode="after")
    def _check_outcome(self) -> "BlobResponseDto":
        if self.error:
            if not self.status:
                raise ValueError("failed responses need a status message")
            if self.blob.uri is not None or self.blob.name is not None:
                raise ValueError("failed responses must not reference a blob")
        elif self.error_kind is not None:
            raise ValueError("successful responses carry no error kind")
        return self

    @classmethod
    def succeeded(
        cls,
        status: str,
        blob: BlobReference | None = None,
    ) -> "BlobResponseDto":
        return cls(error=False, status=status, blob=blob or BlobReference())

    @classmethod
    def failed(cls, status: str, kind: BlobErrorKind) -> "BlobResponseDto":
        return cls(error=True, status=status, error_kind=kind)

    @property
    def is_conflict(self) -> bool:
        """True when the failure is an expected name clash."""
        return self.error_kind is BlobErrorKind.ALREADY_EXISTS
