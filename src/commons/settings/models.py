"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "files-api"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = False
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    docs_enabled: bool = True


class BlobStorageSettings(BaseModel):
    """Blob storage settings (Azure, MinIO/S3 or in-memory)."""

    provider: Literal["azure", "minio", "memory"] = "memory"
    container_name: str = "files"

    # Azure
    connection_string: str = ""

    # MinIO / S3
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"

    operation_timeout_seconds: float | None = Field(default=None, gt=0)
    create_container: bool = False
    download_chunk_size: int = Field(default=64 * 1024, ge=1024)

    @model_validator(mode="after")
    def _check_credentials(self) -> "BlobStorageSettings":
        if self.provider == "azure" and not self.connection_string:
            raise ValueError(
                "blob_storage.connection_string is required for the azure provider"
            )
        return self


class TelemetrySettings(BaseModel):
    """Logging settings."""

    log_format: Literal["json", "text"] = "json"
    log_level: str | None = None
    log_file: str | None = None
    log_file_backup_count: int = Field(default=7, ge=0)


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="FILES_API__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
