"""Unit tests for settings models and loader."""

import json
import os
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from pydantic import ValidationError

from src.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from src.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    ServerSettings,
    Settings,
    TelemetrySettings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep FILES_API__ variables from the host out of the tests."""
    for key in list(os.environ):
        if key.startswith(SettingsLoader.ENV_PREFIX):
            monkeypatch.delenv(key)
    monkeypatch.delenv("BlobConnectionString", raising=False)
    monkeypatch.delenv("BlobContainerName", raising=False)


class TestAppSettings:
    """Tests for AppSettings model."""

    def test_default_values(self):
        settings = AppSettings()
        assert settings.name == "files-api"
        assert settings.version == "0.1.0"
        assert settings.environment == "dev"
        assert settings.log_level == "INFO"

    def test_invalid_environment(self):
        with pytest.raises(ValidationError):
            AppSettings(environment="qa")


class TestServerSettings:
    """Tests for ServerSettings model."""

    def test_default_values(self):
        settings = ServerSettings()
        assert settings.port == 8000
        assert settings.api_prefix == "/api"
        assert settings.cors_origins == ["*"]

    def test_port_validation(self):
        with pytest.raises(ValidationError):
            ServerSettings(port=0)
        with pytest.raises(ValidationError):
            ServerSettings(port=70000)


class TestBlobStorageSettings:
    """Tests for BlobStorageSettings model."""

    def test_default_values(self):
        settings = BlobStorageSettings()
        assert settings.provider == "memory"
        assert settings.container_name == "files"
        assert settings.operation_timeout_seconds is None
        assert settings.create_container is False

    def test_azure_requires_connection_string(self):
        with pytest.raises(ValidationError, match="connection_string"):
            BlobStorageSettings(provider="azure")

    def test_azure_with_connection_string(self):
        settings = BlobStorageSettings(
            provider="azure", connection_string="UseDevelopmentStorage=true"
        )
        assert settings.provider == "azure"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            BlobStorageSettings(operation_timeout_seconds=0)

    def test_unknown_provider(self):
        with pytest.raises(ValidationError):
            BlobStorageSettings(provider="gcs")


class TestTelemetrySettings:
    """Tests for TelemetrySettings model."""

    def test_default_values(self):
        settings = TelemetrySettings()
        assert settings.log_format == "json"
        assert settings.log_file is None
        assert settings.log_file_backup_count == 7


class TestRootSettings:
    """Tests for root Settings model."""

    def test_default_values(self):
        settings = Settings()
        assert isinstance(settings.app, AppSettings)
        assert isinstance(settings.server, ServerSettings)
        assert isinstance(settings.blob_storage, BlobStorageSettings)
        assert isinstance(settings.telemetry, TelemetrySettings)


class TestSettingsLoader:
    """Tests for SettingsLoader."""

    def test_load_empty_config(self):
        with TemporaryDirectory() as tmpdir:
            loader = SettingsLoader(config_dir=Path(tmpdir), environment="dev")
            settings = loader.load()
            assert settings.app.name == "files-api"
            assert settings.blob_storage.provider == "memory"

    def test_load_environment_override(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            base_config = {
                "blob_storage": {"container_name": "files", "create_container": True},
                "server": {"port": 8000},
            }
            (config_dir / "appsettings.json").write_text(json.dumps(base_config))
            prod_config = {
                "blob_storage": {
                    "provider": "azure",
                    "connection_string": "UseDevelopmentStorage=true",
                },
            }
            (config_dir / "appsettings.prod.json").write_text(json.dumps(prod_config))

            settings = SettingsLoader(config_dir=config_dir, environment="prod").load()

            assert settings.server.port == 8000
            assert settings.blob_storage.container_name == "files"
            assert settings.blob_storage.create_container is True
            assert settings.blob_storage.provider == "azure"

    def test_legacy_flat_keys(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            legacy = {
                "BlobConnectionString": "UseDevelopmentStorage=true",
                "BlobContainerName": "uploads",
            }
            (config_dir / "appsettings.json").write_text(json.dumps(legacy))

            settings = SettingsLoader(config_dir=config_dir).load()

            assert settings.blob_storage.connection_string == (
                "UseDevelopmentStorage=true"
            )
            assert settings.blob_storage.container_name == "uploads"

    def test_nested_key_wins_over_legacy_key(self):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            config = {
                "BlobContainerName": "legacy",
                "blob_storage": {"container_name": "nested"},
            }
            (config_dir / "appsettings.json").write_text(json.dumps(config))

            settings = SettingsLoader(config_dir=config_dir).load()

            assert settings.blob_storage.container_name == "nested"

    def test_env_vars_override_files(self, monkeypatch):
        with TemporaryDirectory() as tmpdir:
            config_dir = Path(tmpdir)
            (config_dir / "appsettings.json").write_text(
                json.dumps({"blob_storage": {"container_name": "from-file"}})
            )
            monkeypatch.setenv("FILES_API__BLOB_STORAGE__CONTAINER_NAME", "from-env")
            monkeypatch.setenv("FILES_API__BLOB_STORAGE__CREATE_CONTAINER", "true")
            monkeypatch.setenv("FILES_API__SERVER__PORT", "9100")

            settings = SettingsLoader(config_dir=config_dir).load()

            assert settings.blob_storage.container_name == "from-env"
            assert settings.blob_storage.create_container is True
            assert settings.server.port == 9100

    def test_legacy_env_vars(self, monkeypatch):
        monkeypatch.setenv("BlobContainerName", "legacy-env")
        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir)).load()
        assert settings.blob_storage.container_name == "legacy-env"

    def test_prefixed_env_wins_over_legacy_env(self, monkeypatch):
        monkeypatch.setenv("BlobContainerName", "legacy-env")
        monkeypatch.setenv("FILES_API__BLOB_STORAGE__CONTAINER_NAME", "prefixed")
        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir)).load()
        assert settings.blob_storage.container_name == "prefixed"

    def test_environment_from_env_var(self, monkeypatch):
        monkeypatch.setenv("FILES_API__APP__ENVIRONMENT", "staging")
        assert SettingsLoader().environment == "staging"

    def test_coerce_value(self):
        loader = SettingsLoader()
        assert loader._coerce_value('["a", "b"]') == ["a", "b"]
        assert loader._coerce_value('{"a": 1}') == {"a": 1}
        assert loader._coerce_value("[not json") == "[not json"
        assert loader._coerce_value("42") == "42"
        assert loader._coerce_value("null") == "null"
        assert loader._coerce_value("files") == "files"

    def test_numeric_looking_strings_stay_strings(self, monkeypatch):
        monkeypatch.setenv("FILES_API__BLOB_STORAGE__ACCESS_KEY", "12345")
        monkeypatch.setenv("FILES_API__BLOB_STORAGE__SECRET_KEY", "null")
        monkeypatch.setenv("FILES_API__BLOB_STORAGE__CONTAINER_NAME", "2024")
        monkeypatch.setenv(
            "FILES_API__BLOB_STORAGE__OPERATION_TIMEOUT_SECONDS", "2.5"
        )
        monkeypatch.setenv("FILES_API__SERVER__CORS_ORIGINS", '["https://a.test"]')

        with TemporaryDirectory() as tmpdir:
            settings = SettingsLoader(config_dir=Path(tmpdir)).load()

        assert settings.blob_storage.access_key == "12345"
        assert settings.blob_storage.secret_key == "null"
        assert settings.blob_storage.container_name == "2024"
        assert settings.blob_storage.operation_timeout_seconds == 2.5
        assert settings.server.cors_origins == ["https://a.test"]

    def test_deep_merge(self):
        loader = SettingsLoader()
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        override = {"a": {"b": 10, "e": 4}, "f": 5}

        result = loader._deep_merge(base, override)

        assert result == {"a": {"b": 10, "c": 2, "e": 4}, "d": 3, "f": 5}


class TestGetSettings:
    """Tests for get_settings function."""

    def setup_method(self):
        reset_settings()

    def teardown_method(self):
        reset_settings()

    def test_get_settings_cached(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir))
            assert settings1 is settings2

    def test_get_settings_reload(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            settings2 = get_settings(config_dir=Path(tmpdir), reload=True)
            assert settings1 is not settings2

    def test_reset_settings(self):
        with TemporaryDirectory() as tmpdir:
            settings1 = get_settings(config_dir=Path(tmpdir))
            reset_settings()
            settings2 = get_settings(config_dir=Path(tmpdir))
            assert settings1 is not settings2
