"""Settings loader with hierarchical configuration support."""

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from src.commons.settings.models import Settings

# Flat keys used by existing deployments of the files service, read from the
# JSON files and from the process environment.
_LEGACY_KEYS: dict[str, tuple[str, str]] = {
    "BlobConnectionString": ("blob_storage", "connection_string"),
    "BlobContainerName": ("blob_storage", "container_name"),
}


def _nest_legacy_keys(flat: Mapping[str, Any]) -> dict[str, Any]:
    """Move legacy flat keys into their settings section."""
    nested: dict[str, Any] = {}
    for legacy_key, (section, field) in _LEGACY_KEYS.items():
        if legacy_key in flat:
            nested.setdefault(section, {})[field] = flat[legacy_key]
    return nested


class SettingsLoader:
    """Loads and merges configuration from multiple sources.

    Configuration precedence (highest to lowest):
    1. ``FILES_API__`` environment variables
    2. Legacy flat environment variables (``BlobConnectionString``, ...)
    3. Environment-specific config (appsettings.{env}.json)
    4. Base config (appsettings.json)

    Inside a JSON file, a nested ``blob_storage`` entry wins over the legacy
    flat key for the same field.
    """

    ENV_PREFIX = "FILES_API__"

    def __init__(
        self,
        config_dir: Path | None = None,
        environment: str | None = None,
    ) -> None:
        """Initialize the settings loader.

        Args:
            config_dir: Directory holding appsettings files, ``./config`` by
                default.
            environment: Environment name (dev, staging, prod). Defaults to
                FILES_API__APP__ENVIRONMENT or 'dev'.
        """
        self.config_dir = config_dir or Path("config")
        self.environment = environment or os.getenv(
            f"{self.ENV_PREFIX}APP__ENVIRONMENT", "dev"
        )

    def load(self) -> Settings:
        """Merge every source and validate the result."""
        sources = (
            self._load_json("appsettings.json"),
            self._load_json(f"appsettings.{self.environment}.json"),
            _nest_legacy_keys(os.environ),
            self._load_env_vars(),
        )
        config: dict[str, Any] = {}
        for source in sources:
            config = self._deep_merge(config, source)
        return Settings(**config)

    def _load_env_vars(self) -> dict[str, Any]:
        """Nest FILES_API__ variables by their ``__``-separated path.

        ``FILES_API__BLOB_STORAGE__CONTAINER_NAME=files`` becomes
        ``{"blob_storage": {"container_name": "files"}}``.
        """
        result: dict[str, Any] = {}
        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX):
                continue
            *sections, field = key[len(self.ENV_PREFIX) :].lower().split("__")
            current = result
            for section in sections:
                current = current.setdefault(section, {})
            current[field] = self._coerce_value(value)
        return result

    def _coerce_value(self, value: str) -> Any:
        """Decode JSON lists and objects; leave scalars as strings.

        Scalars are converted by the settings models, so a numeric access key
        stays a string while ``FILES_API__SERVER__PORT=9100`` still becomes an
        int.
        """
        if value.lstrip().startswith(("[", "{")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return value

    def _load_json(self, filename: str) -> dict[str, Any]:
        """Read one config file, or an empty dict when it is absent."""
        path = self.config_dir / filename
        if not path.exists():
            return {}
        with path.open(encoding="utf-8") as f:
            data: dict[str, Any] = json.load(f)

        legacy = _nest_legacy_keys(data)
        for key in _LEGACY_KEYS:
            data.pop(key, None)
        return self._deep_merge(legacy, data)

    def _deep_merge(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Deep merge two dictionaries, ``override`` winning on conflicts."""
        result = base.copy()
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


# Global settings instance
_settings: Settings | None = None


def get_settings(
    config_dir: Path | None = None,
    environment: str | None = None,
    *,
    reload: bool = False,
) -> Settings:
    """Get or create the global settings instance.

    Args:
        config_dir: Optional config directory override.
        environment: Optional environment override.
        reload: Force reload settings from files.

    Returns:
        Settings instance.
    """
    global _settings  # noqa: PLW0603
    if _settings is None or reload:
        loader = SettingsLoader(config_dir=config_dir, environment=environment)
        _settings = loader.load()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance. Useful for testing."""
    global _settings  # noqa: PLW0603
    _settings = None
