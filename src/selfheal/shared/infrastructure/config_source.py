"""
Key/value configuration sources.

Pipeline components read credentials and feature flags through a narrow
get/get_required interface instead of importing Settings directly, so a host
application (or a test) can supply its own values.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from selfheal.shared.domain.exceptions import ConfigurationError
from selfheal.shared.infrastructure.config import Settings, settings as default_settings

_MISSING = object()


class ConfigSource(ABC):
    """Read-only key/value configuration."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for key, or default when absent."""

    def get_required(self, key: str) -> Any:
        """
        Return the value for key.

        Raises:
            ConfigurationError: If the key is missing or blank
        """
        value = self.get(key, _MISSING)
        if value is _MISSING or value is None or (isinstance(value, str) and not value.strip()):
            raise ConfigurationError(
                f"Required configuration key '{key}' is not set",
                context={"key": key},
            )
        return value


class DictConfigSource(ConfigSource):
    """In-memory source. Keys are matched case-insensitively."""

    def __init__(self, values: Mapping[str, Any] | None = None):
        self._values = {k.lower(): v for k, v in (values or {}).items()}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key.lower(), default)

    def __repr__(self) -> str:
        return f"DictConfigSource(keys={sorted(self._values)})"


class SettingsConfigSource(ConfigSource):
    """Source backed by the environment-loaded Settings instance."""

    def __init__(self, app_settings: Settings | None = None):
        self._settings = app_settings or default_settings

    def get(self, key: str, default: Any = None) -> Any:
        value = getattr(self._settings, key.lower(), None)
        return default if value is None else value
