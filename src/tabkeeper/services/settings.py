"""Settings dataclass and persistence helpers for tab sessions."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

from .metadata_cache import DEFAULT_CACHE_LIMIT
from .persistence import DEFAULT_KEY_PREFIX
from .storage import default_storage_dir
from ..tabs.history import DEFAULT_HISTORY_LIMIT

__all__ = ["SessionSettings", "SettingsStore"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".tabkeeper"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_ENV_OVERRIDES: Mapping[str, str] = {
    "TABKEEPER_STORAGE_DIR": "storage_dir",
    "TABKEEPER_KEY_PREFIX": "key_prefix",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "TABKEEPER_DEBUG_LOGGING": "debug_logging",
    "TABKEEPER_HYDRATE_ON_START": "hydrate_on_start",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "TABKEEPER_HISTORY_LIMIT": "history_limit",
    "TABKEEPER_CACHE_LIMIT": "cache_limit",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}


@dataclass(slots=True)
class SessionSettings:
    """Tunables shared by every editor session."""

    history_limit: int = DEFAULT_HISTORY_LIMIT
    cache_limit: int = DEFAULT_CACHE_LIMIT
    storage_dir: str = field(default_factory=lambda: str(default_storage_dir()))
    key_prefix: str = DEFAULT_KEY_PREFIX
    hydrate_on_start: bool = True
    debug_logging: bool = False

    def storage_path(self) -> Path:
        return Path(self.storage_dir).expanduser()


class SettingsStore:
    """Persistence adapter for :class:`SessionSettings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> SessionSettings:
        """Load settings from disk, applying runtime and environment overrides."""

        payload = self._read_payload()
        settings = SessionSettings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = SessionSettings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = SessionSettings()
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="runtime")
        return self._apply_env_overrides(settings)

    def save(self, settings: SessionSettings) -> Path:
        """Persist settings to disk with an atomic replace."""

        payload: Dict[str, Any] = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, Mapping):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return dict(data)

    def _apply_overrides(
        self,
        settings: SessionSettings,
        overrides: Mapping[str, Any],
        *,
        source: str,
    ) -> SessionSettings:
        filtered = {key: value for key, value in _filter_fields(overrides).items() if value is not None}
        if filtered:
            LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
            settings = replace(settings, **filtered)
        return settings

    def _apply_env_overrides(self, settings: SessionSettings) -> SessionSettings:
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value
        for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is not None:
                overrides[field_name] = value.strip().lower() in _TRUE_VALUES
        for env_name, field_name in _INT_ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value is None:
                continue
            try:
                overrides[field_name] = int(value, 10)
            except ValueError:
                LOGGER.warning(
                    "Environment override %s=%s is not a valid integer",
                    env_name,
                    value,
                )
        if overrides:
            settings = self._apply_overrides(settings, overrides, source="environment")
        return settings


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(SessionSettings)}
    return {key: value for key, value in payload.items() if key in allowed}
