"""Durable key-value stores backing the per-project metadata cache."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Protocol, runtime_checkable
from urllib.parse import quote

from ..errors import StorageError

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "FileKeyValueStore",
    "default_storage_dir",
]

LOGGER = logging.getLogger(__name__)
_DEFAULT_STORAGE_DIR = Path.home() / ".tabkeeper" / "cache"
_KEY_SUFFIX = ".json"


def default_storage_dir() -> Path:
    env_override = os.environ.get("TABKEEPER_STORAGE_DIR")
    return Path(env_override or _DEFAULT_STORAGE_DIR).expanduser()


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal byte-oriented store addressed by namespace keys."""

    def load(self, key: str) -> bytes | None:  # pragma: no cover - protocol
        ...

    def save(self, key: str, data: bytes) -> None:  # pragma: no cover - protocol
        ...


class MemoryKeyValueStore:
    """Process-local store used by tests and ephemeral sessions."""

    def __init__(self, initial: Dict[str, bytes] | None = None) -> None:
        self._data: Dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> bytes | None:
        return self._data.get(key)

    def save(self, key: str, data: bytes) -> None:
        self._data[key] = bytes(data)


class FileKeyValueStore:
    """Stores each key as one file inside ``root`` using atomic replaces."""

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = Path(root).expanduser() if root is not None else default_storage_dir()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        return self._root / f"{_key_slug(key)}{_KEY_SUFFIX}"

    def load(self, key: str) -> bytes | None:
        path = self.path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(key, f"failed to read {path}: {exc}") from exc

    def save(self, key: str, data: bytes) -> None:
        path = self.path_for(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageError(key, f"failed to write {path}: {exc}") from exc
        LOGGER.debug("FileKeyValueStore.save: key=%s, bytes=%d, path=%s", key, len(data), path)


def _key_slug(key: str) -> str:
    slug = quote(key, safe="")
    if slug in {"", ".", ".."}:
        raise StorageError(key, "key does not name a usable file")
    return slug
