"""
Key-Value Stores - The durable local storage contract.

Contract (string keys, string values):
    get(key) -> str | None
    set(key, value)          may raise StorageUnavailable
    remove(key)              may raise StorageUnavailable

Implementations:
- MemoryStore: in-process dict, for tests and ephemeral servers
- FileStore: one JSON-text file per key under a directory

Callers (snapshot store, sync queue, profile store) treat every call
as fallible and never let a storage error escape.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
import hashlib
import os
import re

from ..errors import StorageUnavailable


class KeyValueStore(ABC):
    """Abstract durable key-value store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set(self, key: str, value: str):
        pass

    @abstractmethod
    def remove(self, key: str):
        pass


class MemoryStore(KeyValueStore):
    """
    In-memory store.

    Setting available=False makes every call raise StorageUnavailable,
    which is how tests simulate a full or blocked storage backend.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self.available = True

    def _check(self):
        if not self.available:
            raise StorageUnavailable("Memory store marked unavailable")

    def get(self, key: str) -> str | None:
        self._check()
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._check()
        self._data[key] = value

    def remove(self, key: str):
        self._check()
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> list[str]:
        return list(self._data.keys())


class FileStore(KeyValueStore):
    """
    File-backed store.

    Usage:
        store = FileStore("~/.truthhunt/store")
        store.set("truthHunters_savedGame", payload)

    Writes go to a temp file first and are renamed into place, so a
    crash mid-write leaves the previous value intact.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot create store directory {self.root}: {e}") from e

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {key}: {e}") from e

    def set(self, key: str, value: str):
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        try:
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {key}: {e}") from e

    def remove(self, key: str):
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Cannot remove {key}: {e}") from e

    def _path(self, key: str) -> Path:
        """
        Map a key to a file name.

        Safe keys are used as-is; anything else is hashed.
        """
        if re.fullmatch(r"[A-Za-z0-9_.:-]+", key):
            name = key.replace(":", "_")
        else:
            name = hashlib.sha256(key.encode("utf-8")).hexdigest()[:32]
        return self.root / f"{name}.json"
