"""
Persistent key/value medium for the cache engine.

Models a browser origin's local storage: a flat str → str map with a finite
byte quota. Writes report their outcome as a WriteResult instead of raising,
so callers branch on QUOTA_EXCEEDED rather than catching exceptions.

  MemoryStorage    : in-process map, used directly by tests
  JsonFileStorage  : same map mirrored to a JSON file between runs

One instance is shared by every Streamlit session thread, so each operation
runs under the instance lock.
"""
import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .config import STORAGE_QUOTA_BYTES

logger = logging.getLogger(__name__)


class WriteResult(Enum):
    """Outcome of KeyValueStorage.set_item()."""
    OK = "ok"
    QUOTA_EXCEEDED = "quota_exceeded"
    FAILED = "failed"


def entry_size(key: str, value: str) -> int:
    """Bytes a key/value pair counts against the quota."""
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class KeyValueStorage(ABC):
    """Synchronous origin-scoped string map with a byte quota."""

    quota_bytes: int

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> WriteResult:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        """Snapshot of the current keys. Safe to mutate the store while iterating it."""
        ...

    def remove_items(self, keys: Iterable[str]) -> None:
        """Remove several keys at once. Missing keys are skipped."""
        for key in keys:
            self.remove_item(key)

    def used_bytes(self) -> int:
        total = 0
        for key in self.keys():
            value = self.get_item(key)
            if value is not None:
                total += entry_size(key, value)
        return total


class MemoryStorage(KeyValueStorage):
    """
    Dict-backed storage with quota enforcement.
    A write that would exceed the quota leaves the map unchanged.
    """

    def __init__(self, quota_bytes: int = STORAGE_QUOTA_BYTES):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}
        self._used = 0
        self._lock = threading.RLock()

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set_item(self, key: str, value: str) -> WriteResult:
        if not isinstance(key, str) or not isinstance(value, str):
            logger.warning(f"Storage: refusing non-string item for key {key!r}")
            return WriteResult.FAILED

        with self._lock:
            old = self._items.get(key)
            old_size = entry_size(key, old) if old is not None else 0
            new_used = self._used - old_size + entry_size(key, value)
            if new_used > self.quota_bytes:
                return WriteResult.QUOTA_EXCEEDED

            self._items[key] = value
            self._used = new_used
            return WriteResult.OK

    def remove_item(self, key: str) -> None:
        with self._lock:
            old = self._items.pop(key, None)
            if old is not None:
                self._used -= entry_size(key, old)

    def remove_items(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                MemoryStorage.remove_item(self, key)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def used_bytes(self) -> int:
        with self._lock:
            return self._used

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items


class JsonFileStorage(MemoryStorage):
    """
    MemoryStorage persisted to a single JSON file.
    Every mutation rewrites the file; a failed disk write is rolled back
    in memory and reported as WriteResult.FAILED. remove_items() rewrites
    the file once for the whole batch.
    """

    def __init__(self, path, quota_bytes: int = STORAGE_QUOTA_BYTES):
        super().__init__(quota_bytes=quota_bytes)
        self.path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                items = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning(f"Storage: could not load {self.path}, starting empty: {exc}")
            return

        if not isinstance(items, dict):
            logger.warning(f"Storage: {self.path} is not a JSON object, starting empty")
            return

        for key, value in items.items():
            if isinstance(value, str):
                # Seeded directly so an over-quota file still loads; sweeps reclaim space
                self._items[key] = value
                self._used += entry_size(key, value)

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._items, f)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def set_item(self, key: str, value: str) -> WriteResult:
        with self._lock:
            previous = self._items.get(key)
            result = super().set_item(key, value)
            if result is not WriteResult.OK:
                return result
            try:
                self._save()
            except OSError as exc:
                logger.warning(f"Storage: failed to persist {key}: {exc}")
                if previous is None:
                    super().remove_item(key)
                else:
                    super().set_item(key, previous)
                return WriteResult.FAILED
            return WriteResult.OK

    def remove_item(self, key: str) -> None:
        self.remove_items([key])

    def remove_items(self, keys: Iterable[str]) -> None:
        with self._lock:
            present = [k for k in keys if k in self._items]
            if not present:
                return
            super().remove_items(present)
            try:
                self._save()
            except OSError as exc:
                logger.warning(f"Storage: failed to persist removal of {len(present)} keys: {exc}")
