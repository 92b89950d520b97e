"""
Pytest configuration and fixtures for OpenData Canvas tests.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

import pytest

from opendata.cache import CacheEngine
from opendata.storage import MemoryStorage, WriteResult

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class ScriptedStorage(MemoryStorage):
    """MemoryStorage whose set_item answers from a script before behaving normally.

    `script` lists results for successive writes; once exhausted, writes
    succeed. With `always` set, every write returns that result.
    """

    def __init__(
        self,
        script: Optional[List[WriteResult]] = None,
        always: Optional[WriteResult] = None,
    ) -> None:
        super().__init__(quota_bytes=10 * 1024 * 1024)
        self.script = list(script or [])
        self.always = always
        self.write_attempts: List[str] = []

    def seed(self, key: str, value: str) -> None:
        """Write directly, bypassing the script."""
        assert MemoryStorage.set_item(self, key, value) is WriteResult.OK

    def set_item(self, key: str, value: str) -> WriteResult:
        self.write_attempts.append(key)
        if self.always is not None:
            return self.always
        if self.script:
            result = self.script.pop(0)
            if result is not WriteResult.OK:
                return result
        return super().set_item(key, value)


def make_entry(data: Any, timestamp: int, ttl_ms: int) -> str:
    """Raw stored entry in the cache's wire format."""
    return json.dumps({"data": data, "timestamp": timestamp, "expiresIn": ttl_ms})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage(quota_bytes=5 * 1024 * 1024)


@pytest.fixture
def engine(storage: MemoryStorage, clock: FakeClock) -> CacheEngine:
    """Cache engine over an empty in-memory store with a controllable clock."""
    return CacheEngine(storage, clock=clock)
