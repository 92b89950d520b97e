"""
Tests for the key/value storage media.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from unittest.mock import patch

from opendata.storage import JsonFileStorage, MemoryStorage, WriteResult, entry_size


class TestEntrySize:

    def test_counts_utf8_bytes_of_key_and_value(self) -> None:
        assert entry_size("k", "abc") == 4
        # "é" is two bytes, "€" three
        assert entry_size("é", "€") == 5


class TestMemoryStorage:
    """Test quota enforcement on the in-memory medium."""

    def test_set_get_remove(self) -> None:
        storage = MemoryStorage()
        assert storage.set_item("a", "1") is WriteResult.OK
        assert storage.get_item("a") == "1"

        storage.remove_item("a")
        assert storage.get_item("a") is None
        assert storage.used_bytes() == 0

    def test_remove_missing_key_is_noop(self) -> None:
        storage = MemoryStorage()
        storage.remove_item("missing")
        assert len(storage) == 0

    def test_quota_exceeded_leaves_map_unchanged(self) -> None:
        storage = MemoryStorage(quota_bytes=10)
        assert storage.set_item("a", "12345") is WriteResult.OK

        assert storage.set_item("b", "123456789") is WriteResult.QUOTA_EXCEEDED
        assert storage.keys() == ["a"]
        assert storage.used_bytes() == 6

    def test_replacement_counts_only_the_difference(self) -> None:
        storage = MemoryStorage(quota_bytes=10)
        storage.set_item("a", "123456789")

        assert storage.set_item("a", "987654321") is WriteResult.OK
        assert storage.used_bytes() == 10

    def test_non_string_value_fails(self) -> None:
        storage = MemoryStorage()
        assert storage.set_item("a", 42) is WriteResult.FAILED
        assert "a" not in storage

    def test_keys_is_a_snapshot(self) -> None:
        storage = MemoryStorage()
        for k in ("a", "b", "c"):
            storage.set_item(k, "x")

        for k in storage.keys():
            storage.remove_item(k)
        assert len(storage) == 0


class TestJsonFileStorage:
    """Test the file-backed medium."""

    def test_values_survive_reopen(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        storage = JsonFileStorage(path)
        storage.set_item("a", "1")
        storage.set_item("b", "2")
        storage.remove_item("a")

        reopened = JsonFileStorage(path)
        assert reopened.keys() == ["b"]
        assert reopened.get_item("b") == "2"
        assert reopened.used_bytes() == entry_size("b", "2")

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "store.json"
        JsonFileStorage(path).set_item("a", "1")
        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1"}

    def test_missing_file_starts_empty(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "absent.json")
        assert len(storage) == 0

    def test_corrupt_file_starts_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{truncated", encoding="utf-8")

        storage = JsonFileStorage(path)
        assert len(storage) == 0
        assert storage.set_item("a", "1") is WriteResult.OK

    def test_non_object_file_starts_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert len(JsonFileStorage(path)) == 0

    def test_non_string_values_are_skipped_on_load(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"a": "1", "b": 2}), encoding="utf-8")
        assert JsonFileStorage(path).keys() == ["a"]

    def test_quota_applies_to_file_storage(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "store.json", quota_bytes=5)
        assert storage.set_item("a", "123456") is WriteResult.QUOTA_EXCEEDED
        assert not (tmp_path / "store.json").exists()

    def test_disk_failure_rolls_back_new_key(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "store.json")
        with patch.object(storage, "_save", side_effect=OSError("read-only")):
            assert storage.set_item("a", "1") is WriteResult.FAILED
        assert "a" not in storage
        assert storage.used_bytes() == 0

    def test_disk_failure_restores_previous_value(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "store.json")
        storage.set_item("a", "old")
        with patch.object(storage, "_save", side_effect=OSError("read-only")):
            assert storage.set_item("a", "new") is WriteResult.FAILED
        assert storage.get_item("a") == "old"

    def test_bulk_remove_rewrites_file_once(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        storage = JsonFileStorage(path)
        for k in ("a", "b", "c", "d", "e"):
            storage.set_item(k, "1")

        with patch.object(storage, "_save", wraps=storage._save) as save:
            storage.remove_items(["a", "b", "c", "missing"])

        save.assert_called_once()
        assert JsonFileStorage(path).keys() == ["d", "e"]

    def test_bulk_remove_of_missing_keys_skips_write(self, tmp_path: Path) -> None:
        storage = JsonFileStorage(tmp_path / "store.json")
        with patch.object(storage, "_save") as save:
            storage.remove_items(["x", "y"])
        save.assert_not_called()


class TestConcurrentAccess:
    """Test that one storage shared by several session threads stays consistent."""

    def _hammer(self, storage: MemoryStorage, threads: int = 8, rounds: int = 200) -> None:
        def worker(n: int) -> None:
            for i in range(rounds):
                storage.set_item(f"t{n}-{i % 20}", "x" * (i % 7 + 1))
                if i % 5 == 0:
                    storage.remove_items([f"t{n}-{(i + 3) % 20}", f"t{(n + 1) % threads}-{i % 20}"])

        workers = [threading.Thread(target=worker, args=(n,)) for n in range(threads)]
        for t in workers:
            t.start()
        for t in workers:
            t.join()

    def test_usage_matches_contents(self) -> None:
        storage = MemoryStorage()
        self._hammer(storage)

        expected = sum(entry_size(k, storage.get_item(k)) for k in storage.keys())
        assert storage.used_bytes() == expected

    def test_file_matches_memory(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        storage = JsonFileStorage(path)
        self._hammer(storage, threads=4, rounds=40)

        on_disk = json.loads(path.read_text(encoding="utf-8"))
        assert on_disk == {k: storage.get_item(k) for k in storage.keys()}
