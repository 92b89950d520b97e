"""
Namespaced, expiring cache over a quota-limited key/value medium.

Every data lookup in the service goes through one CacheEngine:

    cache = CacheEngine(JsonFileStorage(STORAGE_PATH))
    cached = cache.get("news", "country-us-page-1", decode=NewsPage.from_dict)
    if cached is None:
        page = fetch(...)
        cache.set("news", "country-us-page-1", asdict(page))

Storage keys are "<prefix><namespace>-<logical key>". The logical key is
caller text and is only ever concatenated and prefix-matched.

The cache is best-effort. get() returns None on a miss, on expiry and on a
corrupt entry; set() returns False when it declines or fails to store. No
public method raises.

When the medium reports the quota is full, set() runs one eviction cascade
(region entries, then expired entries, then the largest entries) and retries
the write once.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .config import (
    CACHE_PREFIX,
    DEFAULT_TTL_MS,
    FALLBACK_TTL_MS,
    LARGEST_EVICTION_COUNT,
    MAX_ENTRY_BYTES,
)
from .models import CacheEntry
from .storage import KeyValueStorage, WriteResult

logger = logging.getLogger(__name__)

CACHE_NAMESPACES = ("countries", "news", "weather", "crypto", "images", "jokes", "sports")

# Region-filtered country lists are subsets of the cached full directory
REGION_NAMESPACE = "countries"
REGION_KEY_PREFIX = "region-"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


@dataclass
class NamespaceStats:
    entries: int = 0
    bytes: int = 0
    expired: int = 0


class CacheEngine:
    """
    Cache engine shared by every data lookup.

    Construct once at app startup and pass the instance around. The
    constructor sweeps entries left expired by a previous session.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        prefix: str = CACHE_PREFIX,
        clock: Callable[[], int] = _now_ms,
        max_entry_bytes: int = MAX_ENTRY_BYTES,
        evict_count: int = LARGEST_EVICTION_COUNT,
        sweep_on_start: bool = True,
    ):
        self._storage = storage
        self._prefix = prefix
        self._clock = clock
        self._max_entry_bytes = max_entry_bytes
        self._evict_count = evict_count

        if sweep_on_start:
            removed = self.clear_expired()
            if removed:
                logger.info(f"Cache: startup sweep removed {removed} expired entries")

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def storage_key(self, namespace: str, key: str) -> str:
        return f"{self._prefix}{namespace}-{key}"

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def get(
        self,
        namespace: str,
        key: str,
        decode: Optional[Callable[[Any], Any]] = None,
    ) -> Optional[Any]:
        """
        Return the cached payload if present and fresh, else None.

        decode, if given, turns the stored payload into the caller's type.
        Anything it raises marks the entry as corrupt: the key is removed
        and None is returned.
        """
        storage_key = self.storage_key(namespace, key)
        try:
            raw = self._storage.get_item(storage_key)
            if raw is None:
                return None

            try:
                entry = CacheEntry.from_json(raw)
            except (TypeError, ValueError) as exc:
                logger.warning(f"Cache: dropping unreadable entry {storage_key}: {exc}")
                self._storage.remove_item(storage_key)
                return None

            if entry.is_expired(self._clock()):
                self._storage.remove_item(storage_key)
                return None

            if decode is None:
                return entry.data
            try:
                return decode(entry.data)
            except Exception as exc:
                logger.warning(f"Cache: dropping entry {storage_key} with unexpected shape: {exc}")
                self._storage.remove_item(storage_key)
                return None

        except Exception as exc:
            logger.warning(f"Cache: failed to read {storage_key}: {exc}")
            return None

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def resolve_ttl(self, namespace: str, ttl_ms: Optional[int] = None) -> int:
        if ttl_ms is not None and ttl_ms > 0:
            return ttl_ms
        return DEFAULT_TTL_MS.get(namespace, FALLBACK_TTL_MS)

    def set(self, namespace: str, key: str, data: Any, ttl_ms: Optional[int] = None) -> bool:
        """
        Store data under namespace/key. Returns True if stored, False if skipped.

        Payloads over the size ceiling are never written. A quota failure
        triggers one eviction cascade and one retry; any other failure is
        logged and dropped.
        """
        storage_key = self.storage_key(namespace, key)
        ttl = self.resolve_ttl(namespace, ttl_ms)

        try:
            serialized = self._serialize(storage_key, data, ttl)
            if serialized is None:
                return False

            if namespace == REGION_NAMESPACE and key.startswith(REGION_KEY_PREFIX):
                self.clear_region_entries()

            result = self._storage.set_item(storage_key, serialized)
            if result is WriteResult.OK:
                return True

            if result is not WriteResult.QUOTA_EXCEEDED:
                logger.warning(f"Cache: storage write failed for {storage_key}")
                return False

            logger.info(f"Cache: quota exceeded writing {storage_key}, evicting")
            self._evict(namespace)

            # Fresh timestamp for the retry, and the size ceiling applies again
            serialized = self._serialize(storage_key, data, ttl)
            if serialized is None:
                return False
            if self._storage.set_item(storage_key, serialized) is WriteResult.OK:
                return True

            logger.debug(f"Cache: still no room for {storage_key} after eviction, skipping")
            return False

        except Exception as exc:
            logger.warning(f"Cache: failed to write {storage_key}: {exc}")
            return False

    def _serialize(self, storage_key: str, data: Any, ttl: int) -> Optional[str]:
        try:
            serialized = CacheEntry(data=data, written_at=self._clock(), ttl_ms=ttl).to_json()
        except (TypeError, ValueError) as exc:
            logger.warning(f"Cache: payload for {storage_key} is not serializable: {exc}")
            return None

        size = _byte_length(serialized)
        if size > self._max_entry_bytes:
            logger.warning(
                f"Cache: entry too large ({size / 1024 / 1024:.2f}MB), "
                f"skipping cache for {storage_key}"
            )
            return None
        return serialized

    # ------------------------------------------------------------------
    # Eviction
    # ------------------------------------------------------------------

    def _evict(self, namespace: str) -> None:
        """Run every cascade step once, in order, whether or not earlier steps freed space."""
        if namespace == REGION_NAMESPACE:
            self.clear_region_entries()
        self.clear_expired()
        self.evict_largest()

    def _cache_keys(self, prefix: Optional[str] = None) -> List[str]:
        prefix = prefix or self._prefix
        return [k for k in self._storage.keys() if k.startswith(prefix)]

    def _remove_matching(self, prefix: str) -> int:
        keys = self._cache_keys(prefix)
        self._storage.remove_items(keys)
        return len(keys)

    def clear_region_entries(self) -> int:
        """Remove every region-filtered country list."""
        try:
            return self._remove_matching(self.storage_key(REGION_NAMESPACE, REGION_KEY_PREFIX))
        except Exception as exc:
            logger.warning(f"Cache: region sweep failed: {exc}")
            return 0

    def clear_expired(self) -> int:
        """Remove expired and unreadable entries across all namespaces."""
        try:
            now = self._clock()
            stale = []
            for key in self._cache_keys():
                raw = self._storage.get_item(key)
                if raw is None:
                    continue
                try:
                    expired = CacheEntry.from_json(raw).is_expired(now)
                except (TypeError, ValueError):
                    expired = True
                if expired:
                    stale.append(key)
            self._storage.remove_items(stale)
            return len(stale)
        except Exception as exc:
            logger.warning(f"Cache: expired sweep failed: {exc}")
            return 0

    def evict_largest(self, count: Optional[int] = None) -> int:
        """Remove the `count` largest entries regardless of freshness."""
        count = self._evict_count if count is None else count
        try:
            sizes = []
            for key in self._cache_keys():
                raw = self._storage.get_item(key)
                if raw is not None:
                    sizes.append((_byte_length(raw), key))

            sizes.sort(reverse=True)
            victims = sizes[:count]
            self._storage.remove_items([key for _, key in victims])
            for size, key in victims:
                logger.debug(f"Cache: evicted {key} ({size} bytes)")
            return len(victims)
        except Exception as exc:
            logger.warning(f"Cache: largest-entry sweep failed: {exc}")
            return 0

    # ------------------------------------------------------------------
    # Invalidation and inspection
    # ------------------------------------------------------------------

    def clear(self, namespace: Optional[str] = None) -> int:
        """
        Remove every entry in `namespace`, or every cache entry if omitted.
        Returns the number of keys removed.
        """
        prefix = self.storage_key(namespace, "") if namespace else self._prefix
        try:
            removed = self._remove_matching(prefix)
        except Exception as exc:
            logger.warning(f"Cache: failed to clear {namespace or 'all namespaces'}: {exc}")
            return 0
        logger.info(f"Cache: cleared {removed} entries from {namespace or 'all namespaces'}")
        return removed

    def stats(self) -> Dict[str, NamespaceStats]:
        """Entry count, byte total and expired count per known namespace."""
        result = {ns: NamespaceStats() for ns in CACHE_NAMESPACES}
        try:
            now = self._clock()
            for key in self._cache_keys():
                raw = self._storage.get_item(key)
                if raw is None:
                    continue
                namespace = next(
                    (ns for ns in CACHE_NAMESPACES if key.startswith(self.storage_key(ns, ""))),
                    None,
                )
                if namespace is None:
                    continue
                stats = result[namespace]
                stats.entries += 1
                stats.bytes += _byte_length(raw)
                try:
                    if CacheEntry.from_json(raw).is_expired(now):
                        stats.expired += 1
                except (TypeError, ValueError):
                    stats.expired += 1
        except Exception as exc:
            logger.warning(f"Cache: failed to collect stats: {exc}")
        return result
