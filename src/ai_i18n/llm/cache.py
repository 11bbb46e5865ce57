"""
Content-addressed response cache for provider calls.

This module provides the ResponseCache used by the CallClient to skip
provider calls whose prompt was already answered. Entries are keyed by a
hash of the call kind and the prompt, expire after a time to live and are
evicted oldest-first once the cache holds more than ``max_entries``.

When persistence is enabled the cache is loaded from a single JSON snapshot
at construction and rewritten wholesale by ``persist()``. The cache is
advisory only: every read, write or persistence failure is logged and
degrades to a cache miss or an unsaved cache, it never reaches the caller.

Snapshot format:
    {
        "<kind>:<sha256>": {
            "data": ...,
            "created_at": 1700000000000,
            "expires_at": 1700086400000,
            "content_hash": "<md5 of data>"
        }
    }

Author: ai-i18n contributors
License: MIT
"""

import asyncio
import json
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..config.logging_config import get_logger
from ..config.settings import (
    CACHE_DIR,
    CACHE_FILE_NAME,
    CACHE_MAX_ENTRIES,
    CACHE_TTL_SECONDS,
)
from ..core.errors import CacheError
from ..core.string_utils import md5_hex, sha256_hex

# Module-level logger for consistent logging.
logger = get_logger(__name__)


def _now_ms() -> int:
    """Return the current time as milliseconds since the epoch."""
    return int(time.time() * 1000)


def _content_hash(data: Any) -> str:
    """Return the md5 of the canonical JSON form of a cached value."""
    return md5_hex(json.dumps(data, sort_keys=True, ensure_ascii=False))


@dataclass(frozen=True)
class CacheEntry:
    """One cached provider result with its lifetime (ms epoch values)."""
    data: Any
    created_at: int
    expires_at: int
    content_hash: str

    def is_expired(self, now: int) -> bool:
        return now > self.expires_at

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CacheEntry":
        return cls(
            data=raw["data"],
            created_at=int(raw["created_at"]),
            expires_at=int(raw["expires_at"]),
            content_hash=str(raw.get("content_hash", "")),
        )


class ResponseCache:
    """
    In-memory cache of parsed provider responses with optional persistence.

    Lookups and insertions are synchronous, so a check followed by a
    population never interleaves with another task. Only ``persist`` and
    the export/import helpers suspend.

    Args:
        cache_dir: Directory of the snapshot file.
        ttl_seconds: Default time to live of an entry.
        max_entries: Capacity bound enforced after every insertion.
        persistent: Load the snapshot at construction and allow persist().
        enabled: When False every lookup misses and insertions are ignored.
        clock: Callable returning the current time in ms since the epoch.

    Example:
        >>> cache = ResponseCache(persistent=False)
        >>> key = ResponseCache.cache_key("prompt text", "extraction")
        >>> cache.set(key, {"translations": {}})
        >>> cache.get(key)
        {'translations': {}}
    """

    def __init__(
        self,
        cache_dir: Union[str, Path] = CACHE_DIR,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        max_entries: int = CACHE_MAX_ENTRIES,
        persistent: bool = True,
        enabled: bool = True,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.cache_file = Path(cache_dir) / CACHE_FILE_NAME
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self.persistent = persistent
        self.enabled = enabled
        self._clock = clock or _now_ms
        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._dirty = False
        self._persist_lock = asyncio.Lock()

        if self.enabled and self.persistent:
            self._load()

    @classmethod
    def from_config(cls, config) -> "ResponseCache":
        """Create a cache from a CacheConfig."""
        return cls(
            cache_dir=config.cache_dir,
            ttl_seconds=config.ttl_seconds,
            max_entries=config.max_entries,
            persistent=config.persistent,
            enabled=config.enabled,
        )

    @staticmethod
    def cache_key(content: str, kind: str) -> str:
        """
        Return the content-addressed key of a call.

        Identical (kind, content) pairs always produce identical keys, which
        lets a persisted cache answer the same prompts in later runs.

        Args:
            content: The prompt sent to the provider.
            kind: Call kind, e.g. "extraction" or "translation".

        Returns:
            str: "<kind>:<sha256 of content>".
        """
        return f"{kind}:{sha256_hex(content)}"

    # =========================================================================
    # IN-MEMORY OPERATIONS
    # =========================================================================

    def get(self, key: str) -> Optional[Any]:
        """
        Return the cached data for a key, or None on a miss.

        Expired entries are evicted on access and reported as misses.
        """
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if entry.is_expired(self._clock()):
            # Expired entries are removed lazily on access.
            del self._entries[key]
            self._dirty = True
            self._misses += 1
            logger.debug(f"Cache entry expired: {key}")
            return None

        self._hits += 1
        return entry.data

    def has(self, key: str) -> bool:
        """Tell whether a live entry exists for the key."""
        if not self.enabled:
            return False

        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry.is_expired(self._clock()):
            del self._entries[key]
            self._dirty = True
            return False
        return True

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """
        Store data under a key.

        Args:
            key: Cache key, usually from cache_key().
            data: JSON-serializable value.
            ttl: Time to live in seconds. Defaults to the cache's TTL.
        """
        if not self.enabled:
            return

        now = self._clock()
        ttl_seconds = self.ttl_seconds if ttl is None else ttl
        try:
            content_hash = _content_hash(data)
        except (TypeError, ValueError) as e:
            logger.warning(f"Value for {key} is not cacheable: {e}")
            return

        # Re-inserting moves the key to the end so that eviction order follows
        # creation time even for refreshed entries.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            data=data,
            created_at=now,
            expires_at=now + int(ttl_seconds * 1000),
            content_hash=content_hash,
        )
        self._dirty = True
        self._enforce_capacity()

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        if self._entries.pop(key, None) is None:
            return False
        self._dirty = True
        return True

    def clear(self) -> None:
        """Remove every entry and reset the hit/miss counters."""
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        self._dirty = True

    def cleanup(self) -> int:
        """
        Remove every expired entry.

        Returns:
            int: Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            self._dirty = True
            logger.info(f"Removed {len(expired)} expired cache entries")
        return len(expired)

    def stats(self) -> Dict[str, Any]:
        """
        Get statistics about the cache contents and its hit rate.

        Returns:
            A dictionary with entries, hits, misses, hit_rate, oldest and
            newest creation times (ms epoch, None when empty) and the
            snapshot path.
        """
        lookups = self._hits + self._misses
        created = [entry.created_at for entry in self._entries.values()]
        return {
            "entries": len(self._entries),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
            "oldest": min(created) if created else None,
            "newest": max(created) if created else None,
            "cache_file": str(self.cache_file),
            "persistent": self.persistent,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def _enforce_capacity(self) -> None:
        """Evict oldest-created entries until the capacity bound holds."""
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return

        # sorted() is stable, so entries created in the same millisecond
        # are evicted in insertion order.
        oldest = sorted(self._entries.items(), key=lambda item: item[1].created_at)
        for key, _ in oldest[:overflow]:
            del self._entries[key]
        logger.debug(f"Evicted {overflow} cache entries (max {self.max_entries})")

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self) -> None:
        """Load the snapshot file, skipping expired and malformed entries."""
        if not self.cache_file.exists():
            return

        try:
            raw = json.loads(self.cache_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable cache file {self.cache_file}: {e}")
            return

        if not isinstance(raw, dict):
            logger.warning(f"Ignoring cache file {self.cache_file}: not a JSON object")
            return

        loaded = self._absorb(raw)
        logger.info(f"Loaded {loaded} cache entries from {self.cache_file}")

    def _absorb(self, raw: Dict[str, Any]) -> int:
        """
        Insert the live entries of a snapshot dictionary.

        Entries whose content_hash does not match their data are treated as
        malformed and skipped.

        Returns:
            int: Number of inserted entries.
        """
        now = self._clock()
        loaded = 0
        for key, value in raw.items():
            try:
                entry = CacheEntry.from_dict(value)
                if entry.content_hash != _content_hash(entry.data):
                    raise ValueError("content hash mismatch")
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Skipping malformed cache entry {key}")
                continue
            if entry.is_expired(now):
                continue
            self._entries[key] = entry
            loaded += 1
        self._enforce_capacity()
        return loaded

    def _snapshot(self) -> Dict[str, Any]:
        return {key: asdict(entry) for key, entry in self._entries.items()}

    @staticmethod
    def _write_snapshot(path: Path, snapshot: Dict[str, Any]) -> None:
        """
        Write a snapshot atomically through a temporary file.

        Raises:
            CacheError: If the snapshot cannot be serialized or written.
        """
        try:
            payload = json.dumps(snapshot, ensure_ascii=False)
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = path.with_suffix(path.suffix + ".tmp")
            temp_path.write_text(payload, encoding="utf-8")
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(f"Cannot write cache snapshot {path}", {"reason": str(e)}) from e

    async def persist(self) -> bool:
        """
        Rewrite the snapshot file if the cache changed since the last save.

        Returns:
            bool: True if the snapshot is up to date on disk.
        """
        if not (self.enabled and self.persistent):
            return False

        async with self._persist_lock:
            if not self._dirty:
                return True

            # The snapshot is taken before suspending, so later mutations
            # mark the cache dirty again instead of being half-written.
            snapshot = self._snapshot()
            self._dirty = False
            try:
                await asyncio.to_thread(self._write_snapshot, self.cache_file, snapshot)
            except CacheError as e:
                self._dirty = True
                logger.warning(f"Cache not saved to {self.cache_file}: {e}")
                return False

        logger.debug(f"Saved {len(snapshot)} cache entries to {self.cache_file}")
        return True

    async def export_cache(self, path: Union[str, Path]) -> bool:
        """Write the live entries to an arbitrary file. Returns success."""
        self.cleanup()
        try:
            await asyncio.to_thread(self._write_snapshot, Path(path), self._snapshot())
        except CacheError as e:
            logger.error(f"Error exporting cache to {path}: {e}")
            return False
        logger.info(f"Exported {len(self._entries)} cache entries to {path}")
        return True

    async def import_cache(self, path: Union[str, Path]) -> int:
        """
        Merge the live entries of a snapshot file into the cache.

        Returns:
            int: Number of imported entries (0 on any read error).
        """
        def _read() -> Any:
            return json.loads(Path(path).read_text(encoding="utf-8"))

        try:
            raw = await asyncio.to_thread(_read)
        except (OSError, ValueError) as e:
            logger.error(f"Error importing cache from {path}: {e}")
            return 0

        if not isinstance(raw, dict):
            logger.error(f"Error importing cache from {path}: not a JSON object")
            return 0

        imported = self._absorb(raw)
        if imported:
            self._dirty = True
        logger.info(f"Imported {imported} cache entries from {path}")
        return imported
