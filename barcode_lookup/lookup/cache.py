"""
Result Cache Module
===================

In-memory, TTL-bounded memo of successful lookups.

Keys are ``(barcode, source)`` for per-source results, or
``(barcode, "*")`` for the best result across all enabled sources.
An entry is served strictly while ``now < inserted_at + ttl``.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from barcode_lookup.core.schema import ProductInfo

logger = logging.getLogger(__name__)

ANY_SOURCE = "*"

CacheKey = tuple[str, str]


@dataclass(frozen=True)
class CacheEntry:
    """A cached product with its insertion time and lifetime."""

    key: CacheKey
    value: ProductInfo
    inserted_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now < self.inserted_at + self.ttl


class ResultCache:
    """
    TTL cache shared by every resolution in the process.

    All operations are synchronous and never await, so under asyncio
    each read or write is atomic with respect to other tasks. Writes
    overwrite unconditionally (last write wins).

    Args:
        ttl_seconds: Lifetime of an entry
        max_entries: Optional LRU bound; None means unbounded
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        ttl_seconds: float = 24 * 60 * 60,
        max_entries: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be >= 1 or None, got {max_entries}")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(barcode: str, source: str | None = None) -> CacheKey:
        return (barcode, source or ANY_SOURCE)

    def get(self, barcode: str, source: str | None = None) -> ProductInfo | None:
        """
        Return the cached product for a key if it is still fresh.

        Expired entries are dropped on access and never served.
        """
        key = self.make_key(barcode, source)
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None

        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            self.misses += 1
            logger.debug(f"Cache entry expired for {key}")
            return None

        self._entries.move_to_end(key)
        self.hits += 1
        return entry.value

    def set(self, barcode: str, product: ProductInfo, source: str | None = None) -> None:
        """Store a product, replacing any existing entry for the same key."""
        key = self.make_key(barcode, source)
        self._entries[key] = CacheEntry(
            key=key,
            value=product,
            inserted_at=self._clock(),
            ttl=self.ttl_seconds,
        )
        self._entries.move_to_end(key)

        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache evicted least recently used entry {evicted}")

    def purge_expired(self) -> int:
        """
        Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if not entry.is_fresh(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        """Remove all entries and reset the counters."""
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        entry = self._entries.get(key)  # type: ignore[arg-type]
        return entry is not None and entry.is_fresh(self._clock())
