# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""In-memory response cache with time-based expiry."""

import hashlib
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS: float = 3600.0


@dataclass(frozen=True)
class _CacheEntry:
    value: str
    stored_at: float


def fingerprint(*parts: str) -> str:
    """Return a deterministic MD5 fingerprint of the given text parts."""
    digest = hashlib.md5()  # noqa: S324
    for part in parts:
        digest.update(part.encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


class ResponseCache:
    """Cache model responses by fingerprint for a fixed time-to-live.

    Concurrent misses for the same key are not coalesced; each caller issues
    its own request and the last writer wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: Entry lifetime in seconds.
            clock: Monotonic time source.

        Raises:
            ValueError: If ``ttl_seconds`` is negative.
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        """Return the cached value for ``key`` unless missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self._ttl_seconds:
                del self._entries[key]
                logger.debug(f"Cache entry expired (key={key})")
                return None
            return entry.value

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, stored_at=self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
