"""
ttl_cache.py

Short-TTL in-memory cache for download-link lookups.

Expiry is lazy: an entry older than the TTL is evicted when it is read. There
is no size bound; growth is limited by the number of distinct titles requested
during one process lifetime.
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass
class CacheEntry:
    payload: Any
    fetched_at: float


def download_cache_key(media_type: str, tmdb_id: str, season: Optional[str] = None, episode: Optional[str] = None) -> str:
    if media_type == "movie":
        return f"movie:{tmdb_id}"
    return f"tv:{tmdb_id}:{season}:{episode}"


class TTLCache:
    def __init__(self, ttl_seconds: float = 3600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(payload=payload, fetched_at=self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries
