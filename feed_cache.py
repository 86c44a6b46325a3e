from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from threading import Lock


@dataclass
class _FeedEntry:
    rows: list[dict]
    expires_at: datetime
    fetched_at: datetime


class FeedCache:
    """TTL cache of upstream feature rows keyed by request URL, bounded in size."""

    def __init__(self, max_entries: int = 128) -> None:
        self._entries: OrderedDict[str, _FeedEntry] = OrderedDict()
        self._max_entries = max_entries
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self._expirations = 0
        self._evictions = 0

    def lookup(self, url: str) -> tuple[list[dict] | None, datetime | None]:
        now = datetime.now(UTC)
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                self._misses += 1
                return None, None
            if entry.expires_at <= now:
                del self._entries[url]
                self._expirations += 1
                self._misses += 1
                return None, None
            self._entries.move_to_end(url)
            self._hits += 1
            return entry.rows, entry.fetched_at

    def store(self, url: str, rows: list[dict], ttl_seconds: int) -> None:
        if ttl_seconds <= 0 or self._max_entries <= 0:
            return
        fetched_at = datetime.now(UTC)
        with self._lock:
            self._entries[url] = _FeedEntry(
                rows=rows,
                expires_at=fetched_at + timedelta(seconds=ttl_seconds),
                fetched_at=fetched_at,
            )
            self._entries.move_to_end(url)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)
                self._evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, float | int]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "max_entries": self._max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "expirations": self._expirations,
                "evictions": self._evictions,
                "hit_ratio": round(self._hits / lookups, 3) if lookups else 0.0,
            }
