"""
TTL Cache
=========
Small in-process cache with an explicit time-to-live and key function.
Owned by the calling layer (provider, resolver); scoring code stays
cache-free.
"""
import hashlib
import json
import time
from typing import Any, Callable, Dict, Optional


def hashed_key(source: Any) -> str:
    normalized = json.dumps(source, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


class TTLCache:

    def __init__(
        self,
        ttl_seconds: float,
        key_fn: Callable[[Any], str] = hashed_key,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.key_fn = key_fn
        self._clock = clock
        self._entries: Dict[str, Dict[str, Any]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, source: Any) -> Optional[Any]:
        key = self.key_fn(source)
        entry = self._entries.get(key)
        if entry and self._clock() - entry["created_at"] < self.ttl_seconds:
            self.hits += 1
            return entry["value"]
        if entry:
            del self._entries[key]
        self.misses += 1
        return None

    def set(self, source: Any, value: Any) -> None:
        now = self._clock()
        self.prune(now)
        self._entries[self.key_fn(source)] = {"value": value, "created_at": now}

    def prune(self, now: Optional[float] = None) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock() if now is None else now
        expired = [k for k, e in self._entries.items() if now - e["created_at"] >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict:
        total = self.hits + self.misses
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total * 100, 1) if total > 0 else 0.0,
        }

    def __len__(self) -> int:
        return len(self._entries)
