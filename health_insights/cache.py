from __future__ import annotations

import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Protocol

CACHE_VERSION = "v1"
FINGERPRINT_DATA_CHARS = 100


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    def now(self) -> float:
        return time.monotonic()


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    created_at: float
    ttl_seconds: float


def fingerprint(request: str, data: Any) -> str:
    """Lossy identifier over the request and a prefix of the serialized data."""
    serialized = json.dumps(data, ensure_ascii=False, default=str, separators=(",", ":"))
    token = f"{request}-{serialized[:FINGERPRINT_DATA_CHARS]}"
    return sha256(token.encode("utf-8")).hexdigest()


def cache_key(kind: str, request: str, data: Any) -> str:
    return f"cache:{CACHE_VERSION}:{kind}:{fingerprint(request, data)}"


class ResultCache:
    """
    Thread-safe in-memory result cache.

    Entries expire lazily: a read after the TTL drops the entry and misses. When
    max_entries is set the least recently used entry is evicted on write.
    """

    def __init__(self, clock: Clock | None = None, max_entries: int | None = 512) -> None:
        self._clock = clock or SystemClock()
        self._max_entries = max_entries
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock.now() - entry.created_at > entry.ttl_seconds:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        entry = CacheEntry(value=value, created_at=self._clock.now(), ttl_seconds=ttl_seconds)
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    self._entries.popitem(last=False)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
