"""
Result cache for parsed documents.

Entries are (expires_at, payload) pairs keyed by a hash of the HTML content
and the parsing options. Payloads are deep-copied on the way in and on the way
out, so nothing a caller does to a returned result reaches a stored entry.
"""

import hashlib
import threading
import time
from collections import OrderedDict
from datetime import timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from .models import ParsingOptions, ProductSpecification

CACHE_VERSION = "spec-extract-v1"

Payload = Tuple[ProductSpecification, ...]


def make_cache_key(html: str, options: ParsingOptions) -> str:
    h = hashlib.sha256()
    h.update(CACHE_VERSION.encode("utf-8"))
    h.update(b"\0")
    h.update(html.encode("utf-8", errors="ignore"))
    h.update(b"\0")
    h.update(options.model_dump_json().encode("utf-8"))
    return h.hexdigest()


def ttl_for_quality(average_quality: float, max_expiry: timedelta) -> timedelta:
    """Better-scoring parses stay cached longer."""
    if average_quality > 0.8:
        ttl = max_expiry
    elif average_quality > 0.6:
        ttl = timedelta(hours=2)
    else:
        ttl = timedelta(hours=1)
    return min(ttl, max_expiry)


def _detached(specs: Sequence[ProductSpecification]) -> Payload:
    return tuple(s.model_copy(deep=True) for s in specs)


class ResultCache:
    """Minimal interface the parser relies on."""

    def get(self, key: str) -> Optional[Payload]:
        raise NotImplementedError

    def set(self, key: str, specs: Sequence[ProductSpecification], ttl: timedelta,
            max_entries: Optional[int] = None) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError


class InMemoryResultCache(ResultCache):
    """LRU map with per-entry expiry, safe to share between threads."""

    def __init__(self, max_entries: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Payload]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Payload]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, payload = item
            if expires_at <= self._clock():
                self._entries.pop(key, None)
                return None
            self._entries.move_to_end(key)
        return _detached(payload)

    def set(self, key: str, specs: Sequence[ProductSpecification], ttl: timedelta,
            max_entries: Optional[int] = None) -> None:
        limit = max(1, int(max_entries)) if max_entries else self.max_entries
        limit = min(limit, self.max_entries)
        expires_at = self._clock() + max(1.0, ttl.total_seconds())
        payload = _detached(specs)
        with self._lock:
            self._entries[key] = (expires_at, payload)
            self._entries.move_to_end(key)
            while len(self._entries) > limit:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)
