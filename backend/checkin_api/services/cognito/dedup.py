# checkin_api/services/cognito/dedup.py
from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from cachetools import TTLCache

DEFAULT_TTL_SECONDS = 300
MAX_ENTRIES = 10_000


class TTLDedup:
    """
    Remembers `endpoint::entry_id` keys for `ttl` seconds.

    Process-local: a restart or a second worker process starts empty.
    Sync routes run in a threadpool, so check-and-mark holds a lock.
    """

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic,
                 maxsize: int = MAX_ENTRIES):
        self.ttl = ttl
        self._seen: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl, timer=clock)
        self._lock = threading.Lock()

    @staticmethod
    def key(endpoint: str, entry_id: str) -> str:
        return f"{endpoint}::{entry_id}"

    def check_and_mark(self, endpoint: str, entry_id: Optional[str]) -> bool:
        """True when this entry was already seen within the TTL. Missing ids always pass."""
        if not entry_id:
            return False
        k = self.key(endpoint, entry_id)
        with self._lock:
            if k in self._seen:
                return True
            self._seen[k] = True
            return False

    def forget(self, endpoint: str, entry_id: Optional[str]) -> None:
        """Drops a mark so a redelivery of a failed attempt is processed again."""
        if not entry_id:
            return
        with self._lock:
            self._seen.pop(self.key(endpoint, entry_id), None)

    def clear(self) -> None:
        with self._lock:
            self._seen.clear()

    def __len__(self) -> int:
        with self._lock:
            self._seen.expire()
            return len(self._seen)
