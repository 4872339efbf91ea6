# src/vacancies/pipeline/cache.py
"""
In-memory query cache with an explicit staleness window per query.

Keys are tuples such as ("vacancy", "123", "nl"). A value is served until its
TTL runs out; after that the next caller fetches again. Concurrent callers of
the same key share one fetch, and failures are never cached. The shared fetch
is cancelled only once every caller waiting on it has been cancelled.
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

CacheKey = Tuple[Hashable, ...]


@dataclass
class _Entry:
    value: Any
    expires_at: float


class QueryCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[CacheKey, _Entry] = {}
        self._inflight: Dict[CacheKey, "asyncio.Future[Any]"] = {}
        self._waiters: Dict["asyncio.Future[Any]", int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: CacheKey) -> Optional[Any]:
        """The cached value if it is still fresh, else None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.value

    async def get_or_fetch(self, key: CacheKey, ttl: float, fetch: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at > self._clock():
            logger.debug("Cache hit %s", key)
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Cache miss %s", key)
            self.prune()
            task = asyncio.ensure_future(fetch())
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._settle(key, ttl, t))
        self._waiters[task] = self._waiters.get(task, 0) + 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._waiters[task] == 1 and not task.done():
                task.cancel()
            raise
        finally:
            self._waiters[task] -= 1
            if not self._waiters[task]:
                del self._waiters[task]

    def _settle(self, key: CacheKey, ttl: float, task: "asyncio.Future[Any]") -> None:
        if self._inflight.get(key) is not task:
            return  # invalidated while in flight
        del self._inflight[key]
        if task.cancelled() or task.exception() is not None:
            return
        self._entries[key] = _Entry(task.result(), self._clock() + ttl)

    def prune(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self._clock()
        stale = [k for k, e in self._entries.items() if e.expires_at <= now]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def invalidate(self, prefix: CacheKey = ()) -> int:
        """Drop every key starting with `prefix` (everything by default)."""
        n = len(prefix)
        stale = [k for k in self._entries if k[:n] == prefix]
        for k in stale:
            del self._entries[k]
        for k in [k for k in self._inflight if k[:n] == prefix]:
            del self._inflight[k]
        return len(stale)
