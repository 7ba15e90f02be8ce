"""Read-through TTL cache with single-flight fills.

READ-THROUGH
--------------
A scrape asks the cache first.  On a miss the cache runs the fill
(fetch statuses from Traewelling, aggregate them), stores the result
with an expiry and hands it back.  Until the entry expires, every other
scrape is answered from memory and Traewelling sees no extra traffic.

SINGLE-FLIGHT
---------------
Prometheus setups often scrape one target from several servers at once.
With a naive cache, N scrapes arriving on a cold cache would start N
identical upstream requests.  Here the first miss starts the fill as an
asyncio Task and records it as in flight; later misses await that same
task.  Everybody receives the same value, or the same exception.

The fill task is awaited through asyncio.shield(): if the scraper that
started it disconnects, its request is cancelled but the shared fill keeps
running for the scrapes still waiting on it.

FAILURES ARE NOT CACHED
-------------------------
When the fill raises, nothing is stored.  The waiters of that fill all get
the error; the next scrape after that starts a fresh fill.  A fill that
fails after all of its waiters were cancelled is still consumed, so
asyncio does not log "Task exception was never retrieved" for it.

Entries are kept in process memory.  There is only one feed, so the
exporter uses a single key (SNAPSHOT_KEY).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SNAPSHOT_KEY = "active-statuses"


def _retrieve_exception(task: asyncio.Task[object]) -> None:
    # Every waiter may be gone by the time a fill fails; mark the exception
    # retrieved so asyncio does not report it when the task is collected.
    if not task.cancelled():
        task.exception()


@dataclass(frozen=True)
class _Entry(Generic[T]):
    value: T
    expires_at: float


class SnapshotCache(Generic[T]):
    def __init__(
        self,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not ttl_seconds > 0:
            raise ValueError(f"ttl_seconds must be greater than zero (got {ttl_seconds!r})")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry[T]] = {}
        self._inflight: dict[str, asyncio.Task[T]] = {}

    def peek(self, key: str) -> T | None:
        """Return the cached value if it is still valid, without filling."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    async def get_or_fill(self, key: str, fill: Callable[[], Awaitable[T]]) -> T:
        value = self.peek(key)
        if value is not None:
            logger.debug("cache hit key=%s", key)
            return value

        task = self._inflight.get(key)
        if task is None:
            logger.debug("cache miss key=%s, filling", key)
            task = asyncio.ensure_future(self._fill(key, fill))
            task.add_done_callback(_retrieve_exception)
            self._inflight[key] = task
        else:
            logger.debug("cache miss key=%s, joining in-flight fill", key)
        return await asyncio.shield(task)

    async def _fill(self, key: str, fill: Callable[[], Awaitable[T]]) -> T:
        try:
            value = await fill()
            # TTL runs from fill completion, not from the first miss
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + self.ttl_seconds)
            return value
        finally:
            self._inflight.pop(key, None)

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every stored entry.  In-flight fills still complete and store."""
        self._entries.clear()
