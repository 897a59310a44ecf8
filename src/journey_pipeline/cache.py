"""In-memory query cache for the analytics accessors.

Each cache key holds the result of one async fetcher. An entry is fresh for
its stale time; after that it is still served, while a background refetch
replaces it. Failed fetches are retried with a capped exponential backoff,
and concurrent requests for one key share a single in-flight fetch.

Cache entry lifecycle::

    (missing) --fetch--> success --stale_time--> stale --refetch--> success
                    \\                                  \\
                     --> error (QueryError raised)       --> kept on failure

Timing is read from an injectable clock and retries wait on an injectable
sleep, so tests can drive the cache without real delays.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from journey_analytics.configs import CacheSettings

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]


class QueryStatus(StrEnum):
    """State of the last fetch of a cache entry."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class QueryError(Exception):
    """A fetch that still failed after every retry.

    Attributes:
        key: Cache key of the failed query
        attempts: Number of fetch attempts made
        message: Description of the last failure
    """

    key: str
    attempts: int
    message: str

    def __str__(self) -> str:
        """Format error message."""
        return (
            f"Query '{self.key}' failed after {self.attempts} "
            f"attempt(s): {self.message}"
        )


@dataclass
class CacheEntry:
    """Cached data and bookkeeping for one key."""

    key: str
    stale_time: float
    last_accessed: float
    data: Any = None
    status: QueryStatus = QueryStatus.PENDING
    updated_at: float | None = None
    invalidated: bool = False
    error: BaseException | None = field(default=None, repr=False)
    fetch_count: int = 0

    @property
    def has_data(self) -> bool:
        """True once a fetch has succeeded or data was set directly."""
        return self.updated_at is not None

    def is_stale(self, now: float) -> bool:
        """True when the data is missing, invalidated or too old."""
        if not self.has_data or self.invalidated:
            return True
        return now - self.updated_at >= self.stale_time


class QueryCache:
    """Key-based async cache with retry and in-flight de-duplication."""

    def __init__(
        self,
        settings: CacheSettings | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize an empty cache.

        Args:
            settings: Stale/gc times and retry policy
            clock: Returns the current time in seconds
            sleep: Awaitable used to wait between retries
        """
        self.settings = settings or CacheSettings()
        self._clock = clock
        self._sleep = sleep
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._stats = {
            "hits": 0,
            "stale_hits": 0,
            "misses": 0,
            "fetches": 0,
            "failures": 0,
        }

    # Fetching ---------------------------------------------------------------

    def stale_time_for(
        self, key: str, stale_time: float | None = None
    ) -> float:
        """Resolve the stale time of a key.

        An explicit value wins, then the per-key setting, then the default.
        """
        if stale_time is not None:
            return stale_time
        return self.settings.stale_times.get(key, self.settings.stale_time)

    def retry_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (attempt counts from 0).

        With the default settings the sequence is 1, 2, 4, ... seconds,
        capped at 30.
        """
        return min(
            self.settings.retry_base_delay * 2**attempt,
            self.settings.retry_max_delay,
        )

    async def fetch(
        self,
        key: str,
        fetcher: Fetcher,
        stale_time: float | None = None,
    ) -> Any:  # noqa: ANN401
        """Return the data for a key, fetching it when needed.

        - Fresh entry: cached data is returned (hit).
        - Stale entry: cached data is returned and a background refetch
          is started (stale hit).
        - Missing or invalidated entry: waits for a fetch (miss).

        Args:
            key: Cache key
            fetcher: Coroutine function producing the data
            stale_time: Seconds the data stays fresh (default per key)

        Raises:
            QueryError: If the fetch fails on every attempt
        """
        now = self._clock()
        entry = self._entries.get(key)
        if stale_time is not None and entry is not None:
            entry.stale_time = stale_time

        if entry is not None and entry.has_data and not entry.invalidated:
            entry.last_accessed = now
            if not entry.is_stale(now):
                self._stats["hits"] += 1
                logger.debug("Cache hit for %s", key)
                return entry.data

            self._stats["stale_hits"] += 1
            logger.debug("Stale cache hit for %s, refetching", key)
            self._refetch_in_background(key, fetcher, stale_time)
            return entry.data

        self._stats["misses"] += 1
        logger.debug("Cache miss for %s", key)
        task = self._in_flight.get(key) or self._start_fetch(
            key, fetcher, stale_time
        )
        # Shielded so a cancelled caller does not cancel the shared fetch
        return await asyncio.shield(task)

    def _start_fetch(
        self,
        key: str,
        fetcher: Fetcher,
        stale_time: float | None,
    ) -> asyncio.Task:
        task = asyncio.create_task(
            self._run_fetch(key, fetcher, stale_time),
            name=f"query:{key}",
        )
        self._in_flight[key] = task
        task.add_done_callback(lambda t: self._finish(key, t))
        return task

    def _finish(self, key: str, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Marks the exception as retrieved when no caller awaits it
            task.exception()

    def _refetch_in_background(
        self,
        key: str,
        fetcher: Fetcher,
        stale_time: float | None,
    ) -> None:
        if key in self._in_flight:
            return
        task = self._start_fetch(key, fetcher, stale_time)
        task.add_done_callback(_log_background_failure)

    async def _run_fetch(
        self,
        key: str,
        fetcher: Fetcher,
        stale_time: float | None,
    ) -> Any:  # noqa: ANN401
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(
                key=key,
                stale_time=self.stale_time_for(key, stale_time),
                last_accessed=self._clock(),
            )
            self._entries[key] = entry

        max_attempts = self.settings.retry + 1
        attempts = 0
        last_error: Exception | None = None

        while attempts < max_attempts:
            attempts += 1
            entry.fetch_count += 1
            self._stats["fetches"] += 1
            try:
                data = await fetcher()
            except QueryError as e:
                # Already retried by the nested query
                last_error = e
                break
            except Exception as e:  # noqa: BLE001
                last_error = e
                if attempts < max_attempts:
                    delay = self.retry_delay(attempts - 1)
                    logger.warning(
                        "Fetch for %s failed (attempt %d/%d): %s; "
                        "retrying in %.1fs",
                        key,
                        attempts,
                        max_attempts,
                        e,
                        delay,
                    )
                    await self._sleep(delay)
            else:
                entry.data = data
                entry.status = QueryStatus.SUCCESS
                entry.updated_at = self._clock()
                entry.invalidated = False
                entry.error = None
                logger.debug(
                    "Fetched %s in %d attempt(s)", key, attempts
                )
                return data

        entry.status = QueryStatus.ERROR
        entry.error = last_error
        self._stats["failures"] += 1
        logger.error(
            "Fetch for %s failed after %d attempt(s): %s",
            key,
            attempts,
            last_error,
        )
        raise QueryError(
            key=key, attempts=attempts, message=str(last_error)
        ) from last_error

    # Entry management -------------------------------------------------------

    def invalidate(self, key: str | None = None) -> int:
        """Mark one entry (or all entries) as needing a refetch.

        The next fetch of an invalidated key waits for fresh data.

        Args:
            key: Key to invalidate, or None for every entry

        Returns:
            Number of entries invalidated
        """
        if key is not None:
            entries = [self._entries[key]] if key in self._entries else []
        else:
            entries = list(self._entries.values())
        for entry in entries:
            entry.invalidated = True

        logger.info(
            "Invalidated %s",
            key if key is not None else f"all {len(entries)} entries",
        )
        return len(entries)

    def remove(self, key: str) -> bool:
        """Drop an entry. Returns True if it existed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry.

        Fetches already in flight still resolve for their callers but their
        results are not cached.
        """
        self._entries.clear()
        logger.info("Query cache cleared")

    def get_data(self, key: str) -> Any:  # noqa: ANN401
        """Cached data for a key, or None."""
        entry = self._entries.get(key)
        if entry is None or not entry.has_data:
            return None
        return entry.data

    def set_data(self, key: str, data: Any) -> None:  # noqa: ANN401
        """Store data for a key as if it had just been fetched."""
        now = self._clock()
        entry = self._entries.get(key)
        if entry is None:
            entry = CacheEntry(
                key=key,
                stale_time=self.stale_time_for(key),
                last_accessed=now,
            )
            self._entries[key] = entry
        entry.data = data
        entry.status = QueryStatus.SUCCESS
        entry.updated_at = now
        entry.invalidated = False
        entry.error = None

    def is_stale(self, key: str) -> bool:
        """True when the key has no usable fresh data."""
        entry = self._entries.get(key)
        return entry is None or entry.is_stale(self._clock())

    def get_state(self, key: str) -> dict[str, Any] | None:
        """Status of one entry, or None if the key is not cached."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        return self._describe(entry, self._clock())

    def collect_garbage(self) -> list[str]:
        """Evict entries not accessed within the gc time.

        Entries with a fetch in flight are kept.

        Returns:
            Keys that were evicted
        """
        now = self._clock()
        evicted = [
            key
            for key, entry in self._entries.items()
            if now - entry.last_accessed >= self.settings.gc_time
            and key not in self._in_flight
        ]
        for key in evicted:
            del self._entries[key]
        if evicted:
            logger.info("Evicted %d unused cache entries", len(evicted))
        return evicted

    def list_entries(self) -> list[dict[str, Any]]:
        """Describe every cached entry.

        Returns:
            List of dicts with key, status, age, stale and fetch info
        """
        now = self._clock()
        return [
            self._describe(entry, now) for entry in self._entries.values()
        ]

    def _describe(self, entry: CacheEntry, now: float) -> dict[str, Any]:
        return {
            "key": entry.key,
            "status": str(entry.status),
            "age": (
                now - entry.updated_at
                if entry.updated_at is not None
                else None
            ),
            "stale_time": entry.stale_time,
            "is_stale": entry.is_stale(now),
            "is_invalidated": entry.invalidated,
            "is_fetching": entry.key in self._in_flight,
            "fetch_count": entry.fetch_count,
            "error": str(entry.error) if entry.error is not None else None,
        }

    async def wait_for_pending(self) -> None:
        """Wait until every in-flight fetch has finished."""
        while self._in_flight:
            await asyncio.gather(
                *self._in_flight.values(), return_exceptions=True
            )

    # Statistics -------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with hits, stale_hits, misses, fetches, failures, total
            (lookups) and hit_rate (hits of either kind over lookups)
        """
        served = self._stats["hits"] + self._stats["stale_hits"]
        total = served + self._stats["misses"]
        return {
            **self._stats,
            "total": total,
            "hit_rate": served / total if total > 0 else 0.0,
        }

    def reset_stats(self) -> None:
        """Reset cache statistics."""
        self._stats = dict.fromkeys(self._stats, 0)


def _log_background_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.warning(
            "Background refetch failed, keeping stale data: %s", error
        )
