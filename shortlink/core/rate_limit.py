"""
Rate Limiting

This module provides per-client rate limiting for the create endpoint.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Sliding window: each client keeps the timestamps of its admitted requests
  inside the trailing window; a request is admitted while fewer than
  `max_requests` remain after pruning
- Denied requests are not recorded, so a throttled client recovers as soon
  as its oldest admitted request leaves the window
- Clients whose window has emptied are dropped from the table, so memory
  tracks active clients rather than every client ever seen
- Narrow async interface: everything awaits `admit(client_id) -> bool`, so
  the in-memory limiter and the storage-backed limiter are interchangeable
  and a networked storage never blocks the event loop

Known Limitation:
- SlidingWindowRateLimiter is process-local. Counters reset on restart and
  are not shared between horizontally scaled instances. Configure
  RATE_LIMIT_STORAGE_URI (e.g. redis://host:6379) to share counters through
  the `limits` moving-window strategy instead.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Protocol

from limits import RateLimitItemPerSecond
from limits.aio.strategies import MovingWindowRateLimiter
from limits.storage import storage_from_string

from shortlink.core.setting import Settings

logger = logging.getLogger(__name__)

ASYNC_SCHEME_PREFIX = "async+"


class RateLimiter(Protocol):
    """Anything that can decide whether a client may make another request."""

    async def admit(self, client_id: str) -> bool:
        ...

    async def reset(self, client_id: str) -> None:
        ...


class SlidingWindowRateLimiter:
    """
    In-memory sliding window rate limiter.

    One lock per limiter instance guards the whole window table, so
    concurrent requests from the same client never under- or over-count.
    The lock is never held across an await.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the limiter.

        Args:
            max_requests: Requests admitted per client within the window
            window_seconds: Length of the trailing window in seconds
            clock: Monotonic time source (injectable for tests)
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Deque[float]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    @property
    def tracked_clients(self) -> int:
        """Number of clients with at least one request inside the window."""
        with self._lock:
            return len(self._windows)

    async def admit(self, client_id: str) -> bool:
        """
        Record a request for `client_id` if it is under the limit.

        Returns:
            True if the request is admitted, False if the client is throttled
        """
        with self._lock:
            now = self._clock()
            cutoff = now - self.window_seconds

            if now - self._last_sweep >= self.window_seconds:
                self._sweep(cutoff)
                self._last_sweep = now

            window = self._windows.get(client_id, deque())
            while window and window[0] <= cutoff:
                window.popleft()

            if len(window) >= self.max_requests:
                return False

            window.append(now)
            self._windows[client_id] = window
            return True

    async def reset(self, client_id: str) -> None:
        with self._lock:
            self._windows.pop(client_id, None)

    def _sweep(self, cutoff: float) -> None:
        # Newest timestamp is last; a client is idle once it has left the window
        idle = [client for client, window in self._windows.items() if window[-1] <= cutoff]
        for client in idle:
            del self._windows[client]
        if idle:
            logger.debug(f"Dropped {len(idle)} idle clients from the rate limit table")


class StorageRateLimiter:
    """
    Rate limiter backed by a `limits` async storage (memory, redis, memcached...).

    Uses the moving-window strategy, which has the same semantics as
    SlidingWindowRateLimiter but keeps its state in the configured storage,
    so every instance pointing at the same storage shares the counters.
    Storage URIs without the `async+` prefix are given one.
    """

    def __init__(self, storage_uri: str, max_requests: int = 10, window_seconds: int = 60):
        if not storage_uri.startswith(ASYNC_SCHEME_PREFIX):
            storage_uri = ASYNC_SCHEME_PREFIX + storage_uri
        self.storage_uri = storage_uri
        self._item = RateLimitItemPerSecond(max_requests, window_seconds)
        self._strategy = MovingWindowRateLimiter(storage_from_string(storage_uri))

    async def admit(self, client_id: str) -> bool:
        return await self._strategy.hit(self._item, "create", client_id)

    async def reset(self, client_id: str) -> None:
        await self._strategy.clear(self._item, "create", client_id)


def build_rate_limiter(config: Settings) -> RateLimiter:
    """
    Build the rate limiter described by the settings.

    Returns:
        StorageRateLimiter when RATE_LIMIT_STORAGE_URI is set,
        SlidingWindowRateLimiter otherwise
    """
    if config.RATE_LIMIT_STORAGE_URI:
        logger.info(f"Using shared rate limit storage: {config.RATE_LIMIT_STORAGE_URI.split('://')[0]}")
        return StorageRateLimiter(
            config.RATE_LIMIT_STORAGE_URI,
            max_requests=config.RATE_LIMIT_MAX_REQUESTS,
            window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
        )

    logger.info(
        "Using in-memory rate limiter (state is per process and resets on restart)"
    )
    return SlidingWindowRateLimiter(
        max_requests=config.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    )
