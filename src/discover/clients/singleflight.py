"""Single-flight request coalescing with a short-lived result cache.

Concurrent callers asking for the same key share one underlying operation;
its result (or its failure) is delivered to every waiter. Successful results
are reused for ``ttl`` seconds, failures are never cached.

All bookkeeping happens between awaits on one event loop, so no lock is
needed: the check-then-insert of an in-flight task cannot interleave.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

from discover.clients.base import Clock

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class SingleFlight(Generic[K, V]):
    """Coalesces concurrent identical requests.

    Args:
        ttl: Seconds a successful result stays cached (0 disables caching)
        clock: Time source used for cache expiry

    Usage:
        flight = SingleFlight(ttl=600)
        issues = await flight.do(("dotnet", "runtime"), lambda: fetch(...))
    """

    def __init__(self, ttl: float = 0.0, clock: Clock | None = None) -> None:
        self.ttl = ttl
        self.clock = clock or Clock()
        self._inflight: dict[K, asyncio.Task[V]] = {}
        self._waiters: dict[K, int] = {}
        self._cache: dict[K, tuple[float, V]] = {}

    def cached(self, key: K) -> V | None:
        """Return a still-fresh cached result, or None."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self.clock.now() - stored_at >= self.ttl:
            del self._cache[key]
            return None
        return value

    async def do(self, key: K, fn: Callable[[], Awaitable[V]]) -> V:
        """Run ``fn`` for ``key`` unless a call is cached or already in flight.

        If every waiter is cancelled, the shared call is cancelled too.
        """
        value = self.cached(key)
        if value is not None:
            logger.debug("Cache hit for %s", key)
            return value

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, fn))
            self._inflight[key] = task
        else:
            logger.debug("Joining in-flight request for %s", key)

        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._waiters.get(key) == 1 and not task.done():
                task.cancel()
            raise
        finally:
            remaining = self._waiters.get(key, 1) - 1
            if remaining:
                self._waiters[key] = remaining
            else:
                self._waiters.pop(key, None)

    async def _run(self, key: K, fn: Callable[[], Awaitable[V]]) -> V:
        try:
            value = await fn()
            if self.ttl > 0:
                self._cache[key] = (self.clock.now(), value)
            return value
        finally:
            self._inflight.pop(key, None)
