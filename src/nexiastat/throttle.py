"""Request-coalescing cache for the remote status fetch."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar, cast

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CacheState(Enum):
    """Lifecycle of a CoalescingCache."""

    EMPTY = "empty"
    FETCHING = "fetching"
    CACHED = "cached"


class CoalescingCache(Generic[T]):
    """
    Share one fetch between concurrent callers and keep its result briefly.

    The first get() on an empty cache starts the fetch; every get() issued
    before it settles awaits the same task and sees the same result or the
    same exception. A successful result stays cached for ``window`` seconds
    counted from when the response arrived. Failures are never cached.

    All state changes happen between awaits on a single event loop, so no
    lock is needed.
    """

    def __init__(self, fetch: Callable[[], Awaitable[T]], window: float) -> None:
        if window < 0:
            raise ValueError(f"window must be non-negative, got {window!r}")
        self._fetch = fetch
        self._window = window
        self._task: asyncio.Task[T] | None = None
        self._value: T | None = None
        self._has_value = False
        self._expire_handle: asyncio.TimerHandle | None = None

    @property
    def window(self) -> float:
        """Return how long a fetched value stays valid, in seconds."""
        return self._window

    @property
    def state(self) -> CacheState:
        """Return the current cache state."""
        if self._has_value:
            return CacheState.CACHED
        if self._task is not None:
            return CacheState.FETCHING
        return CacheState.EMPTY

    async def get(self) -> T:
        """
        Return the cached value, fetching it if needed.

        Cancelling the awaiting caller does not cancel the shared fetch.

        Raises:
            Whatever the fetch raised, for every caller of that cycle.

        """
        if self._has_value:
            return cast("T", self._value)
        task = self._task
        if task is None:
            _LOGGER.debug("Status cache empty, starting fetch")
            task = asyncio.create_task(self._fill())
            task.add_done_callback(_log_fetch_failure)
            self._task = task
        return await asyncio.shield(task)

    def reset(self) -> None:
        """
        Drop the cached value so the next get() fetches again.

        A fetch already in flight is detached, not cancelled: callers already
        waiting on it still get its result, but the result is not stored and
        the next get() starts a new fetch. Safe to call at any time.
        """
        if self._has_value or self._task is not None:
            _LOGGER.debug("Status cache reset")
        self._cancel_timer()
        self._task = None
        self._value = None
        self._has_value = False

    async def _fill(self) -> T:
        task = asyncio.current_task()
        try:
            value = await self._fetch()
        finally:
            current = self._task is task
            if current:
                self._task = None
        if current:
            self._store(value)
        else:
            _LOGGER.debug("Discarding status fetched before the last reset")
        return value

    def _store(self, value: T) -> None:
        self._cancel_timer()
        self._value = value
        self._has_value = True
        loop = asyncio.get_running_loop()
        self._expire_handle = loop.call_later(self._window, self._expire)
        _LOGGER.debug("Status cached for %ss", self._window)

    def _expire(self) -> None:
        _LOGGER.debug("Status cache expired")
        self._expire_handle = None
        self._value = None
        self._has_value = False

    def _cancel_timer(self) -> None:
        if self._expire_handle is not None:
            self._expire_handle.cancel()
            self._expire_handle = None


def _log_fetch_failure(task: asyncio.Task[object]) -> None:
    """Record a failed fetch; the exception still reaches every waiter."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        _LOGGER.debug("Status fetch failed: %s", exc)
