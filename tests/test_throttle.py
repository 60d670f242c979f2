"""Tests for CoalescingCache."""

from __future__ import annotations

import asyncio

import pytest

from nexiastat.exceptions import FetchError
from nexiastat.throttle import CacheState, CoalescingCache


class _GatedFetch:
    """Fetch that blocks until released and counts its calls."""

    def __init__(self) -> None:
        self.calls = 0
        self.gate = asyncio.Event()
        self.error: Exception | None = None

    async def __call__(self) -> dict[str, int]:
        self.calls += 1
        call = self.calls
        await self.gate.wait()
        if self.error is not None:
            raise self.error
        return {"call": call}


@pytest.fixture
def fetch() -> _GatedFetch:
    return _GatedFetch()


def test_negative_window_rejected(fetch: _GatedFetch) -> None:
    with pytest.raises(ValueError, match="non-negative"):
        CoalescingCache(fetch, -1)


def test_initial_state(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 5)
    assert cache.state is CacheState.EMPTY
    assert cache.window == 5


# ---------------------------------------------------------------------------
# Single flight
# ---------------------------------------------------------------------------


async def test_concurrent_gets_share_one_fetch(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    tasks = [asyncio.create_task(cache.get()) for _ in range(10)]
    await asyncio.sleep(0)
    assert cache.state is CacheState.FETCHING
    fetch.gate.set()
    results = await asyncio.gather(*tasks)
    assert fetch.calls == 1
    assert all(r is results[0] for r in results)
    assert cache.state is CacheState.CACHED


async def test_failure_reaches_every_waiter(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    fetch.error = FetchError("down")
    tasks = [asyncio.create_task(cache.get()) for _ in range(5)]
    await asyncio.sleep(0)
    fetch.gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)
    assert fetch.calls == 1
    assert all(r is fetch.error for r in results)


async def test_failure_not_cached(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    fetch.gate.set()
    fetch.error = FetchError("down")
    with pytest.raises(FetchError):
        await cache.get()
    assert cache.state is CacheState.EMPTY

    fetch.error = None
    result = await cache.get()
    assert result == {"call": 2}
    assert fetch.calls == 2


async def test_cancelled_caller_does_not_cancel_fetch(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    first = asyncio.create_task(cache.get())
    second = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    first.cancel()
    await asyncio.sleep(0)
    fetch.gate.set()
    assert await second == {"call": 1}
    assert first.cancelled()
    assert fetch.calls == 1


# ---------------------------------------------------------------------------
# Freshness window
# ---------------------------------------------------------------------------


async def test_cached_value_reused_within_window(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    fetch.gate.set()
    first = await cache.get()
    second = await cache.get()
    assert first is second
    assert fetch.calls == 1


async def test_value_expires_after_window(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 0.01)
    fetch.gate.set()
    await cache.get()
    await asyncio.sleep(0.05)
    assert cache.state is CacheState.EMPTY
    assert await cache.get() == {"call": 2}


async def test_window_counts_from_completion(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 0.05)
    task = asyncio.create_task(cache.get())
    # Hold the request open longer than the window.
    await asyncio.sleep(0.1)
    fetch.gate.set()
    await task
    assert cache.state is CacheState.CACHED
    await cache.get()
    assert fetch.calls == 1


async def test_zero_window_still_delivers_result(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 0)
    fetch.gate.set()
    assert await cache.get() == {"call": 1}
    await asyncio.sleep(0.01)
    assert await cache.get() == {"call": 2}


# ---------------------------------------------------------------------------
# reset()
# ---------------------------------------------------------------------------


async def test_reset_forces_refetch(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    fetch.gate.set()
    await cache.get()
    cache.reset()
    assert cache.state is CacheState.EMPTY
    assert await cache.get() == {"call": 2}


async def test_reset_cancels_expiry_timer(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    fetch.gate.set()
    await cache.get()
    handle = cache._expire_handle
    assert handle is not None
    cache.reset()
    assert handle.cancelled()
    assert cache._expire_handle is None


def test_reset_when_empty_is_idempotent(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    cache.reset()
    cache.reset()
    assert cache.state is CacheState.EMPTY


async def test_reset_detaches_inflight_fetch(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    before = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert fetch.calls == 1

    cache.reset()
    assert cache.state is CacheState.EMPTY
    after = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert fetch.calls == 2

    fetch.gate.set()
    # The detached fetch still answers its own waiters.
    assert await before == {"call": 1}
    assert await after == {"call": 2}
    assert cache.state is CacheState.CACHED
    assert await cache.get() == {"call": 2}
    assert fetch.calls == 2


async def test_detached_fetch_result_not_stored(fetch: _GatedFetch) -> None:
    cache = CoalescingCache(fetch, 60)
    task = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    cache.reset()
    fetch.gate.set()
    assert await task == {"call": 1}
    assert cache.state is CacheState.EMPTY
    assert cache._expire_handle is None
    assert await cache.get() == {"call": 2}


async def test_detached_fetch_failure_leaves_new_fetch_alone() -> None:
    gates = [asyncio.Event(), asyncio.Event()]
    calls = 0

    async def fetch() -> str:
        nonlocal calls
        calls += 1
        call = calls
        await gates[call - 1].wait()
        if call == 1:
            raise FetchError("stale request failed")
        return "fresh"

    cache = CoalescingCache(fetch, 60)
    stale = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    cache.reset()
    fresh = asyncio.create_task(cache.get())
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    gates[0].set()
    with pytest.raises(FetchError):
        await stale
    assert cache.state is CacheState.FETCHING

    gates[1].set()
    assert await fresh == "fresh"
    assert cache.state is CacheState.CACHED
    assert calls == 2
