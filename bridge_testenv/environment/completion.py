"""Wait for the bridge to finish a known number of requests.

The bridge is a black box; the only signal it offers is a monotonically
increasing request counter, so completion is detected by polling it.
Neither function raises on timeout: they report ``False`` / ``""``.
"""

from __future__ import annotations

import asyncio

from bridge_testenv.bridge.interface import StatsSource

DEFAULT_TIMEOUT = 5.0  # seconds
POLL_INTERVAL = 0.05  # seconds


async def wait_for_requests(
    stats: StatsSource,
    request_count: int,
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = POLL_INTERVAL,
) -> bool:
    """True once ``request_count`` is reached, False if *timeout* passes first."""
    loop = asyncio.get_running_loop()
    stop = loop.time() + timeout
    while True:
        await asyncio.sleep(interval)
        if loop.time() > stop:
            return False
        if stats.safe_stats().request_count >= request_count:
            return True


async def wait_for_it(
    stats: StatsSource,
    request_count: int,
    done: asyncio.Queue[str],
    timeout: float = DEFAULT_TIMEOUT,
    interval: float = POLL_INTERVAL,
) -> str:
    """Wait for a token on *done* while polling the request counter.

    If nothing is put on *done* within *timeout*, ``""`` is put there for us.
    The token is returned only if the counter also reached ``request_count``
    in time; a token that arrived while the counter fell short yields ``""``.
    """
    loop = asyncio.get_running_loop()
    counter = asyncio.ensure_future(
        wait_for_requests(stats, request_count, timeout=timeout, interval=interval)
    )
    deadline = loop.call_later(timeout, done.put_nowait, "")
    try:
        received = await done.get()
        deadline.cancel()
        ok = await counter
    finally:
        deadline.cancel()
        counter.cancel()

    if not ok:
        return ""
    return received
