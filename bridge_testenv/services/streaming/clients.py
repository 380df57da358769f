"""Bypass client connections: raw NATS and NATS Streaming."""

from __future__ import annotations

import asyncio
import ssl
from typing import Any, Callable

from bridge_testenv.errors import ConnectivityError

CONNECT_TIMEOUT = 2  # seconds, per attempt


async def connect_nats(url: str, tls: ssl.SSLContext | None = None) -> Any:
    from nats.aio.client import Client as NATS

    nc = NATS()
    options: dict[str, Any] = {"servers": [url], "connect_timeout": CONNECT_TIMEOUT}
    if tls is not None:
        options["tls"] = tls
    try:
        await nc.connect(**options)
    except Exception as exc:
        raise ConnectivityError(f"unable to connect to nats at {url}: {exc}") from exc
    return nc


async def connect_stan(
    cluster_id: str,
    client_id: str,
    nc: Any,
    timeout: float = 10.0,
    still_running: Callable[[], str | None] | None = None,
) -> Any:
    """Connect to the streaming cluster over *nc*, retrying until it answers.

    The streaming server only replies to connect requests once it has
    finished recovering its store, so early attempts time out.
    *still_running* returns an exit description when the server died.
    """
    from stan.aio.client import Client as STAN
    from stan.aio.errors import StanError

    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        sc = STAN()
        try:
            await sc.connect(cluster_id, client_id, nats=nc, connect_timeout=CONNECT_TIMEOUT)
            return sc
        except (StanError, asyncio.TimeoutError) as exc:
            last = exc
        if still_running is not None:
            status = still_running()
            if status:
                raise ConnectivityError(f"streaming server is down: {status}")
        if loop.time() > deadline:
            raise ConnectivityError(
                f"unable to connect to streaming cluster {cluster_id} as {client_id}: {last}"
            )
        await asyncio.sleep(0.1)
