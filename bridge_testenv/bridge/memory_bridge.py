"""In-process bridge stand-in for exercising the environment without a real bridge."""

from __future__ import annotations

import threading
import time

from bridge_testenv.bridge.config import BridgeConfig
from bridge_testenv.bridge.interface import BridgeInterface, BridgeStats


class MemoryBridge(BridgeInterface):
    def __init__(
        self,
        initialize_error: Exception | None = None,
        start_error: Exception | None = None,
    ) -> None:
        self.initialize_error = initialize_error
        self.start_error = start_error
        self.config: BridgeConfig | None = None
        self.calls: list[str] = []
        self.running = False
        self._lock = threading.Lock()
        self._request_count = 0
        self._start_time = 0.0

    def initialize_from_config(self, config: BridgeConfig) -> None:
        self.calls.append("initialize")
        if self.initialize_error is not None:
            raise self.initialize_error
        self.config = config

    def start(self) -> None:
        self.calls.append("start")
        if self.start_error is not None:
            raise self.start_error
        self.running = True
        self._start_time = time.time()

    def stop(self) -> None:
        self.calls.append("stop")
        self.running = False

    def record_requests(self, count: int = 1) -> None:
        """Simulate the bridge finishing *count* requests. Safe from any thread."""
        with self._lock:
            self._request_count += count

    def safe_stats(self) -> BridgeStats:
        with self._lock:
            count = self._request_count
        now = time.time()
        started = self._start_time
        return BridgeStats(
            request_count=count,
            start_time=started,
            server_time=now,
            uptime=f"{now - started:.3f}s" if started else "",
        )
