from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

from bridge_testenv.bridge.config import BridgeConfig


@dataclass(frozen=True)
class BridgeStats:
    """Point-in-time snapshot of bridge counters."""

    request_count: int = 0
    start_time: float = 0.0
    server_time: float = 0.0
    uptime: str = ""


class StatsSource(Protocol):
    def safe_stats(self) -> BridgeStats: ...


class BridgeInterface(ABC):
    """The bridge under test, seen only through its lifecycle and stats."""

    @abstractmethod
    def initialize_from_config(self, config: BridgeConfig) -> None:
        """Validate and apply *config*; raise on error."""
        ...

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def stop(self) -> None:
        """Stop the bridge; must be safe to call when already stopped."""
        ...

    @abstractmethod
    def safe_stats(self) -> BridgeStats:
        """Thread-safe counter snapshot."""
        ...
