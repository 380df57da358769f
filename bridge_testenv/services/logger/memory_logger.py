from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from bridge_testenv.services.logger.interface import LEVELS, LoggingInterface


@dataclass(frozen=True)
class LogEntry:
    level: str
    msg: str
    ctx: dict[str, Any] = field(default_factory=dict)


class MemoryLogger(LoggingInterface):
    """Keeps every record in order so tests can assert on what the harness did.

    Bridges may log from their own threads, so appends are locked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.entries: list[LogEntry] = []

    def log(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        with self._lock:
            self.entries.append(LogEntry(level, msg, dict(ctx)))

    @property
    def messages(self) -> list[str]:
        return [e.msg for e in self.entries]

    def at_level(self, level: str) -> list[LogEntry]:
        if level not in LEVELS:
            raise ValueError(f"Unknown level '{level}' (expected one of {', '.join(LEVELS)})")
        return [e for e in self.entries if e.level == level]

    def find(self, msg: str) -> LogEntry | None:
        """First entry whose message is *msg*."""
        return next((e for e in self.entries if e.msg == msg), None)

    def clear(self) -> None:
        with self._lock:
            self.entries.clear()
