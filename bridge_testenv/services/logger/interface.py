from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


class LoggingInterface(ABC):
    """Structured logging for harness components.

    Implementations only provide ``log``; the level helpers and ``bind`` are
    shared. Context goes in ``**ctx`` and is rendered as ``key=value``.
    """

    @abstractmethod
    def log(self, level: str, msg: str, ctx: dict[str, Any]) -> None: ...

    def info(self, msg: str, **ctx: Any) -> None:
        self.log("INFO", msg, ctx)

    def warn(self, msg: str, **ctx: Any) -> None:
        self.log("WARN", msg, ctx)

    def error(self, msg: str, **ctx: Any) -> None:
        self.log("ERROR", msg, ctx)

    def debug(self, msg: str, **ctx: Any) -> None:
        self.log("DEBUG", msg, ctx)

    def bind(self, **ctx: Any) -> LoggingInterface:
        """Child logger that adds *ctx* to every record and writes through to this one."""
        return BoundLogger(self, ctx)


class BoundLogger(LoggingInterface):
    def __init__(self, parent: LoggingInterface, ctx: dict[str, Any]) -> None:
        self._parent = parent
        self._ctx = ctx

    def log(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        self._parent.log(level, msg, {**self._ctx, **ctx})
