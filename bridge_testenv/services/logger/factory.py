from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bridge_testenv.services.logger.interface import LoggingInterface
from bridge_testenv.services.logger.memory_logger import MemoryLogger
from bridge_testenv.services.logger.pretty_logger import PrettyLogger

if TYPE_CHECKING:
    from bridge_testenv.config.context import HarnessConfig

IMPLEMENTATIONS: dict[str, type[LoggingInterface]] = {
    "pretty": PrettyLogger,
    "memory": MemoryLogger,
}


def _check(name: str) -> type[LoggingInterface]:
    try:
        return IMPLEMENTATIONS[name]
    except KeyError:
        raise ValueError(
            f"Unknown logger implementation: '{name}' "
            f"(available: {', '.join(IMPLEMENTATIONS)})"
        ) from None


class LoggerFactory:
    """Hands out one shared logger per implementation name.

    *options* configure the default implementation only, e.g.
    ``LoggerFactory(colors=False)`` for plain PrettyLogger output.
    """

    def __init__(self, default_impl: str = "pretty", **options: Any) -> None:
        _check(default_impl)
        self.default_impl = default_impl
        self._options = options
        self._loggers: dict[str, LoggingInterface] = {}

    @classmethod
    def from_config(cls, config: HarnessConfig) -> LoggerFactory:
        """BRIDGE_TEST_LOGGER picks the implementation; pretty output honours verbose and NO_COLOR."""
        impl = config.get("BRIDGE_TEST_LOGGER", "pretty")
        if impl != "pretty":
            return cls(impl)
        return cls(impl, verbose=config.verbose, colors=not config.get("NO_COLOR"))

    def create(self, impl_name: str | None = None) -> LoggingInterface:
        name = impl_name or self.default_impl
        logger = self._loggers.get(name)
        if logger is None:
            options = self._options if name == self.default_impl else {}
            logger = self._loggers[name] = _check(name)(**options)
        return logger
