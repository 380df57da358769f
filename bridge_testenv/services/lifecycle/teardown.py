"""Ordered best-effort teardown with recorded failures."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Union

from bridge_testenv.errors import TeardownError
from bridge_testenv.services.logger.interface import LoggingInterface

TeardownStep = Union[Callable[[], None], Callable[[], Awaitable[None]]]


@dataclass
class TeardownReport:
    errors: list[tuple[str, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        return "\n".join(f"{name}: {exc}" for name, exc in self.errors)

    def raise_if_errors(self) -> None:
        if self.errors:
            raise TeardownError(self.errors)


class TeardownSequence:
    """Runs named shutdown steps in registration order, exactly once.

    A failing step is logged and recorded; the remaining steps still run.
    """

    def __init__(self, logger: LoggingInterface | None = None) -> None:
        self._log = logger
        self._steps: list[tuple[str, TeardownStep]] = []
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def add(self, name: str, step: TeardownStep) -> None:
        self._steps.append((name, step))

    async def run(self) -> TeardownReport:
        report = TeardownReport()
        if self._done:
            return report
        self._done = True

        for name, step in self._steps:
            try:
                result = step()
                if inspect.isawaitable(result):
                    await result
            except Exception as exc:
                report.errors.append((name, exc))
                if self._log:
                    self._log.warn("Teardown step failed", step=name, error=str(exc))
        return report
