from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any, TextIO

from bridge_testenv.services.logger.interface import LoggingInterface

_COLORS = {
    "INFO": "\033[32m",   # green
    "WARN": "\033[33m",   # yellow
    "ERROR": "\033[31m",  # red
    "DEBUG": "\033[36m",  # cyan
}
_RESET = "\033[0m"


def _render(ctx: dict[str, Any]) -> str:
    return " ".join(f"{k}={v}" for k, v in ctx.items())


class PrettyLogger(LoggingInterface):
    """Human-readable stderr logger for test runs.

    DEBUG lines are dropped unless *verbose* is set, so a passing suite stays
    quiet while ``BRIDGE_TEST_VERBOSE=1`` shows every bring-up step.
    """

    def __init__(
        self,
        colors: bool = True,
        verbose: bool = False,
        stream: TextIO | None = None,
    ) -> None:
        self._colors = colors
        self._verbose = verbose
        self._stream = stream

    def log(self, level: str, msg: str, ctx: dict[str, Any]) -> None:
        if level == "DEBUG" and not self._verbose:
            return
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S.%f")[:-3]
        tag = f"{ts} [{level}]"
        if self._colors:
            tag = f"{_COLORS.get(level, '')}{tag}{_RESET}"
        line = f"{tag} {msg}"
        if ctx:
            line += "  " + _render(ctx)
        print(line, file=self._stream or sys.stderr)
