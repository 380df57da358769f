"""Error taxonomy for the test environment.

Completion waits never raise; they report ``False`` / ``""`` instead.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for every failure raised by the test environment."""


class ConnectivityError(HarnessError):
    """A backend could not be reached (dial failure, timeout, no controller)."""


class ProvisioningError(HarnessError):
    """A resource (topic) could not be created on a backend."""


class LifecycleError(HarnessError):
    """A server, TLS configuration or the bridge failed to start."""


class TeardownError(HarnessError):
    """One or more best-effort teardown steps failed."""

    def __init__(self, failures: list[tuple[str, BaseException]]) -> None:
        self.failures = failures
        lines = [f"{name}: {exc}" for name, exc in failures]
        super().__init__("teardown failed:\n" + "\n".join(lines))
