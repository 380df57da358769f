"""Environment-variable backed settings for the test environment."""

from __future__ import annotations

import os
from pathlib import Path

from bridge_testenv.config.env_loader import PROJECT_ROOT, load_env_file

DEFAULT_KAFKA = "localhost:9092"
DEFAULT_KAFKA_TLS = "localhost:9093"


class HarnessConfig:
    """Process environment merged with explicit overrides (overrides win)."""

    def __init__(self, overrides: dict[str, str] | None = None) -> None:
        self._env = dict(os.environ)
        if overrides:
            self._env.update(overrides)

    @classmethod
    def from_env_file(
        cls,
        env_name: str = "test",
        overrides: dict[str, str] | None = None,
        project_root: Path | None = None,
    ) -> HarnessConfig:
        """Layer ``.env/<env_name>.env`` over os.environ, then *overrides* on top."""
        merged = load_env_file(env_name, project_root=project_root)
        merged.update(overrides or {})
        return cls(overrides=merged)

    def get(self, key: str, default: str = "") -> str:
        return self._env.get(key, default)

    def get_int(self, key: str, default: int) -> int:
        value = self._env.get(key)
        return int(value) if value else default

    def get_float(self, key: str, default: float) -> float:
        value = self._env.get(key)
        return float(value) if value else default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._env.get(key)
        if not value:
            return default
        return value.strip().lower() in ("1", "true", "yes", "on")

    def require(self, key: str) -> str:
        value = self._env.get(key)
        if value is None:
            raise KeyError(f"Required setting '{key}' is not set")
        return value

    # ── Harness settings ─────────────────────────────────────────────────

    def kafka_host_port(self, use_tls: bool) -> str:
        if use_tls:
            return self.get("MQ_KAFKA_TLS_BOOTSTRAP_SERVERS", DEFAULT_KAFKA_TLS)
        return self.get("MQ_KAFKA_BOOTSTRAP_SERVERS", DEFAULT_KAFKA)

    @property
    def group_prefix(self) -> str:
        return self.get("MQ_KAFKA_GROUP_PREFIX", "kbt")

    @property
    def nats_server_bin(self) -> str:
        return self.get("NATS_SERVER_BIN", "nats-server")

    @property
    def streaming_server_bin(self) -> str:
        return self.get("NATS_STREAMING_SERVER_BIN", "nats-streaming-server")

    @property
    def certs_dir(self) -> Path:
        value = self.get("BRIDGE_TEST_CERTS_DIR")
        return Path(value) if value else PROJECT_ROOT / "resources" / "certs"

    @property
    def log_dir(self) -> Path | None:
        value = self.get("BRIDGE_TEST_LOG_DIR")
        return Path(value) if value else None

    @property
    def startup_timeout(self) -> float:
        return self.get_float("BRIDGE_TEST_STARTUP_TIMEOUT", 10.0)

    @property
    def verbose(self) -> bool:
        return self.get_bool("BRIDGE_TEST_VERBOSE")

    def __repr__(self) -> str:
        return (
            f"HarnessConfig(kafka={self.kafka_host_port(False)!r}, "
            f"kafka_tls={self.kafka_host_port(True)!r}, certs={str(self.certs_dir)!r})"
        )
