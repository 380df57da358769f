"""Fixtures for tests that run real nats-server / nats-streaming-server binaries.

Tests here are marked ``real_infra`` and are skipped when either binary is
not on PATH (or pointed at by NATS_SERVER_BIN / NATS_STREAMING_SERVER_BIN).
"""

from __future__ import annotations

import shutil

import pytest

from bridge_testenv.config.context import HarnessConfig
from bridge_testenv.services.logger.factory import LoggerFactory


@pytest.fixture
def harness_config(kafka_bootstrap: str, tmp_path) -> HarnessConfig:
    config = HarnessConfig(overrides={
        "MQ_KAFKA_BOOTSTRAP_SERVERS": kafka_bootstrap,
        "BRIDGE_TEST_LOG_DIR": str(tmp_path / "logs"),
    })
    for binary in (config.nats_server_bin, config.streaming_server_bin):
        if shutil.which(binary) is None:
            pytest.skip(f"{binary} not found")
    return config


@pytest.fixture
def env_kwargs(harness_config: HarnessConfig) -> dict:
    return {"config": harness_config, "logger": LoggerFactory(default_impl="memory")}
