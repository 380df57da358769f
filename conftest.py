"""Root-level pytest fixtures: a testcontainer-backed Kafka broker for real-infra runs."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(scope="session")
def kafka_bootstrap():
    """Bootstrap address of a reachable Kafka broker.

    Uses MQ_KAFKA_BOOTSTRAP_SERVERS when set, otherwise one container per session.
    """
    configured = os.environ.get("MQ_KAFKA_BOOTSTRAP_SERVERS")
    if configured:
        yield configured
        return

    from testcontainers.kafka import KafkaContainer

    with KafkaContainer() as kafka:
        yield kafka.get_bootstrap_server()
