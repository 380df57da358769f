from __future__ import annotations

from typing import Iterable

from bridge_testenv.bridge.config import ConnectorConfig


def collect_topics(connectors: Iterable[ConnectorConfig]) -> list[str]:
    """Distinct, non-empty Kafka topics named by *connectors* (order not significant)."""
    return list({c.topic for c in connectors if c.topic})
