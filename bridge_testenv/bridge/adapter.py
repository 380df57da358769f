"""Builds the bridge configuration from live endpoints and drives its lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from bridge_testenv.bridge.config import (
    DEFAULT_DISCOVER_PREFIX,
    DEFAULT_MAX_PUB_ACKS_INFLIGHT,
    BridgeConfig,
    ConnectorConfig,
    HTTPConfig,
    NATSConfig,
    NATSStreamingConfig,
    TLSConf,
    default_bridge_config,
)
from bridge_testenv.bridge.interface import BridgeInterface
from bridge_testenv.errors import LifecycleError
from bridge_testenv.services.logger.interface import LoggingInterface
from bridge_testenv.services.tls.material import TLSMaterial

BridgeFactory = Callable[[], BridgeInterface]


@dataclass(frozen=True)
class LiveEndpoints:
    """Where the running backends can be reached, known only after they start."""

    nats_url: str
    kafka_host_port: str
    cluster_id: str
    bridge_client_id: str


class BridgeLifecycleAdapter:
    def __init__(
        self,
        factory: BridgeFactory,
        logger: LoggingInterface,
        tls: TLSMaterial | None = None,
    ) -> None:
        self._factory = factory
        self._log = logger
        self._tls = tls
        self.bridge: BridgeInterface | None = None

    def build_config(
        self, connectors: list[ConnectorConfig], endpoints: LiveEndpoints
    ) -> BridgeConfig:
        """Point a default config at *endpoints*.

        Each entry of *connectors* is replaced in place by a copy carrying the
        live Kafka address (and client TLS material on TLS runs); topics and
        all other connector fields are left alone.
        """
        config = default_bridge_config()
        config.logging.debug = True
        config.logging.trace = True
        config.logging.colors = False
        config.monitoring = HTTPConfig(http_port=-1)
        config.nats = NATSConfig(
            servers=[endpoints.nats_url],
            connect_timeout=2000,
            reconnect_wait=2000,
            max_reconnects=5,
        )
        config.stan = NATSStreamingConfig(
            cluster_id=endpoints.cluster_id,
            client_id=endpoints.bridge_client_id,
            pub_ack_wait=5000,
            discover_prefix=DEFAULT_DISCOVER_PREFIX,
            max_pub_acks_inflight=DEFAULT_MAX_PUB_ACKS_INFLIGHT,
            connect_wait=2000,
        )

        if self._tls is not None:
            config.monitoring.http_port = 0
            config.monitoring.https_port = -1
            config.monitoring.tls = TLSConf(
                cert=self._tls.server_cert, key=self._tls.server_key
            )
            config.nats.tls = TLSConf(root=self._tls.ca_file)

        for i, c in enumerate(connectors):
            c = replace(c, brokers=[endpoints.kafka_host_port])
            if self._tls is not None:
                c = replace(
                    c,
                    tls=TLSConf(
                        cert=self._tls.client_cert,
                        key=self._tls.client_key,
                        root=self._tls.ca_file,
                    ),
                )
            connectors[i] = c

        config.connect = connectors
        return config

    def start(self, config: BridgeConfig) -> BridgeInterface:
        """Create the bridge, initialize it from *config* and start it. No retries."""
        self.bridge = self._factory()
        try:
            self.bridge.initialize_from_config(config)
        except Exception as exc:
            raise LifecycleError(f"bridge failed to initialize: {exc}") from exc
        try:
            self.bridge.start()
        except Exception as exc:
            raise LifecycleError(f"bridge failed to start: {exc}") from exc
        self._log.info(
            "Bridge started",
            connectors=len(config.connect),
            client_id=config.stan.client_id,
        )
        return self.bridge

    def stop(self) -> None:
        if self.bridge is None:
            return
        bridge, self.bridge = self.bridge, None
        bridge.stop()
        self._log.info("Bridge stopped")
