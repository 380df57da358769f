"""Configuration record handed to the bridge under test.

Only the shape the environment fills in is modelled here; parsing the
bridge's own configuration files is the bridge's concern.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_DISCOVER_PREFIX = "_STAN.discover"
DEFAULT_MAX_PUB_ACKS_INFLIGHT = 16384


@dataclass
class TLSConf:
    cert: str = ""
    key: str = ""
    root: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.cert or self.key or self.root)


@dataclass
class LoggingConfig:
    time: bool = True
    debug: bool = False
    trace: bool = False
    colors: bool = True
    pid: bool = False


@dataclass
class HTTPConfig:
    """Monitoring listener; a port of -1 asks for an ephemeral one, 0 disables it."""

    http_host: str = ""
    http_port: int = 0
    https_port: int = 0
    tls: TLSConf = field(default_factory=TLSConf)
    read_timeout: int = 0  # ms
    write_timeout: int = 0  # ms


@dataclass
class NATSConfig:
    servers: list[str] = field(default_factory=list)
    connect_timeout: int = 0  # ms
    reconnect_wait: int = 0  # ms
    max_reconnects: int = 0
    tls: TLSConf = field(default_factory=TLSConf)
    username: str = ""
    password: str = ""
    user_credentials: str = ""


@dataclass
class NATSStreamingConfig:
    cluster_id: str = ""
    client_id: str = ""
    pub_ack_wait: int = 0  # ms
    discover_prefix: str = DEFAULT_DISCOVER_PREFIX
    max_pub_acks_inflight: int = DEFAULT_MAX_PUB_ACKS_INFLIGHT
    connect_wait: int = 0  # ms


@dataclass
class ConnectorConfig:
    """One bridge data path. ``brokers`` and ``tls`` are filled in by the environment."""

    type: str = ""
    id: str = ""
    channel: str = ""
    durable_name: str = ""
    subject: str = ""
    queue_name: str = ""
    topic: str = ""
    partition: int = 0
    group_id: str = ""
    key_type: str = ""
    key_value: str = ""
    brokers: list[str] = field(default_factory=list)
    tls: TLSConf = field(default_factory=TLSConf)


@dataclass
class BridgeConfig:
    reconnect_interval: int = 5000  # ms
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: HTTPConfig = field(default_factory=HTTPConfig)
    nats: NATSConfig = field(default_factory=NATSConfig)
    stan: NATSStreamingConfig = field(default_factory=NATSStreamingConfig)
    connect: list[ConnectorConfig] = field(default_factory=list)


def default_bridge_config() -> BridgeConfig:
    """Documented defaults: colored timestamped logs, 5s monitoring and reconnect timers."""
    return BridgeConfig(
        reconnect_interval=5000,
        logging=LoggingConfig(time=True, colors=True, debug=False, trace=False),
        monitoring=HTTPConfig(read_timeout=5000, write_timeout=5000),
    )
