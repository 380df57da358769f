"""BridgeEnvironment: a disposable Kafka + NATS Streaming topology around one bridge.

Bring-up order: Kafka (reachability, topics) → NATS + streaming servers →
bridge. Teardown is the reverse, bridge first, and is best-effort: every
step runs even if an earlier one failed.

Typical use::

    env = await start_test_environment(connectors, bridge_factory=MyBridge)
    try:
        env.send_message_to_kafka("orders", b"hello", 5000)
        assert await env.wait_for_requests(1)
    finally:
        await env.close()
"""

from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import Any

from bridge_testenv.bridge.adapter import BridgeFactory, BridgeLifecycleAdapter, LiveEndpoints
from bridge_testenv.bridge.config import BridgeConfig, ConnectorConfig
from bridge_testenv.bridge.interface import BridgeInterface
from bridge_testenv.config.context import HarnessConfig
from bridge_testenv.environment import completion
from bridge_testenv.environment.topics import collect_topics
from bridge_testenv.errors import LifecycleError
from bridge_testenv.services.kafka.kafka_client import KafkaBypassClient
from bridge_testenv.services.lifecycle.teardown import TeardownReport, TeardownSequence
from bridge_testenv.services.logger.factory import LoggerFactory
from bridge_testenv.services.streaming.launcher import StreamingCluster
from bridge_testenv.services.tls.material import TLSMaterial

KAFKA_WAIT_MS = 5000


class EnvState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INFRASTRUCTURE_UP = "infrastructure_up"
    BRIDGE_UP = "bridge_up"
    CLOSED = "closed"


def new_id() -> str:
    return uuid.uuid4().hex


class BridgeEnvironment:
    def __init__(
        self,
        bridge_factory: BridgeFactory,
        use_tls: bool = False,
        config: HarnessConfig | None = None,
        tls: TLSMaterial | None = None,
        logger: LoggerFactory | None = None,
        kafka: KafkaBypassClient | None = None,
        streaming: StreamingCluster | None = None,
    ) -> None:
        self._config = config or HarnessConfig()
        self.logger = logger or LoggerFactory.from_config(self._config)
        self.log = self.logger.create()
        self.use_tls = use_tls
        self.tls: TLSMaterial | None = None
        if use_tls:
            self.tls = tls or TLSMaterial.from_directory(self._config.certs_dir)

        self.kafka = kafka or KafkaBypassClient(
            self._config.kafka_host_port(use_tls),
            tls=self.tls,
            group_prefix=self._config.group_prefix,
            logger=self.log.bind(component="kafka"),
        )
        self.streaming = streaming or StreamingCluster(
            self._config, self.log.bind(component="streaming"), tls=self.tls
        )
        self._adapter = BridgeLifecycleAdapter(
            bridge_factory, self.log.bind(component="bridge"), tls=self.tls
        )

        self.config: BridgeConfig | None = None
        self.state = EnvState.UNINITIALIZED
        self._readers: list[Any] = []

    # ── Live handles ─────────────────────────────────────────────────────

    @property
    def kafka_host_port(self) -> str:
        return self.kafka.host_port

    @property
    def bridge(self) -> BridgeInterface | None:
        return self._adapter.bridge

    @property
    def nc(self) -> Any:
        """Raw NATS connection for bypassing the bridge; replaced by a restart."""
        return self.streaming.nc

    @property
    def sc(self) -> Any:
        """Streaming connection for bypassing the bridge; replaced by a restart."""
        return self.streaming.sc

    @property
    def nats_url(self) -> str:
        return self.streaming.url

    @property
    def nats_port(self) -> int:
        return self.streaming.port

    @property
    def cluster_id(self) -> str:
        return self.streaming.cluster_id

    @property
    def client_id(self) -> str:
        return self.streaming.client_id

    @property
    def bridge_client_id(self) -> str:
        return self.streaming.bridge_client_id

    # ── Bring-up ─────────────────────────────────────────────────────────

    async def start_infrastructure(self, topics: list[str]) -> None:
        """Check Kafka, create *topics*, start the streaming cluster.

        On any failure the environment is closed before the error is raised.
        """
        if self.state is not EnvState.UNINITIALIZED:
            raise LifecycleError(f"cannot start infrastructure from state {self.state.value}")
        try:
            self.kafka.check_reachable(KAFKA_WAIT_MS)
            for topic in set(topics):
                self.kafka.create_topic(topic, KAFKA_WAIT_MS)
            await self.streaming.start(-1, new_id(), new_id(), new_id())
        except Exception:
            await self.close()
            raise
        self.state = EnvState.INFRASTRUCTURE_UP
        self.log.info(
            "Test infrastructure up",
            kafka=self.kafka_host_port,
            nats=self.nats_url,
            tls=self.use_tls,
        )

    async def start_bridge(self, connectors: list[ConnectorConfig]) -> None:
        """Configure the bridge against the live endpoints and start it.

        *connectors* entries are replaced in place with copies carrying the
        Kafka address (and TLS material). Failure closes the environment.
        """
        if self.state is not EnvState.INFRASTRUCTURE_UP:
            raise LifecycleError(f"cannot start bridge from state {self.state.value}")
        endpoints = LiveEndpoints(
            nats_url=self.nats_url,
            kafka_host_port=self.kafka_host_port,
            cluster_id=self.cluster_id,
            bridge_client_id=self.bridge_client_id,
        )
        try:
            self.config = self._adapter.build_config(connectors, endpoints)
            self._adapter.start(self.config)
        except Exception:
            await self.close()
            raise
        self.state = EnvState.BRIDGE_UP

    def stop_bridge(self) -> None:
        self._adapter.stop()
        if self.state is EnvState.BRIDGE_UP:
            self.state = EnvState.INFRASTRUCTURE_UP

    async def stop_streaming(self) -> TeardownReport:
        """Shut the streaming layer down without restarting it."""
        return await self.streaming.stop()

    async def restart_streaming(self) -> TeardownReport:
        """Restart NATS and the streaming server on the same port with the same ids.

        ``nc`` and ``sc`` are new connections afterwards. A running bridge is
        left alone to reconnect, so the state stays ``BRIDGE_UP`` rather than
        dropping to ``INFRASTRUCTURE_UP``.
        """
        if self.state not in (EnvState.INFRASTRUCTURE_UP, EnvState.BRIDGE_UP):
            raise LifecycleError(f"cannot restart streaming from state {self.state.value}")
        report = await self.streaming.restart()
        self.log.info("Streaming cluster restarted", url=self.nats_url, cluster_id=self.cluster_id)
        return report

    # ── Teardown ─────────────────────────────────────────────────────────

    async def close(self) -> TeardownReport:
        """Stop everything, bridge first. Safe to call repeatedly and after a failed start."""
        if self.state is EnvState.CLOSED:
            return TeardownReport()
        self.state = EnvState.CLOSED

        seq = TeardownSequence(self.log)
        seq.add("bridge", self._adapter.stop)
        readers, self._readers = self._readers, []
        for i, reader in enumerate(readers):
            seq.add(f"kafka reader {i}", reader.close)
        for name, step in self.streaming.shutdown_steps():
            seq.add(name, step)

        report = await seq.run()
        if not report.ok:
            self.log.warn("Environment closed with errors", errors=report.summary())
        return report

    async def __aenter__(self) -> BridgeEnvironment:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # ── Bypass: Kafka ────────────────────────────────────────────────────

    def check_kafka(self, wait_ms: int = KAFKA_WAIT_MS) -> None:
        self.kafka.check_reachable(wait_ms)

    def create_topic(self, topic: str, wait_ms: int = KAFKA_WAIT_MS) -> None:
        self.kafka.create_topic(topic, wait_ms)

    def send_message_to_kafka(self, topic: str, data: bytes, wait_ms: int = KAFKA_WAIT_MS) -> None:
        self.kafka.produce(topic, data, wait_ms)

    def create_reader(self, topic: str, wait_ms: int = KAFKA_WAIT_MS) -> Any:
        """Consumer on *topic*; closed with the environment."""
        reader = self.kafka.new_consumer(topic, wait_ms)
        self._readers.append(reader)
        return reader

    def get_message_from_kafka(
        self, reader: Any, wait_ms: int = KAFKA_WAIT_MS
    ) -> tuple[bytes | None, bytes | None]:
        return self.kafka.consume(reader, wait_ms)

    # ── Bypass: NATS / NATS Streaming ────────────────────────────────────

    async def publish_to_subject(self, subject: str, data: bytes) -> None:
        if self.nc is None:
            raise LifecycleError("streaming cluster is not running")
        await self.nc.publish(subject, data)
        await self.nc.flush()

    async def publish_to_channel(self, channel: str, data: bytes) -> None:
        if self.sc is None:
            raise LifecycleError("streaming cluster is not running")
        await self.sc.publish(channel, data)

    # ── Completion ───────────────────────────────────────────────────────

    def _running_bridge(self) -> BridgeInterface:
        if self.bridge is None:
            raise LifecycleError("bridge is not running")
        return self.bridge

    async def wait_for_requests(
        self, request_count: int, timeout: float = completion.DEFAULT_TIMEOUT
    ) -> bool:
        return await completion.wait_for_requests(
            self._running_bridge(), request_count, timeout=timeout
        )

    async def wait_for_it(
        self,
        request_count: int,
        done: asyncio.Queue[str],
        timeout: float = completion.DEFAULT_TIMEOUT,
    ) -> str:
        return await completion.wait_for_it(
            self._running_bridge(), request_count, done, timeout=timeout
        )


# ── Entry points ─────────────────────────────────────────────────────────────


async def start_test_environment_infrastructure(
    use_tls: bool,
    topics: list[str],
    bridge_factory: BridgeFactory,
    **kwargs: Any,
) -> BridgeEnvironment:
    """Kafka topics and the streaming cluster, no bridge; call ``start_bridge`` later."""
    env = BridgeEnvironment(bridge_factory, use_tls=use_tls, **kwargs)
    await env.start_infrastructure(topics)
    return env


async def start_test_environment(
    connectors: list[ConnectorConfig],
    bridge_factory: BridgeFactory,
    **kwargs: Any,
) -> BridgeEnvironment:
    env = await start_test_environment_infrastructure(
        False, collect_topics(connectors), bridge_factory, **kwargs
    )
    await env.start_bridge(connectors)
    return env


async def start_tls_test_environment(
    connectors: list[ConnectorConfig],
    bridge_factory: BridgeFactory,
    **kwargs: Any,
) -> BridgeEnvironment:
    env = await start_test_environment_infrastructure(
        True, collect_topics(connectors), bridge_factory, **kwargs
    )
    await env.start_bridge(connectors)
    return env
