"""Direct Kafka access that bypasses the bridge, using confluent-kafka.

Every call builds its client configuration through ``client_config`` so the
TLS settings (when enabled) are applied identically to admin, producer and
consumer clients.
"""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any

from bridge_testenv.errors import ConnectivityError, ProvisioningError
from bridge_testenv.services.logger.interface import LoggingInterface
from bridge_testenv.services.tls.material import TLSMaterial

# librdkafka lower bounds for the socket timeouts
_MIN_SOCKET_TIMEOUT_MS = 10
_MIN_SETUP_TIMEOUT_MS = 1000

CREATE_TOPIC_DEADLINE = 15.0  # seconds
MAX_FETCH_BYTES = 10_000


class KafkaBypassClient:
    def __init__(
        self,
        host_port: str,
        tls: TLSMaterial | None = None,
        group_prefix: str = "kbt",
        logger: LoggingInterface | None = None,
    ) -> None:
        self.host_port = host_port
        self._tls = tls
        self._group_prefix = group_prefix
        self._log = logger

    @property
    def use_tls(self) -> bool:
        return self._tls is not None

    def client_config(self, timeout_ms: int) -> dict[str, Any]:
        conf: dict[str, Any] = {
            "bootstrap.servers": self.host_port,
            "broker.address.family": "any",
            "socket.timeout.ms": max(timeout_ms, _MIN_SOCKET_TIMEOUT_MS),
            "socket.connection.setup.timeout.ms": max(timeout_ms, _MIN_SETUP_TIMEOUT_MS),
        }
        if self._tls is not None:
            conf.update({
                "security.protocol": "SSL",
                "ssl.certificate.location": self._tls.client_cert,
                "ssl.key.location": self._tls.client_key,
                "ssl.ca.location": self._tls.ca_file,
            })
        return conf

    def group_id(self, topic: str) -> str:
        return f"{self._group_prefix}-{topic}"

    def check_reachable(self, timeout_ms: int) -> None:
        """Fail unless the broker answers a metadata request naming a controller."""
        from confluent_kafka import KafkaException
        from confluent_kafka.admin import AdminClient

        try:
            admin = AdminClient(self.client_config(timeout_ms))
            metadata = admin.list_topics(timeout=timeout_ms / 1000)
        except KafkaException as exc:
            raise ConnectivityError(f"unable to connect to kafka server, {exc}") from exc

        if metadata.controller_id < 0:
            raise ConnectivityError(
                "unable to connect to kafka server, no controller reported"
            )
        self._debug("Kafka reachable", host=self.host_port, controller=metadata.controller_id)

    def create_topic(self, topic: str, timeout_ms: int) -> None:
        """Create *topic* with one partition and replication factor 1.

        The broker's own error (including "topic already exists") is raised.
        """
        from confluent_kafka import KafkaException
        from confluent_kafka.admin import AdminClient, NewTopic

        try:
            admin = AdminClient(self.client_config(timeout_ms))
            admin.list_topics(timeout=timeout_ms / 1000)
        except KafkaException as exc:
            raise ConnectivityError("unable to connect to kafka server") from exc

        futures = admin.create_topics(
            [NewTopic(topic, num_partitions=1, replication_factor=1)],
            request_timeout=CREATE_TOPIC_DEADLINE,
        )
        try:
            futures[topic].result(timeout=CREATE_TOPIC_DEADLINE)
        except (KafkaException, FutureTimeout) as exc:
            raise ProvisioningError(f"unable to create topic {topic}: {exc}") from exc
        self._debug("Created topic", topic=topic)

    def produce(self, topic: str, payload: bytes, timeout_ms: int) -> None:
        """Write one unkeyed record to partition 0 of *topic*."""
        from confluent_kafka import KafkaException, Producer

        conf = self.client_config(timeout_ms)
        conf["message.timeout.ms"] = max(timeout_ms, 1)
        producer = Producer(conf)

        failures: list[Any] = []

        def on_delivery(err: Any, msg: Any) -> None:
            if err is not None:
                failures.append(err)

        producer.produce(topic, value=payload, partition=0, on_delivery=on_delivery)
        remaining = producer.flush(timeout_ms / 1000)
        if remaining:
            raise ConnectivityError(
                f"message to {topic} not delivered within {timeout_ms}ms"
            )
        if failures:
            raise ConnectivityError(
                f"message to {topic} not delivered: {failures[0]}"
            ) from KafkaException(failures[0])

    def new_consumer(self, topic: str, timeout_ms: int) -> Any:
        """Return a subscribed consumer in group ``<prefix>-<topic>``; caller closes it."""
        from confluent_kafka import Consumer

        conf = self.client_config(timeout_ms)
        conf.update({
            "group.id": self.group_id(topic),
            "fetch.min.bytes": 1,
            "max.partition.fetch.bytes": MAX_FETCH_BYTES,
            "auto.offset.reset": "earliest",
        })
        consumer = Consumer(conf)
        consumer.subscribe([topic])
        return consumer

    def consume(self, consumer: Any, timeout_ms: int) -> tuple[bytes | None, bytes | None]:
        """Read one record; ``(None, None)`` when nothing arrives in time."""
        from confluent_kafka import KafkaException

        msg = consumer.poll(timeout_ms / 1000)
        if msg is None:
            return None, None
        if msg.error():
            raise KafkaException(msg.error())
        if msg.value() is None:
            return None, None
        return msg.key(), msg.value()

    def _debug(self, msg: str, **ctx: Any) -> None:
        if self._log:
            self._log.debug(msg, **ctx)
