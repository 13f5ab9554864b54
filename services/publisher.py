"""Publishing of records to broker topics bound to logical channels."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, is_dataclass
from functools import lru_cache
from threading import Event
from typing import Any, Dict, Mapping, NoReturn, Optional, Protocol

from confluent_kafka import KafkaError, KafkaException, Message, SerializingProducer
from confluent_kafka.schema_registry import SchemaRegistryClient
from confluent_kafka.schema_registry.avro import AvroSerializer
from confluent_kafka.schema_registry.error import SchemaRegistryError
from confluent_kafka.serialization import SerializationContext, StringSerializer

from models.records import SENSOR_SCHEMA_STR
from settings import Settings, get_settings

SUPPLIER_CHANNEL = "supplier-out-0"

logger = logging.getLogger(__name__)


class PublishError(RuntimeError):
    """Raised when a record could not be handed to the broker."""

    def __init__(self, channel: str, topic: str, reason: str) -> None:
        super().__init__(f"Failed to publish to {channel!r} (topic {topic!r}): {reason}")
        self.channel = channel
        self.topic = topic
        self.reason = reason


@dataclass(frozen=True)
class DeliveryReceipt:
    channel: str
    topic: str
    partition: int
    offset: int


class Publisher(Protocol):
    def send(self, channel: str, value: Any) -> DeliveryReceipt:
        ...


class _DeliveryReport:
    """Collects the delivery callback for a single produced message."""

    def __init__(self) -> None:
        self.error: Optional[KafkaError] = None
        self.message: Optional[Message] = None
        self._done = Event()

    def __call__(self, err: Optional[KafkaError], msg: Message) -> None:
        self.error = err
        self.message = msg
        self._done.set()

    def wait(self, timeout: float) -> bool:
        return self._done.wait(timeout)


def _value_to_dict(value: Any, _ctx: SerializationContext) -> Dict[str, Any]:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return dict(value)


class StreamBridge:
    """Sends values to the topic bound to a named output channel."""

    def __init__(
        self,
        producer: SerializingProducer,
        bindings: Mapping[str, str],
        delivery_timeout: float = 10.0,
    ) -> None:
        self.producer = producer
        self.bindings = dict(bindings)
        self.delivery_timeout = delivery_timeout

    def resolve_topic(self, channel: str) -> str:
        topic = self.bindings.get(channel)
        if topic is None:
            logger.debug(
                "No binding for channel; using it as a dynamic destination.",
                extra={"channel": channel, "topic": channel},
            )
            return channel
        return topic

    def send(self, channel: str, value: Any) -> DeliveryReceipt:
        """Serialize ``value`` and block until the broker acknowledges it."""
        topic = self.resolve_topic(channel)
        record_id = getattr(value, "id", None)
        report = _DeliveryReport()
        deadline = time.monotonic() + self.delivery_timeout

        try:
            self.producer.produce(topic=topic, value=value, on_delivery=report)
            self.producer.flush(self.delivery_timeout)
        except (KafkaException, SchemaRegistryError, BufferError) as exc:
            self._fail(channel, topic, str(exc), exc)

        if not report.wait(max(deadline - time.monotonic(), 0.0)):
            self._fail(
                channel,
                topic,
                f"delivery not confirmed within {self.delivery_timeout}s",
            )
        if report.error is not None:
            self._fail(channel, topic, report.error.str())

        message = report.message
        assert message is not None
        receipt = DeliveryReceipt(
            channel=channel,
            topic=message.topic(),
            partition=message.partition(),
            offset=message.offset(),
        )
        logger.info(
            "Record delivered.",
            extra={
                "channel": channel,
                "topic": receipt.topic,
                "partition": receipt.partition,
                "offset": receipt.offset,
                "record_id": record_id,
            },
        )
        return receipt

    def close(self) -> None:
        """Flush pending messages before the producer is discarded."""
        remaining = self.producer.flush(self.delivery_timeout)
        if remaining:
            logger.warning(
                "Producer closed with undelivered messages.",
                extra={"reason": f"{remaining} pending"},
            )

    @staticmethod
    def _fail(
        channel: str,
        topic: str,
        reason: str,
        cause: Optional[BaseException] = None,
    ) -> NoReturn:
        logger.error(
            "Publish failed.",
            extra={"channel": channel, "topic": topic, "reason": reason},
        )
        raise PublishError(channel, topic, reason) from cause


def build_producer(settings: Settings) -> SerializingProducer:
    """Create a producer that Avro-encodes values through the schema registry."""
    registry = SchemaRegistryClient({"url": settings.schema_registry_url})
    value_serializer = AvroSerializer(
        registry,
        SENSOR_SCHEMA_STR,
        to_dict=_value_to_dict,
        conf={"auto.register.schemas": settings.auto_register_schemas},
    )
    return SerializingProducer(
        {
            "bootstrap.servers": settings.bootstrap_servers,
            "client.id": settings.client_id,
            "key.serializer": StringSerializer("utf_8"),
            "value.serializer": value_serializer,
        }
    )


@lru_cache
def build_default_bridge() -> StreamBridge:
    """Factory that wires the bridge from environment settings."""
    settings = get_settings()
    return StreamBridge(
        producer=build_producer(settings),
        bindings=settings.bindings,
        delivery_timeout=settings.delivery_timeout,
    )
