"""Connection, producer and consumer settings for the message queue client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass
class ProducerConfig:
    """Settings for the sending side."""

    topics: list[str] = field(default_factory=list)
    timeout: timedelta = timedelta(0)
    retries: int = 0


@dataclass
class ConsumerConfig:
    """Settings for the receiving side."""

    group: str = ""
    await_duration: timedelta = timedelta(0)
    max_message_num: int = 0
    invisible_duration: timedelta = timedelta(0)


@dataclass
class MqConfig:
    """Full client configuration: endpoint, credentials and both sides."""

    endpoint: str = ""
    access_key: str = ""
    secret_key: str = ""
    namespace: str = ""
    producer: ProducerConfig = field(default_factory=ProducerConfig)
    consumer: ConsumerConfig = field(default_factory=ConsumerConfig)


def default_config() -> MqConfig:
    """Return a configuration with the standard producer and consumer defaults."""
    return MqConfig(
        producer=ProducerConfig(
            topics=["default_topic"],
            timeout=timedelta(seconds=3),
            retries=3,
        ),
        consumer=ConsumerConfig(
            group="default_group",
            await_duration=timedelta(seconds=15),
            max_message_num=32,
            invisible_duration=timedelta(seconds=20),
        ),
    )