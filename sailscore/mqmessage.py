"""Outgoing and received queue messages, and options that shape them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Protocol, Union, runtime_checkable


@dataclass
class Message:
    """A message about to be sent to a topic."""

    topic: str
    body: bytes
    tag: str | None = None
    keys: list[str] = field(default_factory=list)
    delay_timestamp: datetime | None = None
    message_group: str | None = None
    properties: dict[str, str] = field(default_factory=dict)

    def apply(self, *options: "MessageOption") -> "Message":
        """Apply each option in order and return the message."""
        for option in options:
            option(self)
        return self


MessageOption = Callable[[Message], None]


@dataclass
class MessageView:
    """A message as delivered to a consumer."""

    message_id: str = ""
    topic: str = ""
    body: bytes = b""
    tag: str | None = None
    keys: list[str] = field(default_factory=list)
    properties: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class BusinessMessage(Protocol):
    """A domain message that knows its topic, tag, keys and wire form."""

    @property
    def topic(self) -> str: ...

    @property
    def tag(self) -> str: ...

    @property
    def keys(self) -> list[str]: ...

    def to_bytes(self) -> bytes: ...


def with_tag(tag: str) -> MessageOption:
    """Set the message tag."""

    def option(msg: Message) -> None:
        msg.tag = tag

    return option


def with_keys(*keys: str) -> MessageOption:
    """Replace the message keys."""

    def option(msg: Message) -> None:
        msg.keys = list(keys)

    return option


def with_delay(delay: Union[timedelta, float]) -> MessageOption:
    """Deliver the message only after ``delay`` (a timedelta or seconds)."""
    if not isinstance(delay, timedelta):
        delay = timedelta(seconds=delay)

    def option(msg: Message) -> None:
        msg.delay_timestamp = datetime.now().astimezone() + delay

    return option


def with_fifo(group: str) -> MessageOption:
    """Put the message in a FIFO message group."""

    def option(msg: Message) -> None:
        msg.message_group = group

    return option


def with_property(key: str, value: str) -> MessageOption:
    """Add a user property to the message."""

    def option(msg: Message) -> None:
        msg.properties[key] = value

    return option