"""Queue client that sends business messages and dispatches received ones."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta
from typing import Any, Callable, Iterable, Protocol

from sailscore.mqconfig import MqConfig
from sailscore.mqmessage import BusinessMessage, Message, MessageOption, MessageView

logger = logging.getLogger(__name__)

SUB_ALL = "*"

MessageHandler = Callable[[MessageView], Any]


class MqClientError(Exception):
    """Raised when the queue client cannot do what was asked."""


class Producer(Protocol):
    """The sending half of a broker connection."""

    def start(self) -> None: ...

    def send(self, message: Message) -> Any: ...

    def graceful_stop(self) -> None: ...


class Consumer(Protocol):
    """The receiving half of a broker connection."""

    def subscribe(self, topic: str, filter_expression: str) -> None: ...

    def start(self) -> None: ...

    def receive(self, max_message_num: int, invisible_duration: timedelta) -> Iterable[MessageView]: ...

    def ack(self, message: MessageView) -> None: ...

    def graceful_stop(self) -> None: ...


class Client:
    """Send messages through a producer and route consumed messages to handlers."""

    retry_delay = 1.0

    def __init__(self, config: MqConfig | None, producer: Producer, consumer: Consumer) -> None:
        if config is None:
            raise MqClientError("rocketmq config is nil")
        self.config = config
        self._producer = producer
        self._consumer = consumer
        self._handlers: dict[str, MessageHandler] = {}
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._loop_thread: threading.Thread | None = None
        try:
            producer.start()
        except Exception as exc:
            raise MqClientError(f"rocketmq init producer failed: {exc}") from exc

    @property
    def closed(self) -> bool:
        """Whether the client has been closed."""
        return self._closed.is_set()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send(self, msg: BusinessMessage) -> None:
        """Send a business message to its own topic with its tag and keys."""
        with self._lock:
            if self._closed.is_set():
                raise MqClientError("rocketmq client is closed")
            try:
                body = msg.to_bytes()
            except Exception as exc:
                raise MqClientError(f"rocketmq message to bytes failed: {exc}") from exc
            message = Message(topic=msg.topic, body=body)
            if msg.tag:
                message.tag = msg.tag
            keys = list(msg.keys)
            if keys:
                message.keys = keys
            self._producer.send(message)

    def send_with_options(self, topic: str, body: bytes, *options: MessageOption) -> None:
        """Send raw bytes to ``topic``, shaped by the given options."""
        message = Message(topic=topic, body=body).apply(*options)
        self._producer.send(message)

    def send_async(
        self, msg: BusinessMessage, callback: Callable[[Exception | None], Any] | None
    ) -> threading.Thread:
        """Send in a background thread; ``callback`` receives the error or None."""

        def run() -> None:
            error: Exception | None = None
            try:
                self.send(msg)
            except Exception as exc:
                error = exc
            if callback is not None:
                callback(error)

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        return thread

    def subscribe(self, topic: str, handler: MessageHandler) -> None:
        """Subscribe to every message on ``topic`` and route it to ``handler``."""
        with self._lock:
            if self._closed.is_set():
                raise MqClientError("rocketmq client is closed")
            try:
                self._consumer.subscribe(topic, SUB_ALL)
            except Exception as exc:
                raise MqClientError(f"rocketmq consumer subscribe failed: {exc}") from exc
            self._handlers[topic] = handler

    def start_consumer(self) -> None:
        """Start the consumer and the background receive loop."""
        try:
            self._consumer.start()
        except Exception as exc:
            raise MqClientError(f"rocketmq consumer start failed: {exc}") from exc
        self._loop_thread = threading.Thread(target=self._consume_loop, daemon=True)
        self._loop_thread.start()

    def _consume_loop(self) -> None:
        settings = self.config.consumer
        while not self._closed.is_set():
            try:
                messages = self._consumer.receive(settings.max_message_num, settings.invisible_duration)
            except Exception as exc:
                logger.error("rocketmq consumer receive failed: %s", exc)
                self._closed.wait(self.retry_delay)
                continue
            for msg in messages:
                self.handle_message(msg)

    def handle_message(self, msg: MessageView) -> bool:
        """Run the handler for ``msg`` and acknowledge it; return whether it was acked."""
        with self._lock:
            handler = self._handlers.get(msg.topic)
        if handler is None:
            logger.error("rocketmq consumer topic not found: %s", msg.topic)
            return False
        try:
            handler(msg)
        except Exception as exc:
            logger.error("rocketmq consumer handler failed: %s", exc)
            return False
        try:
            self._consumer.ack(msg)
        except Exception as exc:
            logger.error("rocketmq consumer ack failed: %s", exc)
            return False
        return True

    def close(self) -> None:
        """Stop producer and consumer; closing twice does nothing."""
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            errors: list[str] = []
            for name, part in (("producer", self._producer), ("consumer", self._consumer)):
                if part is None:
                    continue
                try:
                    part.graceful_stop()
                except Exception as exc:
                    errors.append(f"rocketmq {name} graceful stop failed: {exc}")
        if errors:
            raise MqClientError(f"rocketmq consumer failed: [{' '.join(errors)}]")