"""Consumers that decode queued order and payment messages and act on them."""

from __future__ import annotations

import logging

from sailscore.messages import OrderMessage, PaymentMessage
from sailscore.mqclient import Client
from sailscore.mqmessage import MessageView

logger = logging.getLogger(__name__)

ORDER_TOPIC = "order_topic"
PAYMENT_TOPIC = "payment_topic"


class MessageProcessor:
    """Dispatch order messages by status and payment messages to their handler."""

    def process_order_message(self, msg: MessageView) -> OrderMessage | None:
        """Decode and handle an order; return it, or None for an unknown status.

        Raises ValueError when the body is not a valid order message.
        """
        logger.info("Processing order message: id=%s", msg.message_id)
        try:
            order = OrderMessage.from_bytes(msg.body)
        except ValueError as exc:
            logger.error("Failed to parse order message: %s", exc)
            raise
        handlers = {
            "CREATED": self._handle_order_created,
            "PAID": self._handle_order_paid,
            "CANCELLED": self._handle_order_cancelled,
        }
        handler = handlers.get(order.status)
        if handler is None:
            logger.info("Unknown order status: %s", order.status)
            return None
        handler(order)
        return order

    def process_payment_message(self, msg: MessageView) -> PaymentMessage:
        """Decode and handle a payment; raises ValueError on a bad body."""
        logger.info("Processing payment message: id=%s", msg.message_id)
        try:
            payment = PaymentMessage.from_bytes(msg.body)
        except ValueError as exc:
            logger.error("Failed to parse payment message: %s", exc)
            raise
        self._handle_payment_success(payment)
        return payment

    def _handle_order_created(self, order: OrderMessage) -> None:
        logger.info("Handling order created: %s", order.order_id)

    def _handle_order_paid(self, order: OrderMessage) -> None:
        logger.info("Handling order paid: %s", order.order_id)

    def _handle_order_cancelled(self, order: OrderMessage) -> None:
        logger.info("Handling order cancelled: %s", order.order_id)

    def _handle_payment_success(self, payment: PaymentMessage) -> None:
        logger.info("Handling payment success: %s", payment.payment_id)


class ConsumerManager:
    """Subscribe a processor to the order and payment topics and start consuming."""

    def __init__(self, client: Client, processor: MessageProcessor | None = None) -> None:
        self.client = client
        self.processor = processor or MessageProcessor()

    def start(self) -> None:
        """Subscribe both topics, then start the consumer."""
        logger.info("Starting message consumers...")
        self.client.subscribe(ORDER_TOPIC, self.processor.process_order_message)
        logger.info("Subscribed to %s", ORDER_TOPIC)
        self.client.subscribe(PAYMENT_TOPIC, self.processor.process_payment_message)
        logger.info("Subscribed to %s", PAYMENT_TOPIC)
        self.client.start_consumer()
        logger.info("All message consumers started successfully")


class TagConsumer:
    """Consumer that dispatches on the message tag rather than the body status."""

    _ORDER_TAGS = frozenset({"created", "paid", "canceled"})
    _PAYMENT_TAGS = frozenset({"success", "failed"})

    def __init__(self, client: Client) -> None:
        self.client = client

    def start(self) -> None:
        """Subscribe both topics, then start the consumer."""
        self.client.subscribe(ORDER_TOPIC, self.handle_order_message)
        self.client.subscribe(PAYMENT_TOPIC, self.handle_payment_message)
        self.client.start_consumer()

    def handle_order_message(self, msg: MessageView) -> OrderMessage | None:
        """Decode an order; return it for a supported tag, otherwise None."""
        logger.info("rocketmq receive order message: id=%s, tag=%s", msg.message_id, msg.tag)
        try:
            order = OrderMessage.from_bytes(msg.body)
        except ValueError as exc:
            logger.error("rocketmq unmarshal order message failed, err=%s", exc)
            raise
        if msg.tag not in self._ORDER_TAGS:
            logger.info("rocketmq receive order message: tag=%s not support", msg.tag)
            return None
        if msg.tag == "created":
            self._handle_order_created(order)
        return order

    def handle_payment_message(self, msg: MessageView) -> PaymentMessage | None:
        """Decode a payment; handle and return it for a supported tag, otherwise None."""
        logger.info("rocketmq receive payment message: id=%s", msg.message_id)
        try:
            payment = PaymentMessage.from_bytes(msg.body)
        except ValueError as exc:
            logger.error("rocketmq unmarshal payment message failed, err=%s", exc)
            raise
        if msg.tag not in self._PAYMENT_TAGS:
            logger.info("rocketmq receive payment message: tag=%s not support", msg.tag)
            return None
        self._handle_payment_success(payment)
        return payment

    def _handle_order_created(self, order: OrderMessage) -> None:
        logger.info("rocketmq processing order create: %s", order.order_id)

    def _handle_payment_success(self, payment: PaymentMessage) -> None:
        logger.info("rocketmq processing payment success: %s", payment.payment_id)