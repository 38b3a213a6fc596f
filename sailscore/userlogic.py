"""User-facing request handling that publishes order and payment events."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sailscore.messages import OrderMessage, PaymentMessage
from sailscore.mqclient import Client, MqClientError

logger = logging.getLogger(__name__)

_ALLOWED_NAMES = ("you", "me")


@dataclass
class HelloRequest:
    """Body of a hello request, with the order it pays for."""

    name: str
    page: int = 1
    limit: int = 10
    order_id: str = ""
    user_id: str = ""
    amount: float = 0.0


@dataclass
class UserRequest:
    """Path parameters of a user request; ``name`` must be ``you`` or ``me``."""

    name: str

    def __post_init__(self) -> None:
        if self.name not in _ALLOWED_NAMES:
            raise ValueError(f"value {self.name!r} for field 'name' is not defined in options {list(_ALLOWED_NAMES)}")


@dataclass
class Greeting:
    """Response body carrying a greeting."""

    hello: str


class UserService:
    """Handle user requests by publishing events to the queue."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def _send(self, msg: OrderMessage | PaymentMessage, what: str) -> None:
        try:
            self.client.send(msg)
        except Exception as exc:
            logger.error("rocketmq send %s message error: %s", what, exc)
            raise MqClientError(f"rocketmq send {what} message error: {exc}") from exc

    def hello(self, req: HelloRequest) -> Greeting:
        """Publish a payment event and an order-paid event, then greet."""
        payment = PaymentMessage(
            payment_id=str(uuid.uuid4()),
            order_id=req.order_id,
            user_id=req.user_id,
            amount=req.amount,
            method="alipay",
            status="created",
            process_time=datetime.now().astimezone(),
        )
        self._send(payment, "payment")
        order = OrderMessage(
            order_id=req.order_id,
            status="paid",
            update_time=datetime.now().astimezone(),
        )
        self._send(order, "order")
        return Greeting(hello="hello " + req.name)

    def user(self, req: UserRequest) -> Greeting:
        """Publish a new order event for the user, then greet."""
        now = datetime.now().astimezone()
        order = OrderMessage(
            order_id=str(uuid.uuid4()),
            user_id=req.name,
            amount=100,
            status="created",
            product_info={"name": "test"},
            create_time=now,
            update_time=now,
        )
        self._send(order, "order")
        logger.info("rocketmq send order message success, orderID=%s", order.order_id)
        return Greeting(hello="hello " + req.name)