import threading

import pytest

from sailscore.messages import OrderMessage, PaymentMessage
from sailscore.mqclient import Client, MqClientError
from sailscore.mqconfig import default_config
from sailscore.mqmessage import MessageView
from sailscore.processor import ConsumerManager, MessageProcessor, TagConsumer


class FakeProducer:
    def start(self):
        pass

    def send(self, message):
        return None

    def graceful_stop(self):
        pass


class FakeConsumer:
    def __init__(self):
        self.subscriptions = []
        self.started = False
        self.acked = []
        self._stop = threading.Event()

    def subscribe(self, topic, filter_expression):
        self.subscriptions.append((topic, filter_expression))

    def start(self):
        self.started = True

    def receive(self, max_message_num, invisible_duration):
        self._stop.wait(0.01)
        return []

    def ack(self, message):
        self.acked.append(message)

    def graceful_stop(self):
        self._stop.set()


@pytest.fixture
def consumer():
    return FakeConsumer()


@pytest.fixture
def client(consumer):
    c = Client(default_config(), FakeProducer(), consumer)
    yield c
    c.close()


def order_view(status="CREATED", tag=None, order_id="o-1"):
    body = OrderMessage(order_id=order_id, status=status).to_bytes()
    return MessageView(message_id="m-1", topic="order_topic", body=body, tag=tag)


def payment_view(tag=None):
    body = PaymentMessage(payment_id="p-1", order_id="o-1", status="success").to_bytes()
    return MessageView(message_id="m-2", topic="payment_topic", body=body, tag=tag)


@pytest.mark.parametrize("status", ["CREATED", "PAID", "CANCELLED"])
def test_process_order_known_status(status):
    order = MessageProcessor().process_order_message(order_view(status))
    assert order.order_id == "o-1"
    assert order.status == status


def test_process_order_unknown_status():
    assert MessageProcessor().process_order_message(order_view("SHIPPED")) is None


def test_process_order_bad_body():
    view = MessageView(topic="order_topic", body=b"not json")
    with pytest.raises(ValueError):
        MessageProcessor().process_order_message(view)


def test_process_payment():
    payment = MessageProcessor().process_payment_message(payment_view())
    assert (payment.payment_id, payment.order_id) == ("p-1", "o-1")


def test_process_payment_bad_body():
    with pytest.raises(ValueError):
        MessageProcessor().process_payment_message(MessageView(body=b"{"))


def test_consumer_manager_start(client, consumer):
    ConsumerManager(client).start()
    assert [topic for topic, _ in consumer.subscriptions] == ["order_topic", "payment_topic"]
    assert consumer.started is True
    assert client.handle_message(order_view()) is True
    assert client.handle_message(payment_view()) is True


def test_consumer_manager_routes_and_acks(client, consumer):
    ConsumerManager(client, MessageProcessor()).start()
    good = order_view()
    assert client.handle_message(good) is True
    bad = MessageView(topic="payment_topic", body=b"garbage")
    assert client.handle_message(bad) is False
    assert consumer.acked == [good]


def test_consumer_manager_on_closed_client(client):
    client.close()
    with pytest.raises(MqClientError):
        ConsumerManager(client).start()


@pytest.mark.parametrize("tag", ["created", "paid", "canceled"])
def test_tag_consumer_order_supported(client, tag):
    order = TagConsumer(client).handle_order_message(order_view(tag=tag, order_id="o-9"))
    assert order.order_id == "o-9"


@pytest.mark.parametrize("tag", ["shipped", None])
def test_tag_consumer_order_unsupported(client, tag):
    assert TagConsumer(client).handle_order_message(order_view(tag=tag)) is None


def test_tag_consumer_order_bad_body(client):
    with pytest.raises(ValueError):
        TagConsumer(client).handle_order_message(MessageView(body=b"[", tag="created"))


@pytest.mark.parametrize("tag", ["success", "failed"])
def test_tag_consumer_payment_supported(client, tag):
    payment = TagConsumer(client).handle_payment_message(payment_view(tag=tag))
    assert payment.payment_id == "p-1"


def test_tag_consumer_payment_unsupported(client):
    assert TagConsumer(client).handle_payment_message(payment_view(tag="refund")) is None


def test_tag_consumer_start_subscribes(client, consumer):
    TagConsumer(client).start()
    assert {topic for topic, _ in consumer.subscriptions} == {"order_topic", "payment_topic"}
    assert client.handle_message(payment_view(tag="success")) is True