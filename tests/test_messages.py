import json
from datetime import datetime, timedelta, timezone

import pytest

from sailscore.messages import InventoryMessage, OrderMessage, PaymentMessage


def test_order_routing():
    msg = OrderMessage(order_id="o1", status="CREATED")
    assert (msg.topic, msg.tag, msg.keys) == ("order_topic", "CREATED", ["o1"])


def test_payment_routing():
    msg = PaymentMessage(payment_id="p1", order_id="o1", status="success")
    assert (msg.topic, msg.tag, msg.keys) == ("payment_topic", "success", ["p1", "o1"])


def test_inventory_routing_keeps_empty_order_key():
    msg = InventoryMessage(product_id="p1", operation="LOCK")
    assert (msg.topic, msg.tag, msg.keys) == ("inventory_topic", "LOCK", ["p1", ""])


def test_inventory_omits_empty_optional_ids():
    msg = InventoryMessage(product_id="p1", sku="s1", quantity=2, operation="LOCK")
    assert msg.to_bytes() == b'{"product_id":"p1","sku":"s1","quantity":2,"operation":"LOCK"}'


def test_inventory_includes_optional_ids_when_set():
    msg = InventoryMessage(product_id="p1", order_id="o1", warehouse_id="w1")
    data = json.loads(msg.to_bytes())
    assert data["order_id"] == "o1"
    assert data["warehouse_id"] == "w1"


def test_order_zero_times_and_omitted_product_info():
    data = OrderMessage(order_id="o1").to_bytes()
    assert b'"create_time":"0001-01-01T00:00:00Z"' in data
    assert b"product_info" not in data


def test_order_field_order_and_integral_amount():
    data = OrderMessage(order_id="o1", amount=100.0, product_info={"name": "test"}).to_bytes()
    keys = list(json.loads(data))
    assert keys == ["order_id", "user_id", "amount", "status", "product_info", "create_time", "update_time"]
    assert b'"amount":100,' in data


def test_html_characters_escaped():
    data = PaymentMessage(user_id="<a&b>").to_bytes()
    assert b"\\u003ca\\u0026b\\u003e" in data
    assert PaymentMessage.from_bytes(data).user_id == "<a&b>"


def test_order_round_trip():
    moment = datetime(2024, 1, 2, 3, 4, 5, 120000, tzinfo=timezone(timedelta(hours=8)))
    msg = OrderMessage(
        order_id="o1",
        user_id="u1",
        amount=12.5,
        status="PAID",
        product_info={"name": "test", "tags": ["a", "b"]},
        create_time=moment,
        update_time=moment,
    )
    assert OrderMessage.from_bytes(msg.to_bytes()) == msg


def test_payment_round_trip():
    msg = PaymentMessage(
        payment_id="p1",
        order_id="o1",
        user_id="u1",
        amount=9.99,
        method="alipay",
        status="created",
        process_time=datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc),
    )
    assert PaymentMessage.from_bytes(msg.to_bytes()) == msg


def test_inventory_round_trip():
    msg = InventoryMessage(product_id="p1", sku="s1", quantity=3, operation="DEDUCT", order_id="o1")
    assert InventoryMessage.from_bytes(msg.to_bytes()) == msg


def test_naive_time_keeps_instant():
    moment = datetime(2024, 3, 4, 5, 6, 7, 890000)
    parsed = OrderMessage.from_bytes(OrderMessage(create_time=moment).to_bytes())
    assert parsed.create_time == moment.astimezone()


def test_nanosecond_fraction_is_truncated():
    msg = OrderMessage.from_bytes(b'{"create_time":"2024-01-02T03:04:05.123456789+08:00"}')
    assert msg.create_time == datetime(2024, 1, 2, 3, 4, 5, 123456, tzinfo=timezone(timedelta(hours=8)))


def test_missing_fields_take_zero_values():
    msg = OrderMessage.from_bytes(b'{"order_id":"o1"}')
    assert msg == OrderMessage(order_id="o1")


def test_invalid_json_raises():
    with pytest.raises(ValueError):
        OrderMessage.from_bytes(b"not json")


def test_non_object_raises():
    with pytest.raises(ValueError):
        PaymentMessage.from_bytes(b"[1, 2]")


def test_wrong_field_type_raises():
    with pytest.raises(ValueError):
        OrderMessage.from_bytes(b'{"amount":"lots"}')
    with pytest.raises(ValueError):
        InventoryMessage.from_bytes(b'{"quantity":2.5}')


def test_nan_amount_cannot_be_encoded():
    with pytest.raises(ValueError):
        OrderMessage(amount=float("nan")).to_bytes()