"""Order, payment and inventory messages exchanged over the queue."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIME_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?(Z|[+-]\d{2}:\d{2})"
)


def _format_time(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.astimezone()
    text = (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
        f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )
    if dt.microsecond:
        text += "." + f"{dt.microsecond:06d}".rstrip("0")
    offset = dt.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def _parse_time(text: str) -> datetime:
    match = _TIME_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid time: {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction, zone = match.group(7), match.group(8)
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def _json_number(value: float) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _sorted_map(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _sorted_map(value[key]) for key in sorted(value)}
    if isinstance(value, list):
        return [_sorted_map(item) for item in value]
    return value


def _dumps(payload: dict[str, Any]) -> bytes:
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    text = (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )
    return text.encode("utf-8")


def _load(data: bytes | str) -> dict[str, Any]:
    obj = json.loads(data)
    if obj is None:
        return {}
    if not isinstance(obj, dict):
        raise ValueError("message must be a JSON object")
    return obj


def _str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _float(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"field {key!r} must be a number")
    return float(value)


def _int(data: dict[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer")
    return value


def _time(data: dict[str, Any], key: str) -> datetime:
    value = data.get(key)
    if value is None:
        return _ZERO_TIME
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a time string")
    return _parse_time(value)


@dataclass
class OrderMessage:
    """An order event; its tag is the order status."""

    order_id: str = ""
    user_id: str = ""
    amount: float = 0.0
    status: str = ""
    product_info: dict[str, Any] | None = None
    create_time: datetime = _ZERO_TIME
    update_time: datetime = _ZERO_TIME

    @property
    def topic(self) -> str:
        return "order_topic"

    @property
    def tag(self) -> str:
        return self.status

    @property
    def keys(self) -> list[str]:
        return [self.order_id]

    def to_bytes(self) -> bytes:
        """Encode the message as JSON."""
        payload: dict[str, Any] = {
            "order_id": self.order_id,
            "user_id": self.user_id,
            "amount": _json_number(self.amount),
            "status": self.status,
        }
        if self.product_info:
            payload["product_info"] = _sorted_map(self.product_info)
        payload["create_time"] = _format_time(self.create_time)
        payload["update_time"] = _format_time(self.update_time)
        return _dumps(payload)

    @classmethod
    def from_bytes(cls, data: bytes | str) -> "OrderMessage":
        """Decode a message produced by :meth:`to_bytes`."""
        obj = _load(data)
        info = obj.get("product_info")
        if info is not None and not isinstance(info, dict):
            raise ValueError("field 'product_info' must be an object")
        return cls(
            order_id=_str(obj, "order_id"),
            user_id=_str(obj, "user_id"),
            amount=_float(obj, "amount"),
            status=_str(obj, "status"),
            product_info=info,
            create_time=_time(obj, "create_time"),
            update_time=_time(obj, "update_time"),
        )


@dataclass
class PaymentMessage:
    """A payment event; keyed by payment and order id."""

    payment_id: str = ""
    order_id: str = ""
    user_id: str = ""
    amount: float = 0.0
    method: str = ""
    status: str = ""
    process_time: datetime = _ZERO_TIME

    @property
    def topic(self) -> str:
        return "payment_topic"

    @property
    def tag(self) -> str:
        return self.status

    @property
    def keys(self) -> list[str]:
        return [self.payment_id, self.order_id]

    def to_bytes(self) -> bytes:
        """Encode the message as JSON."""
        return _dumps(
            {
                "payment_id": self.payment_id,
                "order_id": self.order_id,
                "user_id": self.user_id,
                "amount": _json_number(self.amount),
                "method": self.method,
                "status": self.status,
                "process_time": _format_time(self.process_time),
            }
        )

    @classmethod
    def from_bytes(cls, data: bytes | str) -> "PaymentMessage":
        """Decode a message produced by :meth:`to_bytes`."""
        obj = _load(data)
        return cls(
            payment_id=_str(obj, "payment_id"),
            order_id=_str(obj, "order_id"),
            user_id=_str(obj, "user_id"),
            amount=_float(obj, "amount"),
            method=_str(obj, "method"),
            status=_str(obj, "status"),
            process_time=_time(obj, "process_time"),
        )


@dataclass
class InventoryMessage:
    """A stock operation (LOCK, UNLOCK, DEDUCT); its tag is the operation."""

    product_id: str = ""
    sku: str = ""
    quantity: int = 0
    operation: str = ""
    order_id: str = ""
    warehouse_id: str = ""
    extra: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def topic(self) -> str:
        return "inventory_topic"

    @property
    def tag(self) -> str:
        return self.operation

    @property
    def keys(self) -> list[str]:
        return [self.product_id, self.order_id]

    def to_bytes(self) -> bytes:
        """Encode the message as JSON, leaving out empty optional ids."""
        payload: dict[str, Any] = {
            "product_id": self.product_id,
            "sku": self.sku,
            "quantity": self.quantity,
            "operation": self.operation,
        }
        if self.order_id:
            payload["order_id"] = self.order_id
        if self.warehouse_id:
            payload["warehouse_id"] = self.warehouse_id
        return _dumps(payload)

    @classmethod
    def from_bytes(cls, data: bytes | str) -> "InventoryMessage":
        """Decode a message produced by :meth:`to_bytes`."""
        obj = _load(data)
        return cls(
            product_id=_str(obj, "product_id"),
            sku=_str(obj, "sku"),
            quantity=_int(obj, "quantity"),
            operation=_str(obj, "operation"),
            order_id=_str(obj, "order_id"),
            warehouse_id=_str(obj, "warehouse_id"),
        )