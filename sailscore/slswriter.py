"""Log writer that ships log lines and structured entries to a log service."""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple, Protocol

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class SlsConfig:
    """Where logs go: endpoint, credentials, project, logstore, topic and source."""

    endpoint: str = ""
    access_key_id: str = ""
    access_key_secret: str = ""
    security_token: str = ""
    project: str = ""
    logstore: str = ""
    topic: str = ""
    source: str = ""


class _Log(NamedTuple):
    time: int
    contents: list[tuple[str, str]]


class LogProducer(Protocol):
    """A batching producer that delivers logs to a logstore."""

    def start(self) -> None: ...

    def send_log(self, project: str, logstore: str, topic: str, source: str, log: _Log) -> Any: ...

    def close(self, timeout_ms: int) -> Any: ...


def to_string(v: Any) -> str:
    """Render any value as the text stored in a log field."""
    if v is None:
        return ""
    if isinstance(v, str):
        return v
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, int):
        return str(v)
    if isinstance(v, float):
        return f"{v:f}"
    if isinstance(v, BaseException):
        return str(v)
    return str(v)


class Writer:
    """Send raw log lines and leveled entries through a log producer.

    Delivery failures are ignored, so logging never breaks the caller.
    """

    close_timeout_ms = 5000

    def __init__(self, config: SlsConfig, producer: LogProducer) -> None:
        self.config = config
        self._producer = producer
        producer.start()

    def __enter__(self) -> "Writer":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _send(self, contents: list[tuple[str, str]]) -> None:
        cfg = self.config
        log = _Log(int(time.time()), contents)
        with contextlib.suppress(Exception):
            self._producer.send_log(cfg.project, cfg.logstore, cfg.topic, cfg.source, log)

    def write(self, data: bytes | str) -> int:
        """Send one raw line as a ``content`` field; return the input length."""
        text = data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray)) else data
        content = text.strip()
        if content:
            self._send([("content", content)])
        return len(data)

    def _write_log(self, level: str, v: Any, fields: dict[str, Any]) -> None:
        contents = [
            ("level", level),
            ("message", to_string(v)),
            ("timestamp", datetime.now().strftime(_TIMESTAMP_FORMAT)),
        ]
        contents.extend((key, to_string(value)) for key, value in fields.items())
        self._send(contents)

    def alert(self, v: Any) -> None:
        """Log at alert level."""
        self._write_log("alert", v, {})

    def close(self) -> None:
        """Flush and stop the producer, waiting up to five seconds."""
        if self._producer is not None:
            self._producer.close(self.close_timeout_ms)

    def debug(self, v: Any, **fields: Any) -> None:
        """Log at debug level with extra fields."""
        self._write_log("debug", v, fields)

    def error(self, v: Any, **fields: Any) -> None:
        """Log at error level with extra fields."""
        self._write_log("error", v, fields)

    def info(self, v: Any, **fields: Any) -> None:
        """Log at info level with extra fields."""
        self._write_log("info", v, fields)

    def severe(self, v: Any) -> None:
        """Log at severe level."""
        self._write_log("severe", v, {})

    def slow(self, v: Any, **fields: Any) -> None:
        """Log a slow-call entry with extra fields."""
        self._write_log("slow", v, fields)

    def stack(self, v: Any) -> None:
        """Log a stack trace entry."""
        self._write_log("stack", v, {})

    def stat(self, v: Any, **fields: Any) -> None:
        """Log a statistics entry with extra fields."""
        self._write_log("stat", v, fields)