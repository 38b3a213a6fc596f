"""WSGI middleware that writes one structured log line per HTTP request."""

from __future__ import annotations

import inspect
import io
import json
import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping
from urllib.parse import parse_qs

_BODY_CAPTURE_LIMIT = 3000
_RESPONSE_BODY_LOG_LIMIT = 1500
_REQUEST_BODY_LOG_LIMIT = 1000
_USER_AGENT_LIMIT = 60

_METHOD_COLOURS = {
    "GET": "1;97;46",
    "POST": "1;97;42",
    "PUT": "1;30;43",
    "DELETE": "1;97;41",
    "PATCH": "1;97;45",
}


def _to_json(obj: Any) -> str:
    text = json.dumps(obj, ensure_ascii=False, sort_keys=True, separators=(",", ":"))
    return (
        text.replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def flatten_params(params: Mapping[str, list[str]]) -> dict[str, Any]:
    """Collapse single-valued parameter lists to their only value."""
    return {key: values[0] if len(values) == 1 else list(values) for key, values in params.items()}


def limit_string(s: str, limit: int) -> str:
    """Cut ``s`` to ``limit`` characters, marking the cut with ``...``."""
    return s if len(s) <= limit else s[:limit] + "..."


def status_code_highlight(code: int) -> str:
    """Render a status code with a coloured background."""
    if 200 <= code < 300:
        return f"\033[1;97;42m {code} \033[0m"
    if 300 <= code < 400:
        return f"\033[1;30;43m {code} \033[0m"
    if 400 <= code < 500:
        return f"\033[1;97;41m {code} \033[0m"
    if code >= 500:
        return f"\033[1;97;45m {code} \033[0m"
    return str(code)


def method_highlight(method: str) -> str:
    """Render an HTTP method with a coloured background."""
    colour = _METHOD_COLOURS.get(method)
    return f"\033[{colour}m {method} \033[0m" if colour else method


def client_ip(environ: Mapping[str, Any]) -> str:
    """Return the client address, preferring proxy headers."""
    forwarded = environ.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0]
    real_ip = environ.get("HTTP_X_REAL_IP", "")
    if real_ip:
        return real_ip
    addr = environ.get("REMOTE_ADDR", "")
    port = environ.get("REMOTE_PORT", "")
    return f"{addr}:{port}" if addr and port else addr


def user_agent(environ: Mapping[str, Any]) -> str:
    """Return the User-Agent, truncated when very long."""
    ua = environ.get("HTTP_USER_AGENT", "")
    return ua[:_USER_AGENT_LIMIT] + "..." if len(ua) > _USER_AGENT_LIMIT else ua


def _read_body(environ: dict[str, Any]) -> bytes:
    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        return b""
    stream = environ.get("wsgi.input")
    if length <= 0 or stream is None:
        return b""
    body = stream.read(length)
    environ["wsgi.input"] = io.BytesIO(body)
    environ["CONTENT_LENGTH"] = str(len(body))
    return body


def collect_request_params(environ: dict[str, Any]) -> str:
    """Gather query, body, form and key headers into one JSON string.

    The request body is read and put back, so the application can still read it.
    Returns an empty string when there is nothing to record.
    """
    params: dict[str, Any] = {}

    query_string = environ.get("QUERY_STRING", "")
    if query_string:
        query = parse_qs(query_string, keep_blank_values=True)
        if query:
            params["query"] = flatten_params(query)

    body = _read_body(environ)
    body_text = body.decode("utf-8", errors="replace")
    if body:
        try:
            params["body"] = json.loads(body)
        except ValueError:
            params["body"] = limit_string(body_text, _REQUEST_BODY_LOG_LIMIT)

    content_type = environ.get("CONTENT_TYPE", "")
    method = environ.get("REQUEST_METHOD", "GET")
    if method in ("POST", "PUT", "PATCH") and "application/x-www-form-urlencoded" in content_type:
        form = parse_qs(body_text, keep_blank_values=True)
        if form:
            params["form"] = flatten_params(form)

    headers: dict[str, str] = {}
    if environ.get("HTTP_AUTHORIZATION"):
        headers["authorization"] = "***"
    if content_type:
        headers["content_type"] = content_type
    if headers:
        params["headers"] = headers

    return _to_json(params) if params else ""


def _trace_context(environ: Mapping[str, Any]) -> tuple[str, str]:
    parts = environ.get("HTTP_TRACEPARENT", "").split("-")
    if len(parts) == 4 and len(parts[1]) == 32 and len(parts[2]) == 16:
        return parts[1], parts[2]
    return "", ""


def _caller(app: Callable[..., Any]) -> str:
    target = app if inspect.isfunction(app) or inspect.ismethod(app) else type(app).__call__
    try:
        path = inspect.getsourcefile(target)
        _, line = inspect.getsourcelines(target)
    except (TypeError, OSError):
        return "unknown:0"
    if not path:
        return "unknown:0"
    return f"{os.path.basename(path)}:{line}"


@dataclass
class _Capture:
    status_code: int = 200
    size: int = 0
    body: bytearray = field(default_factory=bytearray)

    def record(self, data: bytes) -> None:
        self.size += len(data)
        if self.size < _BODY_CAPTURE_LIMIT:
            self.body += data


class HTTPLogMiddleware:
    """Wrap a WSGI application and log each request with its outcome."""

    def __init__(self, app: Callable[..., Iterable[bytes]], logger: logging.Logger | None = None) -> None:
        self.app = app
        self.logger = logger or logging.getLogger(__name__)

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]) -> list[bytes]:
        start = time.perf_counter()
        trace_id, span_id = _trace_context(environ)
        request_params = collect_request_params(environ)
        capture = _Capture()

        def capturing_start_response(status: str, headers: list, exc_info: Any = None) -> Callable[[bytes], Any]:
            capture.status_code = int(status.split(" ", 1)[0])
            write = start_response(status, headers, exc_info)

            def capturing_write(data: bytes) -> Any:
                capture.record(data)
                return write(data)

            return capturing_write

        result = self.app(environ, capturing_start_response)
        chunks: list[bytes] = []
        try:
            for chunk in result:
                capture.record(chunk)
                chunks.append(chunk)
        finally:
            close = getattr(result, "close", None)
            if close is not None:
                close()

        duration_ms = (time.perf_counter() - start) * 1000
        method = environ.get("REQUEST_METHOD", "GET")
        path = environ.get("PATH_INFO", "/")
        ip = client_ip(environ)
        ua = user_agent(environ)

        message = (
            f"[HTTP] {status_code_highlight(capture.status_code)} - "
            f"{method_highlight(method)} {path} - {ip} - {ua}"
        )
        fields = {
            "method": method,
            "path": path,
            "status_code": capture.status_code,
            "duration": f"{duration_ms:.1f}ms",
            "client_ip": ip,
            "user_agent": ua,
            "request_params": request_params,
            "response_body": limit_string(
                bytes(capture.body).decode("utf-8", errors="replace"), _RESPONSE_BODY_LOG_LIMIT
            ),
            "response_size": capture.size,
            "trace": trace_id,
            "span": span_id,
            "caller": _caller(self.app),
        }
        self.logger.info(message, extra={"http": fields})
        return chunks