"""Unified JSON response envelope and business errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ResponseCode(IntEnum):
    """Codes carried in the ``code`` field of every response."""

    SUCCESS = 200
    BUSINESS_ERROR = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    PARAM_ERROR = 422
    SYSTEM_ERROR = 500


def _envelope(code: int, msg: str, data: Any, request_id: str) -> dict[str, Any]:
    return {"code": int(code), "msg": msg, "data": data, "requestId": request_id}


@dataclass
class Response:
    """A successful or generic response body."""

    code: int
    msg: str
    data: Any = field(default_factory=dict)
    request_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the response."""
        return _envelope(self.code, self.msg, self.data, self.request_id)


class BusinessError(Exception):
    """An error that already carries a complete response body."""

    def __init__(self, code: int, msg: str, data: Any = None, request_id: str = "") -> None:
        super().__init__(msg)
        self.code = int(code)
        self.msg = msg
        self.data = {} if data is None else data
        self.request_id = request_id

    def __str__(self) -> str:
        return self.msg

    def __repr__(self) -> str:
        return (
            f"BusinessError(code={self.code!r}, msg={self.msg!r}, "
            f"data={self.data!r}, request_id={self.request_id!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the error."""
        return _envelope(self.code, self.msg, self.data, self.request_id)


def get_request_id(trace_id: str = "") -> str:
    """Return the trace id used as request id, or ``"unknown"`` when absent."""
    return trace_id or "unknown"


def new_business_error(code: int, msg: str, trace_id: str = "") -> BusinessError:
    """Build a business error with an arbitrary code."""
    return BusinessError(code, msg, {}, get_request_id(trace_id))


def new_param_error(msg: str, trace_id: str = "") -> BusinessError:
    """Build a parameter validation error."""
    return BusinessError(ResponseCode.PARAM_ERROR, msg, {}, get_request_id(trace_id))


def new_unauthorized_error(trace_id: str = "") -> BusinessError:
    """Build an unauthorized-access error."""
    return BusinessError(ResponseCode.UNAUTHORIZED, "未授权访问", {}, get_request_id(trace_id))


def new_forbidden_error(trace_id: str = "") -> BusinessError:
    """Build a forbidden-access error."""
    return BusinessError(ResponseCode.FORBIDDEN, "禁止访问", {}, get_request_id(trace_id))


def new_not_found_error(trace_id: str = "") -> BusinessError:
    """Build a resource-not-found error."""
    return BusinessError(ResponseCode.NOT_FOUND, "资源不存在", {}, get_request_id(trace_id))


def new_system_error(request_id: str) -> BusinessError:
    """Build a system error with an explicit request id."""
    return BusinessError(ResponseCode.SYSTEM_ERROR, "系统错误", {}, request_id)


def handle_response(data: Any, error: BaseException | None = None, trace_id: str = "") -> dict[str, Any]:
    """Turn a handler result or error into the response body to send."""
    if error is not None:
        if isinstance(error, BusinessError):
            return error.to_dict()
        return Response(
            ResponseCode.SYSTEM_ERROR, "系统内部错误", {}, get_request_id(trace_id)
        ).to_dict()
    return Response(ResponseCode.SUCCESS, "success", data, get_request_id(trace_id)).to_dict()