# src/vacancies/errors.py
"""
One error shape for everything that can go wrong while talking to the API.

Callers only ever see ApiError (or one of its variants). Each variant carries
a stable `code`, a human readable `message` and optional structured `details`,
which is enough for a UI to render a message without inspecting httpx.
"""

from __future__ import annotations
import json
from typing import Any, Dict, Optional

import httpx

UNKNOWN_ERROR = "UNKNOWN_ERROR"
TIMEOUT = "TIMEOUT"
CONNECTION_ERROR = "CONNECTION_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
DECODE_ERROR = "DECODE_ERROR"
GATEWAY_CLOSED = "GATEWAY_CLOSED"
INVALID_ARGUMENT = "INVALID_ARGUMENT"


class ApiError(Exception):
    """Base error: {code, message, details}."""

    kind = "unknown"

    def __init__(self, code: str, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.code = code or UNKNOWN_ERROR
        self.message = message or "An unknown error occurred"
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            out["details"] = self.details
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class TransportError(ApiError):
    """DNS, connection, TLS or timeout failure. Safe to retry."""

    kind = "transport"


class ProtocolError(ApiError):
    """Non-2xx response or a body we could not decode."""

    kind = "protocol"

    def __init__(
        self,
        code: str,
        message: str,
        details: Any = None,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(code, message, details)
        self.status = status


class InvalidArgumentError(ApiError, ValueError):
    """A required argument was missing or out of range. Raised before any network call."""

    kind = "validation"

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(INVALID_ARGUMENT, message, {"field": field} if field else None)
        self.field = field


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def normalize_error(exc: BaseException) -> ApiError:
    """
    Convert any exception raised while executing a request into an ApiError.
    ApiErrors pass through untouched.
    """
    if isinstance(exc, ApiError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return ProtocolError(
            f"HTTP_{status}",
            f"Request failed with status code {status}",
            details={"status": status, "body": _response_body(exc.response)},
            status=status,
        )

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(TIMEOUT, str(exc) or "The request timed out")

    if isinstance(exc, httpx.ConnectError):
        return TransportError(CONNECTION_ERROR, str(exc) or "Could not connect to the server")

    if isinstance(exc, httpx.TransportError):
        return TransportError(NETWORK_ERROR, str(exc) or "Network error")

    # json.JSONDecodeError is a ValueError; keep it ahead of the generic branch.
    if isinstance(exc, json.JSONDecodeError):
        return ProtocolError(DECODE_ERROR, f"Could not decode response body: {exc.msg}")

    return ApiError(UNKNOWN_ERROR, str(exc) or type(exc).__name__)
