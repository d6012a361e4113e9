"""
Exception hierarchy for the BaaS client SDK.

Every failure mode of the networking layer and the crash-reporting pipeline
maps onto one of these types. The request executor never lets them escape as
raw exceptions: it converts them into a failed ``NetworkResponse`` that carries
the exception as ``response.exception``. Host selection raises them directly.

Exception Hierarchy:
    BaasError (base)
    ├── ConfigError
    ├── ValidationError
    ├── NotConnectedError
    ├── NetworkError
    │   ├── ConnectionError
    │   ├── TimeoutError
    │   └── HostUnavailableError
    └── HTTPError
        ├── ClientError (4xx)
        │   ├── BadRequestError (400)
        │   ├── UnauthorizedError (401)
        │   ├── ForbiddenError (403)
        │   ├── NotFoundError (404)
        │   ├── ConflictError (409)
        │   └── RateLimitedError (429)
        └── ServerError (5xx)

Usage:
    from baasclient.exceptions import NotFoundError

    response = await client.get("/api/v1/app/news")
    if not response.ok and isinstance(response.exception, NotFoundError):
        ...
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any

import httpx

__all__ = [
    "ErrorKind",
    # Base exceptions
    "BaasError",
    "ConfigError",
    "ValidationError",
    "NotConnectedError",
    # Network errors
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "HostUnavailableError",
    # HTTP errors
    "HTTPError",
    "ClientError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ServerError",
    # Utilities
    "error_kind_for_status",
    "extract_error_message",
    "retry_after_from_response",
    "classify_http_error",
]


class ErrorKind(str, Enum):
    """Coarse classification attached to every failed response."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    NOT_CONNECTED = "not_connected"
    VALIDATION = "validation"
    CONFIG = "config"
    UNKNOWN = "unknown"


# ============================================================================
# Base Exception
# ============================================================================


@dataclass(slots=True)
class BaasError(Exception):
    """
    Base exception for all SDK failures.

    Carries the request URL (when there is one), the causal exception and
    free-form context for debugging.
    """

    message: str
    url: Optional[str] = None
    cause: Optional[BaseException] = None
    context: Dict[str, Any] = field(default_factory=dict)

    kind = ErrorKind.UNKNOWN

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)
        if self.cause is not None:
            self.__cause__ = self.cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.url:
            parts.append(f"url={self.url}")
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"context=({ctx_str})")
        return " | ".join(parts)


@dataclass(slots=True)
class ConfigError(BaasError):
    """Raised when the client is missing its API key or host list."""

    setting_name: Optional[str] = None

    kind = ErrorKind.CONFIG

    def __post_init__(self) -> None:
        if not self.message and self.setting_name:
            self.message = f"Missing or invalid setting: {self.setting_name}"
        BaasError.__post_init__(self)


@dataclass(slots=True)
class ValidationError(BaasError):
    """Raised when a required field is empty before any network attempt."""

    field_name: Optional[str] = None

    kind = ErrorKind.VALIDATION

    def __post_init__(self) -> None:
        if not self.message and self.field_name:
            self.message = f"{self.field_name} cannot be empty"
        BaasError.__post_init__(self)


@dataclass(slots=True)
class NotConnectedError(BaasError):
    """Raised when a request is issued before a host has been selected."""

    kind = ErrorKind.NOT_CONNECTED

    def __post_init__(self) -> None:
        if not self.message:
            self.message = "Not connected: call connect() first"
        BaasError.__post_init__(self)


# ============================================================================
# Network Errors
# ============================================================================


@dataclass(slots=True)
class NetworkError(BaasError):
    """Transport-level failure (connection, timeout) after retries ran out."""

    attempts: int = 0

    kind = ErrorKind.NETWORK


@dataclass(slots=True)
class ConnectionError(NetworkError):
    """Raised when the TCP/TLS connection to the host cannot be established."""

    host: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Failed to connect to {self.host}"
        BaasError.__post_init__(self)


@dataclass(slots=True)
class TimeoutError(NetworkError):
    """Raised when an attempt exceeds the per-request timeout."""

    timeout_seconds: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"Request timed out ({self.timeout_seconds}s)"
        BaasError.__post_init__(self)


@dataclass(slots=True)
class HostUnavailableError(NetworkError):
    """Raised when host selection finds no healthy host."""

    hosts: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"No healthy host among {self.hosts}"
        BaasError.__post_init__(self)


# ============================================================================
# HTTP Errors
# ============================================================================


@dataclass(slots=True)
class HTTPError(BaasError):
    """Base class for HTTP status code errors (4xx, 5xx)."""

    status_code: int = 0

    def __post_init__(self) -> None:
        if not self.message:
            self.message = f"HTTP {self.status_code}"
        BaasError.__post_init__(self)


@dataclass(slots=True)
class ClientError(HTTPError):
    """Terminal client error (4xx other than 429 is never retried)."""
    pass


@dataclass(slots=True)
class BadRequestError(ClientError):
    status_code: int = 400

    kind = ErrorKind.INVALID_REQUEST


@dataclass(slots=True)
class UnauthorizedError(ClientError):
    status_code: int = 401

    kind = ErrorKind.UNAUTHORIZED


@dataclass(slots=True)
class ForbiddenError(ClientError):
    status_code: int = 403

    kind = ErrorKind.FORBIDDEN


@dataclass(slots=True)
class NotFoundError(ClientError):
    status_code: int = 404

    kind = ErrorKind.NOT_FOUND


@dataclass(slots=True)
class ConflictError(ClientError):
    """HTTP 409, reported by the backend when a resource already exists."""

    status_code: int = 409

    kind = ErrorKind.ALREADY_EXISTS


@dataclass(slots=True)
class RateLimitedError(ClientError):
    """
    HTTP 429.

    The JSON executor retries 429 indefinitely, so this only surfaces from the
    single-attempt binary calls or as the payload of a rate-limit notification.
    """

    status_code: int = 429
    retry_after: Optional[float] = None

    kind = ErrorKind.RATE_LIMITED

    def __post_init__(self) -> None:
        if not self.message:
            retry_msg = f", retry after {self.retry_after}s" if self.retry_after is not None else ""
            self.message = f"Rate limited (HTTP {self.status_code}){retry_msg}"
        BaasError.__post_init__(self)


@dataclass(slots=True)
class ServerError(HTTPError):
    """5xx response that persisted through every retry attempt."""

    attempts: int = 0

    kind = ErrorKind.SERVER_ERROR


# ============================================================================
# Utility Functions
# ============================================================================

_STATUS_KINDS: Dict[int, ErrorKind] = {
    400: ErrorKind.INVALID_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.ALREADY_EXISTS,
    429: ErrorKind.RATE_LIMITED,
}


def error_kind_for_status(status_code: int) -> ErrorKind:
    """
    Map an HTTP status code to its ``ErrorKind``.

    Examples:
        >>> error_kind_for_status(409)
        <ErrorKind.ALREADY_EXISTS: 'already_exists'>
        >>> error_kind_for_status(418)
        <ErrorKind.UNKNOWN: 'unknown'>
    """
    if status_code in _STATUS_KINDS:
        return _STATUS_KINDS[status_code]
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.UNKNOWN


def extract_error_message(text: Optional[str], status_code: int) -> str:
    """
    Pull a human-readable message out of an error body.

    Looks for a ``message`` field, then an ``error`` field, in a JSON object
    body; anything else falls back to ``"HTTP {status_code}"``.
    """
    fallback = f"HTTP {status_code}"
    if not text or not text.strip():
        return fallback
    try:
        body = json.loads(text)
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("message", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return fallback


def retry_after_from_response(
    response: Optional[httpx.Response], default: Optional[float]
) -> Optional[float]:
    """
    Read the ``Retry-After`` header as float seconds.

    Returns ``default`` when the header is absent, not a number, or not
    finite. Negative values clamp to 0.

    Examples:
        >>> retry_after_from_response(response_with_header("2.5"), default=1.0)
        2.5
        >>> retry_after_from_response(None, default=1.0)
        1.0
    """
    if response is None:
        return default

    header = response.headers.get("Retry-After")
    if not header:
        return default

    try:
        value = float(header.strip())
    except ValueError:
        return default
    # "nan" and "inf" parse as floats but are not usable waits
    if not math.isfinite(value):
        return default
    return max(value, 0.0)


def classify_http_error(
    status_code: int,
    url: str,
    message: str = "",
    response: Optional[httpx.Response] = None,
    default_retry_after: Optional[float] = None,
) -> HTTPError:
    """
    Factory function to create the HTTPError subclass for a status code.

    Examples:
        >>> classify_http_error(404, "https://api.example.com/x")
        NotFoundError(message='HTTP 404', ..., status_code=404)
    """
    error_map: Dict[int, type[HTTPError]] = {
        400: BadRequestError,
        401: UnauthorizedError,
        403: ForbiddenError,
        404: NotFoundError,
        409: ConflictError,
        429: RateLimitedError,
    }

    if status_code in error_map:
        error_class = error_map[status_code]
    elif 400 <= status_code < 500:
        error_class = ClientError
    elif 500 <= status_code < 600:
        error_class = ServerError
    else:
        error_class = HTTPError

    kwargs: Dict[str, Any] = {
        "message": message,
        "url": url,
        "status_code": status_code,
    }

    if status_code == 429 and response is not None:
        kwargs["retry_after"] = retry_after_from_response(response, default_retry_after)

    return error_class(**kwargs)
