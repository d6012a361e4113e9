"""
Logging adapter for the BaaS client SDK.

The SDK never configures logging itself. Embedding applications either rely on
the standard library defaults or inject their own structured logger factory.

Architecture:
- BaasLoggerAdapter wraps any LoggerAdapter and provides SDK-specific helpers
- _logger_factory allows consumers to inject their logger factory
- Default factory uses standard library logging when no custom factory is configured

Usage in the SDK:
    from baasclient.observability.logging import get_baas_logger

    logger = get_baas_logger(__name__, host="https://api.example.com")
    logger.info("request.started", method="GET")

Usage in consumer applications (configuring the factory):
    from baasclient.observability.logging import configure_logging
    from myapp.logging import get_custom_logger

    configure_logging(logger_factory=get_custom_logger)
"""

from __future__ import annotations

import logging
from logging import Logger, LoggerAdapter
from typing import Any, Callable, Dict, Optional


# Global logger factory (can be injected by embedding applications)
_logger_factory: Optional[Callable[..., LoggerAdapter]] = None


class BaasLoggerAdapter:
    """
    Thin wrapper around LoggerAdapter providing SDK-specific logging helpers.

    Keeps event naming (dotted, e.g. ``request.retry``) and metadata structure
    consistent across the SDK while allowing any logging backend.
    """

    def __init__(self, logger: LoggerAdapter, context: Optional[Dict[str, Any]] = None):
        """
        Initialize the adapter.

        Args:
            logger: Underlying LoggerAdapter (from custom logger or stdlib)
            context: Additional context to bind to all log records
        """
        self._logger = logger
        self._context = context or {}

    def _merge_context(self, **extra: Any) -> Dict[str, Any]:
        """Merge bound context with extra fields."""
        return {**self._context, **extra}

    def bind(self, **context: Any) -> "BaasLoggerAdapter":
        """Return a new adapter with additional bound context."""
        return BaasLoggerAdapter(self._logger, self._merge_context(**context))

    def debug(self, event: str, **extra: Any) -> None:
        """Log DEBUG-level event."""
        self._logger.debug(event, extra=self._merge_context(**extra))

    def info(self, event: str, **extra: Any) -> None:
        """Log INFO-level event."""
        self._logger.info(event, extra=self._merge_context(**extra))

    def warning(self, event: str, **extra: Any) -> None:
        """Log WARNING-level event."""
        self._logger.warning(event, extra=self._merge_context(**extra))

    def error(self, event: str, exc_info: Optional[BaseException] = None, **extra: Any) -> None:
        """Log ERROR-level event."""
        self._logger.error(event, extra=self._merge_context(**extra), exc_info=exc_info)


# LogRecord attributes that extra fields must not overwrite
_RESERVED_RECORD_KEYS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class _FieldsAdapter(logging.LoggerAdapter):
    """
    LoggerAdapter that keeps per-call ``extra`` fields.

    The stdlib adapter replaces a call's ``extra`` with its own; this one
    merges them so every structured field ends up on the LogRecord. Fields
    that collide with LogRecord attributes are stored with a ``ctx_`` prefix.
    """

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        fields = {**self.extra, **(kwargs.get("extra") or {})}
        kwargs["extra"] = {
            (f"ctx_{key}" if key in _RESERVED_RECORD_KEYS else key): value
            for key, value in fields.items()
        }
        return msg, kwargs


def _default_logger_factory(name: str, **context: Any) -> LoggerAdapter:
    """
    Default logger factory using standard library logging.

    Returns a field-preserving LoggerAdapter when no custom factory is configured.
    """
    base_logger: Logger = logging.getLogger(name)
    return _FieldsAdapter(base_logger, context)


def configure_logging(logger_factory: Optional[Callable[..., LoggerAdapter]]) -> None:
    """
    Configure the SDK to use a custom logger factory.

    Args:
        logger_factory: Callable that returns a LoggerAdapter, signature
                       ``(name: str, **context) -> LoggerAdapter``. Pass
                       ``None`` to restore the stdlib default.
    """
    global _logger_factory
    _logger_factory = logger_factory


def get_baas_logger(
    name: str,
    host: Optional[str] = None,
    session_id: Optional[str] = None,
    **extra_context: Any
) -> BaasLoggerAdapter:
    """
    Get an SDK logger with bound context.

    Uses the configured logger factory if set, otherwise falls back to stdlib logging.

    Args:
        name: Logger name (typically __name__)
        host: Active backend host
        session_id: Crash-reporting session id
        **extra_context: Additional context to bind

    Returns:
        BaasLoggerAdapter with bound context
    """
    context: Dict[str, Any] = {**extra_context}

    if host is not None:
        context["host"] = host
    if session_id is not None:
        context["session_id"] = session_id

    factory = _logger_factory or _default_logger_factory
    base_logger = factory(name, **context)

    return BaasLoggerAdapter(base_logger, context)


def log_exception(
    logger: BaasLoggerAdapter,
    exc: BaseException,
    event: str,
    **context: Any
) -> None:
    """
    Log an exception with SDK context.

    Usage:
        except BaasError as exc:
            log_exception(logger, exc, "request.failed", method="GET")
    """
    error_context = {
        **context,
        "error_type": exc.__class__.__name__,
        "error_message": str(exc),
    }

    logger.error(event, exc_info=exc, **error_context)


def log_retry(
    logger: BaasLoggerAdapter,
    attempt: int,
    max_attempts: int,
    delay_ms: float,
    reason: str,
    **context: Any
) -> None:
    """
    Log a retry attempt with its delay.

    Args:
        logger: Logger instance
        attempt: Attempt that just failed (1-indexed)
        max_attempts: Total attempts allowed
        delay_ms: Delay before the next attempt in milliseconds
        reason: Reason for retry (e.g., "timeout", "server_error_503")
        **context: Additional context
    """
    logger.warning(
        "request.retry",
        attempt=attempt,
        max_attempts=max_attempts,
        delay_ms=round(delay_ms, 2),
        reason=reason,
        **context
    )


def log_rate_limit(
    logger: BaasLoggerAdapter,
    wait_ms: float,
    **context: Any
) -> None:
    """
    Log a server-imposed rate-limit wait (HTTP 429).

    Usage:
        log_rate_limit(logger, wait_ms=2000.0, url=url)
    """
    logger.warning(
        "rate_limit.wait",
        wait_ms=round(wait_ms, 2),
        **context
    )
