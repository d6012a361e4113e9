"""
Notification emitter for observable SDK state transitions.

Components emit named events (host selected, rate limited, crash report
submitted, ...) with a keyword payload. Applications subscribe plain callables.
Handlers run synchronously in registration order; a handler that raises is
logged and skipped so one bad subscriber never breaks the SDK.

Usage:
    events = EventEmitter()
    events.on(Event.HOST_SELECTED, lambda host, latency_ms: print(host))
"""

from __future__ import annotations

import threading
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .logging import BaasLoggerAdapter, get_baas_logger

Handler = Callable[..., Any]


class Event(str, Enum):
    """Named notifications and their keyword payloads."""

    HOST_SELECTED = "host_selected"                    # host, latency_ms
    CONNECTION_FAILED = "connection_failed"            # error
    DISCONNECTED = "disconnected"                      # host
    RATE_LIMITED = "rate_limited"                      # wait_seconds, url
    SESSION_REGISTERED = "session_registered"          # session_id
    CRASH_REPORT_SUBMITTED = "crash_report_submitted"  # fingerprint, report_type
    CRASH_REPORT_FAILED = "crash_report_failed"        # error, reason


class EventEmitter:
    """Thread-safe pub-sub for SDK notifications."""

    def __init__(self, logger: Optional[BaasLoggerAdapter] = None) -> None:
        self._lock = threading.Lock()
        self._handlers: Dict[Event, List[Handler]] = defaultdict(list)
        self._logger = logger or get_baas_logger(__name__)

    def on(self, event: Event, handler: Handler) -> None:
        """Register *handler* for *event*."""
        with self._lock:
            self._handlers[Event(event)].append(handler)

    def off(self, event: Event, handler: Handler) -> bool:
        """Remove *handler* from *event*. Returns ``True`` if it was registered."""
        with self._lock:
            try:
                self._handlers[Event(event)].remove(handler)
                return True
            except ValueError:
                return False

    def emit(self, event: Event, **payload: Any) -> None:
        """Invoke every handler of *event* with *payload* as keyword arguments."""
        with self._lock:
            snapshot = list(self._handlers.get(Event(event), []))

        for handler in snapshot:
            try:
                handler(**payload)
            except Exception as exc:
                self._logger.error(
                    "events.handler_failed",
                    exc_info=exc,
                    event_name=Event(event).value,
                    handler=repr(handler),
                )

    def handler_count(self, event: Event) -> int:
        with self._lock:
            return len(self._handlers.get(Event(event), []))
