from .logging import (
    BaasLoggerAdapter,
    configure_logging,
    get_baas_logger,
    log_exception,
    log_rate_limit,
    log_retry,
)
from .events import Event, EventEmitter

__all__ = [
    "BaasLoggerAdapter",
    "configure_logging",
    "get_baas_logger",
    "log_exception",
    "log_rate_limit",
    "log_retry",
    "Event",
    "EventEmitter",
]
