from .limiting import ReportRateLimiter, REFILL_INTERVAL_SECONDS

__all__ = [
    "ReportRateLimiter",
    "REFILL_INTERVAL_SECONDS",
]
