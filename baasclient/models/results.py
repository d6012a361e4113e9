from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..exceptions import BaasError, ErrorKind


@dataclass
class NetworkResponse:
    """
    Uniform result of one logical request.

    Either a success (``data`` + ``status_code``) or a failure (``error``
    message, ``status_code``, ``error_kind``). Failures keep the originating
    exception so callers that prefer exceptions can call ``raise_for_error()``.
    """

    ok: bool
    status_code: int = 0
    data: Any = None                      # parsed JSON, raw bytes, or None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    exception: Optional[BaasError] = None
    attempts: int = 1

    @classmethod
    def success(cls, data: Any, status_code: int = 200, attempts: int = 1) -> "NetworkResponse":
        return cls(ok=True, status_code=status_code, data=data, attempts=attempts)

    @classmethod
    def failure(cls, exc: BaasError, status_code: int = 0, attempts: int = 1) -> "NetworkResponse":
        return cls(
            ok=False,
            status_code=status_code,
            error=exc.message,
            error_kind=exc.kind,
            exception=exc,
            attempts=attempts,
        )

    def raise_for_error(self) -> "NetworkResponse":
        """Raise the carried exception for a failed response, else return self."""
        if not self.ok and self.exception is not None:
            raise self.exception
        return self


@dataclass
class HostSelection:
    """Outcome of host selection: the active host and its measured latency."""

    host: str
    latency_ms: float = 0.0  # 0.0 on the single-host path, no probe is made
    ping_results: Dict[str, Optional[float]] = field(default_factory=dict)
