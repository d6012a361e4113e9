from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

from ..exceptions import ConfigError

if TYPE_CHECKING:
    from ..observability.logging import BaasLoggerAdapter

SDK_VERSION = "1.0.0"
DEFAULT_UA = f"baas-client-python/{SDK_VERSION}"
HEALTH_PATH = "/actuator/health"

@dataclass
class RetryPolicy:
    max_attempts: int = 3         # retries after the first attempt (3 => 4 attempts)
    delay_seconds: float = 1.0    # fixed delay, also the Retry-After fallback

@dataclass
class CrashReportingSettings:
    tokens_per_minute: int = 5         # bucket capacity and refill per whole minute
    max_reports_per_session: int = 20  # hard per-process ceiling
    breadcrumb_capacity: int = 50
    max_custom_keys: int = 10

    # Device snapshot inputs the SDK cannot discover by itself
    engine_version: Optional[str] = None
    renderer: str = "none"
    display_size: Optional[Tuple[int, int]] = None  # None in headless environments

@dataclass
class ClientSettings:
    # Backend
    api_key: str = ""
    hosts: list[str] = field(default_factory=list)

    # HTTP behavior
    timeout_seconds: float = 10.0  # per attempt, not per retry sequence
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    http2: bool = True

    # Default headers
    user_agent: str = DEFAULT_UA
    accept: str = "application/json"
    accept_encoding: str = "gzip, deflate, br"

    # Logging
    logger: Optional["BaasLoggerAdapter"] = None  # Optional custom logger instance

    # Flat key-value session cache; None keeps it in memory only
    session_file: Optional[Path] = None

    crash_reporting: CrashReportingSettings = field(default_factory=CrashReportingSettings)

    def validate(self) -> None:
        """Raise ConfigError when the settings cannot be used to connect."""
        if not self.api_key or not self.api_key.strip():
            raise ConfigError(message="API key is not set", setting_name="api_key")
        if not self.hosts:
            raise ConfigError(message="No hosts configured", setting_name="hosts")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ClientSettings":
        """
        Build settings from a flat configuration mapping.

        Recognised keys: ``api_key``, ``hosts`` (list or comma separated string),
        ``timeout_seconds``, ``max_retry_attempts``, ``retry_delay_seconds``.
        Unknown keys are ignored.
        """
        hosts = data.get("hosts") or []
        if isinstance(hosts, str):
            hosts = [h.strip() for h in hosts.split(",") if h.strip()]

        retry = RetryPolicy()
        if data.get("max_retry_attempts") is not None:
            retry.max_attempts = int(data["max_retry_attempts"])
        if data.get("retry_delay_seconds") is not None:
            retry.delay_seconds = float(data["retry_delay_seconds"])

        settings = cls(api_key=str(data.get("api_key") or ""), hosts=list(hosts), retry=retry)
        if data.get("timeout_seconds") is not None:
            settings.timeout_seconds = float(data["timeout_seconds"])
        return settings
