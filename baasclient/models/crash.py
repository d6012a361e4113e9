from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


class BreadcrumbKind(str, Enum):
    NAVIGATION = "navigation"
    USER_ACTION = "user_action"
    LOG = "log"
    ERROR = "error"
    STATE = "state"


class CrashType(str, Enum):
    CRASH = "CRASH"
    NON_FATAL = "NON_FATAL"
    ANR = "ANR"


@dataclass(frozen=True)
class Breadcrumb:
    """One contextual event recorded ahead of a crash."""

    kind: BreadcrumbKind
    message: str
    timestamp: str  # UTC ISO-8601

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.kind.value, "message": self.message, "timestamp": self.timestamp}


@dataclass(frozen=True)
class DeviceInfo:
    """Snapshot of the host environment, captured once per reporter."""

    os_name: str
    os_version: str
    device_model: str
    locale: str
    processor_name: str
    processor_count: int
    engine_version: str
    renderer: str
    platform: str
    system_memory_mb: int
    screen_width: Optional[int] = None   # only when a display is present
    screen_height: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "osName": self.os_name,
            "osVersion": self.os_version,
            "deviceModel": self.device_model,
            "locale": self.locale,
            "processorName": self.processor_name,
            "processorCount": self.processor_count,
            "engineVersion": self.engine_version,
            "renderer": self.renderer,
            "platform": self.platform,
            "systemMemoryMb": self.system_memory_mb,
        }
        if self.screen_width is not None and self.screen_height is not None:
            data["screenWidth"] = self.screen_width
            data["screenHeight"] = self.screen_height
        return data


@dataclass(frozen=True)
class CrashReport:
    """
    A single crash, non-fatal error or ANR, ready for submission.

    Built fresh for every submission and discarded after the network call;
    there is no local queue for failed reports.
    """

    session_id: str
    user_id: str
    report_type: CrashType
    message: str
    fingerprint: str
    device_info: DeviceInfo
    timestamp: str
    breadcrumbs: Tuple[Breadcrumb, ...] = ()
    stack_trace: str = ""
    custom_keys: Mapping[str, str] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        """Wire form; ``stackTrace`` and ``customKeys`` are omitted when empty."""
        payload: Dict[str, Any] = {
            "sessionId": self.session_id,
            "userId": self.user_id,
            "type": self.report_type.value,
            "message": self.message,
            "fingerprint": self.fingerprint,
            "deviceInfo": self.device_info.to_dict(),
            "breadcrumbs": [crumb.to_dict() for crumb in self.breadcrumbs],
            "timestamp": self.timestamp,
        }
        if self.stack_trace:
            payload["stackTrace"] = self.stack_trace
        if self.custom_keys:
            payload["customKeys"] = dict(self.custom_keys)
        return payload
