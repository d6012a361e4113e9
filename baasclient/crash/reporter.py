"""
Crash and error reporting.

A ``CrashReporter`` is ready to report as soon as it is constructed: it owns a
random session id, a one-off device snapshot, the breadcrumb buffer and the
custom-key map. Registering the session with the backend is a separate,
optional call.

Every submission is gated by a token bucket (five per minute, twenty per
process). Rejected and failed reports are dropped; nothing is queued or
persisted for a later retry.

Example:
    reporter = CrashReporter(rest_client)
    reporter.record_breadcrumb("navigation", "opened settings")
    reporter.set_custom_key("level", 3)
    try:
        risky()
    except Exception as exc:
        await reporter.report_exception(exc)
"""

from __future__ import annotations

import threading
import time
import traceback
import uuid
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .breadcrumbs import BreadcrumbBuffer
from .device import capture_device_info
from .fingerprint import compute_fingerprint
from ..clients.rest import RestClient
from ..exceptions import BaasError, RateLimitedError, ValidationError
from ..limiting.limiting import ReportRateLimiter
from ..models.config import CrashReportingSettings, SDK_VERSION
from ..models.crash import Breadcrumb, BreadcrumbKind, CrashReport, CrashType, DeviceInfo
from ..observability.events import Event
from ..observability.logging import get_baas_logger, log_exception
from ..session.store import SessionStore
from ..utils import utc_timestamp

REPORT_PATH = "/api/v1/app/crash-reporting/report"
SESSION_PATH = "/api/v1/app/crash-reporting/session"
ANONYMOUS_USER = "anonymous"


class CrashReporter:
    """Rate-limited crash, non-fatal and ANR reporting with breadcrumbs."""

    def __init__(
        self,
        client: RestClient,
        settings: Optional[CrashReportingSettings] = None,
        *,
        session: Optional[SessionStore] = None,
        device_info: Optional[DeviceInfo] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the reporter.

        Args:
            client: REST client used for submission
            settings: Limits and device snapshot inputs
            session: Session store for the authenticated user id (defaults to the client's)
            device_info: Pre-built device snapshot; captured from the runtime when omitted
            clock: Monotonic clock for the rate limiter
        """
        self._client = client
        self.settings = settings or client.settings.crash_reporting
        self._session = session or client.session

        self._session_id = uuid.uuid4().hex
        self._device_info = device_info or capture_device_info(
            engine_version=self.settings.engine_version,
            renderer=self.settings.renderer,
            display_size=self.settings.display_size,
        )
        self._breadcrumbs = BreadcrumbBuffer(self.settings.breadcrumb_capacity)
        self._limiter = ReportRateLimiter(
            capacity=self.settings.tokens_per_minute,
            max_per_session=self.settings.max_reports_per_session,
            clock=clock,
        )
        self._custom_keys: Dict[str, str] = {}
        self._keys_lock = threading.Lock()
        self._user_id_override: Optional[str] = None
        self._session_registered = False
        self._logger = get_baas_logger(__name__, session_id=self._session_id)

        self._logger.debug(
            "crash.initialized",
            os_name=self._device_info.os_name,
            breadcrumb_capacity=self.settings.breadcrumb_capacity,
        )

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def device_info(self) -> DeviceInfo:
        return self._device_info

    @property
    def is_session_registered(self) -> bool:
        return self._session_registered

    @property
    def rate_limiter(self) -> ReportRateLimiter:
        return self._limiter

    # -- context ------------------------------------------------------------

    def record_breadcrumb(self, kind: Union[BreadcrumbKind, str], message: str) -> Breadcrumb:
        """Record a contextual event; raises ValidationError for an unknown kind."""
        return self._breadcrumbs.record(kind, message)

    def breadcrumbs(self) -> List[Breadcrumb]:
        return self._breadcrumbs.snapshot()

    def set_custom_key(self, key: str, value: Any) -> bool:
        """
        Attach a key to every later report.

        Existing keys can always be updated; a new key is rejected once
        ``max_custom_keys`` keys are set.
        """
        with self._keys_lock:
            if key not in self._custom_keys and len(self._custom_keys) >= self.settings.max_custom_keys:
                self._logger.warning(
                    "crash.custom_key_rejected",
                    key=key,
                    max_custom_keys=self.settings.max_custom_keys,
                )
                return False
            self._custom_keys[key] = str(value)
            return True

    def remove_custom_key(self, key: str) -> bool:
        with self._keys_lock:
            return self._custom_keys.pop(key, None) is not None

    @property
    def custom_keys(self) -> Dict[str, str]:
        with self._keys_lock:
            return dict(self._custom_keys)

    def set_user_id(self, user_id: Optional[str]) -> None:
        """Override the reported user id; None falls back to the signed-in user."""
        self._user_id_override = user_id or None

    def resolve_user_id(self) -> str:
        if self._user_id_override:
            return self._user_id_override
        return self._session.user_id or ANONYMOUS_USER

    # -- network ------------------------------------------------------------

    async def register_session(self) -> bool:
        """Announce this session and its device snapshot to the backend."""
        body = {
            "sessionId": self._session_id,
            "userId": self.resolve_user_id(),
            "deviceInfo": self._device_info.to_dict(),
            "sdkVersion": SDK_VERSION,
            "timestamp": utc_timestamp(),
        }
        response = await self._client.post(SESSION_PATH, body)
        if not response.ok:
            self._logger.error(
                "crash.session_registration_failed",
                error_message=response.error,
                status_code=response.status_code,
            )
            return False

        self._session_registered = True
        self._logger.info("crash.session_registered")
        self._client.events.emit(Event.SESSION_REGISTERED, session_id=self._session_id)
        return True

    async def submit(
        self,
        report_type: Union[CrashType, str],
        message: str,
        stack_trace: str = "",
        extra_keys: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """
        Build and send one report.

        Args:
            report_type: CRASH, NON_FATAL or ANR
            message: Required human-readable summary
            stack_trace: Optional trace; also the fingerprint input
            extra_keys: Keys for this report only; they win over persistent keys

        Returns:
            True if the backend accepted the report. Rejections and failures
            return False and fire CRASH_REPORT_FAILED.
        """
        if not message or not message.strip():
            return self._reject(ValidationError(message="", field_name="message"), "validation")

        try:
            crash_type = CrashType(report_type)
        except ValueError as exc:
            return self._reject(
                ValidationError(message=f"Unknown report type: {report_type!r}", field_name="type", cause=exc),
                "validation",
            )

        if not self._limiter.try_acquire():
            return self._reject(
                RateLimitedError(message="Crash report rate limit reached", url=REPORT_PATH),
                "rate_limited",
            )

        report = self._build_report(crash_type, message, stack_trace or "", extra_keys)
        response = await self._client.post(REPORT_PATH, report.to_payload())
        if not response.ok:
            self._logger.error(
                "crash.report_failed",
                fingerprint=report.fingerprint,
                error_message=response.error,
                status_code=response.status_code,
            )
            self._client.events.emit(
                Event.CRASH_REPORT_FAILED, error=response.exception, reason="network",
            )
            return False

        self._logger.info(
            "crash.report_submitted",
            fingerprint=report.fingerprint,
            report_type=crash_type.value,
            breadcrumb_count=len(report.breadcrumbs),
        )
        self._client.events.emit(
            Event.CRASH_REPORT_SUBMITTED, fingerprint=report.fingerprint, report_type=crash_type,
        )
        return True

    async def report_exception(
        self,
        exc: BaseException,
        report_type: Union[CrashType, str] = CrashType.NON_FATAL,
        extra_keys: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Submit a caught exception with its formatted traceback."""
        stack_trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        message = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
        return await self.submit(report_type, message, stack_trace, extra_keys)

    def _build_report(
        self,
        crash_type: CrashType,
        message: str,
        stack_trace: str,
        extra_keys: Optional[Mapping[str, Any]],
    ) -> CrashReport:
        keys = self.custom_keys
        if extra_keys:
            keys.update({k: str(v) for k, v in extra_keys.items()})

        return CrashReport(
            session_id=self._session_id,
            user_id=self.resolve_user_id(),
            report_type=crash_type,
            message=message,
            fingerprint=compute_fingerprint(stack_trace),
            device_info=self._device_info,
            timestamp=utc_timestamp(),
            breadcrumbs=tuple(self._breadcrumbs.snapshot()),
            stack_trace=stack_trace,
            custom_keys=keys,
        )

    def _reject(self, exc: BaasError, reason: str) -> bool:
        log_exception(self._logger, exc, "crash.report_rejected", reason=reason)
        self._client.events.emit(Event.CRASH_REPORT_FAILED, error=exc, reason=reason)
        return False
