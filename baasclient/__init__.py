from .client import BaasClient
from .clients import (
    BaseClient,
    HostSelector,
    RestClient,
)
from .crash import (
    BreadcrumbBuffer,
    CrashReporter,
    capture_device_info,
    compute_fingerprint,
)
from .limiting import ReportRateLimiter
from .models import (
    Breadcrumb,
    BreadcrumbKind,
    ClientSettings,
    CrashReport,
    CrashReportingSettings,
    CrashType,
    DeviceInfo,
    HostSelection,
    NetworkResponse,
    RetryPolicy,
    SDK_VERSION,
)
from .exceptions import (
    ErrorKind,
    # Base exceptions
    BaasError,
    ConfigError,
    ValidationError,
    NotConnectedError,
    # Network errors
    NetworkError,
    ConnectionError,
    TimeoutError,
    HostUnavailableError,
    # HTTP errors
    HTTPError,
    ClientError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    RateLimitedError,
    ServerError,
    # Utilities
    classify_http_error,
    error_kind_for_status,
    retry_after_from_response,
)
from .observability import (
    BaasLoggerAdapter,
    Event,
    EventEmitter,
    configure_logging,
    get_baas_logger,
)
from .session import SessionStore
from .utils import to_json_exclude_empty

__version__ = SDK_VERSION


__all__ = [
    # Entry points
    "BaasClient",
    "RestClient",
    "CrashReporter",

    # Building blocks (for extending)
    "BaseClient",
    "HostSelector",
    "ReportRateLimiter",
    "BreadcrumbBuffer",
    "SessionStore",
    "capture_device_info",
    "compute_fingerprint",
    "to_json_exclude_empty",

    # Configuration
    "ClientSettings",
    "CrashReportingSettings",
    "RetryPolicy",

    # Models
    "NetworkResponse",
    "HostSelection",
    "Breadcrumb",
    "BreadcrumbKind",
    "CrashReport",
    "CrashType",
    "DeviceInfo",

    # Notifications and logging
    "Event",
    "EventEmitter",
    "BaasLoggerAdapter",
    "configure_logging",
    "get_baas_logger",

    # Exceptions
    "ErrorKind",
    "BaasError",
    "ConfigError",
    "ValidationError",
    "NotConnectedError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "HostUnavailableError",
    "HTTPError",
    "ClientError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "RateLimitedError",
    "ServerError",

    # Utility functions
    "classify_http_error",
    "error_kind_for_status",
    "retry_after_from_response",

    "SDK_VERSION",
    "__version__",
]
