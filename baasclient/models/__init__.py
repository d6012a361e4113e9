from .results import (
    NetworkResponse,
    HostSelection,
)

from .config import (
    ClientSettings,
    CrashReportingSettings,
    RetryPolicy,
    SDK_VERSION,
)

from .crash import (
    Breadcrumb,
    BreadcrumbKind,
    CrashReport,
    CrashType,
    DeviceInfo,
)

__all__ = [
    # Result Models
    "NetworkResponse",
    "HostSelection",

    # Config Models
    "ClientSettings",
    "CrashReportingSettings",
    "RetryPolicy",
    "SDK_VERSION",

    # Crash Models
    "Breadcrumb",
    "BreadcrumbKind",
    "CrashReport",
    "CrashType",
    "DeviceInfo",
]
