from .breadcrumbs import BreadcrumbBuffer
from .device import capture_device_info
from .fingerprint import compute_fingerprint, normalize_frame
from .reporter import CrashReporter

__all__ = [
    "BreadcrumbBuffer",
    "capture_device_info",
    "compute_fingerprint",
    "normalize_frame",
    "CrashReporter",
]
