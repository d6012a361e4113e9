from __future__ import annotations

import locale
import os
import platform
import sys
from typing import Optional, Tuple

from ..models.crash import DeviceInfo


def _system_memory_mb() -> int:
    # POSIX only; other platforms report 0
    try:
        pages = os.sysconf("SC_PHYS_PAGES")
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return 0
    if pages <= 0 or page_size <= 0:
        return 0
    return int(pages * page_size // (1024 * 1024))


def _current_locale() -> str:
    lang = locale.getlocale()[0]
    return lang or os.environ.get("LANG", "").split(".")[0] or "unknown"


def capture_device_info(
    engine_version: Optional[str] = None,
    renderer: str = "none",
    display_size: Optional[Tuple[int, int]] = None,
) -> DeviceInfo:
    """
    Take a one-off snapshot of the runtime environment.

    Screen dimensions are only included when ``display_size`` is given, so
    headless and server processes omit them.
    """
    uname = platform.uname()
    width, height = display_size if display_size is not None else (None, None)
    return DeviceInfo(
        os_name=uname.system or "unknown",
        os_version=uname.release or "unknown",
        device_model=uname.machine or "unknown",
        locale=_current_locale(),
        processor_name=platform.processor() or uname.machine or "unknown",
        processor_count=os.cpu_count() or 1,
        engine_version=engine_version or f"{platform.python_implementation()} {platform.python_version()}",
        renderer=renderer,
        platform=sys.platform,
        system_memory_mb=_system_memory_mb(),
        screen_width=width,
        screen_height=height,
    )
