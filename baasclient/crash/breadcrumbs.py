"""Fixed-capacity ring buffer of breadcrumbs attached to crash reports."""

from __future__ import annotations

import threading
from typing import List, Optional, Union

from ..exceptions import ValidationError
from ..models.crash import Breadcrumb, BreadcrumbKind
from ..utils import utc_timestamp


class BreadcrumbBuffer:
    """
    Circular buffer holding the most recent ``capacity`` breadcrumbs.

    Slots are preallocated; once the buffer has wrapped, each write overwrites
    the oldest entry.
    """

    def __init__(self, capacity: int = 50):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._capacity = capacity
        self._slots: List[Optional[Breadcrumb]] = [None] * capacity
        self._cursor = 0
        self._total = 0
        self._lock = threading.Lock()

    def record(self, kind: Union[BreadcrumbKind, str], message: str) -> Breadcrumb:
        """Store a breadcrumb stamped with the current UTC time and return it."""
        try:
            crumb_kind = BreadcrumbKind(kind)
        except ValueError as exc:
            raise ValidationError(
                message=f"Unknown breadcrumb kind: {kind!r}",
                field_name="kind",
                cause=exc,
            ) from exc

        crumb = Breadcrumb(kind=crumb_kind, message=message, timestamp=utc_timestamp())
        with self._lock:
            self._slots[self._cursor] = crumb
            self._cursor = (self._cursor + 1) % self._capacity
            self._total += 1
        return crumb

    def snapshot(self) -> List[Breadcrumb]:
        """Return the live breadcrumbs, oldest first, as a new list."""
        with self._lock:
            if self._total < self._capacity:
                slots = self._slots[: self._total]
            else:
                slots = self._slots[self._cursor:] + self._slots[: self._cursor]
        return [crumb for crumb in slots if crumb is not None]

    def __len__(self) -> int:
        with self._lock:
            return min(self._total, self._capacity)

    @property
    def total_recorded(self) -> int:
        with self._lock:
            return self._total

    @property
    def capacity(self) -> int:
        return self._capacity
