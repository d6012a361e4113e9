"""
Stack-trace fingerprinting for crash deduplication.

Two traces that differ only in memory addresses, line numbers or resource path
prefixes produce the same fingerprint. Only the top five usable frames count.
"""

from __future__ import annotations

import hashlib
import re

__all__ = ["compute_fingerprint", "normalize_frame", "EMPTY_TRACE_MARKER", "MAX_FRAMES"]

EMPTY_TRACE_MARKER = "no_stack_trace"
MAX_FRAMES = 5

_PATH_PREFIX = re.compile(r"(?:res|user)://")
_HEX_ADDRESS = re.compile(r"0x[0-9a-fA-F]+")
_COLON_LINE = re.compile(r":\d+")
_WORD_LINE = re.compile(r"\bline \d+\b")
_SPACES = re.compile(r" {2,}")


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def normalize_frame(line: str) -> str:
    """
    Reduce one stack-trace line to its stable part.

    Examples:
        >>> normalize_frame("  at res://scripts/player.gd:42 0x7ffde1a0")
        'scripts/player.gd'
        >>> normalize_frame('File "app.py", line 12, in main')
        'File "app.py", , in main'
    """
    frame = line.strip()
    frame = _PATH_PREFIX.sub("", frame)
    frame = _HEX_ADDRESS.sub("", frame)
    frame = _COLON_LINE.sub("", frame)
    frame = _WORD_LINE.sub("", frame)
    frame = frame.strip()
    if frame.startswith("at "):
        frame = frame[3:]
    return _SPACES.sub(" ", frame).strip()


def compute_fingerprint(stack_trace: str) -> str:
    """
    Return the lowercase hex SHA-256 fingerprint of a stack trace.

    An empty trace hashes a fixed marker. If normalization leaves nothing usable
    the raw trace is hashed instead, so distinct garbage never collapses onto
    one fingerprint.
    """
    if not stack_trace:
        return _sha256(EMPTY_TRACE_MARKER)

    frames: list[str] = []
    for line in stack_trace.split("\n"):
        frame = normalize_frame(line)
        if frame:
            frames.append(frame)
            if len(frames) >= MAX_FRAMES:
                break

    if not frames:
        return _sha256(stack_trace)
    return _sha256("\n".join(frames))
