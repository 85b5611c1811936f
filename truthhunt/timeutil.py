"""Epoch-millisecond clock helpers."""

from __future__ import annotations
from typing import Callable
import time

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def time_ago_text(elapsed_ms: int) -> str:
    """Human text for an elapsed duration: 'just now', '5 minutes ago', '2 hours ago'."""
    minutes = max(elapsed_ms, 0) // 60000
    hours = max(elapsed_ms, 0) // 3600000
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'' if minutes == 1 else 's'} ago"
    return f"{hours} hour{'' if hours == 1 else 's'} ago"
