import time
from typing import Optional


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


def next_millis(previous: Optional[int], now: Optional[int] = None) -> int:
    """A timestamp strictly greater than ``previous``, tracking wall-clock time"""
    current = now if now is not None else now_millis()
    if previous is not None and current <= previous:
        return previous + 1
    return current
