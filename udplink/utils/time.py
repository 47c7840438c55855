"""Monotonic millisecond clock used for liveness and throttle timestamps."""

from __future__ import annotations

import time


def monotonic_ms() -> float:
    """Return the monotonic clock in milliseconds."""

    return time.monotonic() * 1000.0


def elapsed_ms(since_ms: float) -> float:
    return monotonic_ms() - since_ms
