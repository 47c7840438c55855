"""Small utilities shared across modules."""

from .time import elapsed_ms, monotonic_ms

__all__ = ["elapsed_ms", "monotonic_ms"]
