"""Observer registration for session notifications."""

from __future__ import annotations

import threading
from typing import Any, Callable


class EventHook:
    """Ordered set of callbacks fired synchronously on the notifying thread.

    ``subscribe`` hands back a token that ``unsubscribe`` accepts. ``fire``
    iterates over a snapshot, so callbacks may (un)subscribe while being
    notified. Exceptions raised by a callback propagate to whoever fired.
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: dict[int, Callable[..., Any]] = {}
        self._sub_lock = threading.Lock()
        self._next_id = 0

    def subscribe(self, callback: Callable[..., Any]) -> int:
        if not callable(callback):
            raise TypeError(f"{self.name} subscriber must be callable, got {callback!r}")
        with self._sub_lock:
            sub_id = self._next_id
            self._next_id += 1
            self._subscribers[sub_id] = callback
        return sub_id

    def unsubscribe(self, sub_id: int) -> bool:
        with self._sub_lock:
            return self._subscribers.pop(sub_id, None) is not None

    def clear(self) -> None:
        with self._sub_lock:
            self._subscribers.clear()

    def fire(self, *args: Any) -> None:
        with self._sub_lock:
            snapshot = list(self._subscribers.values())
        for callback in snapshot:
            callback(*args)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        return f"EventHook({self.name!r}, subscribers={len(self)})"
