"""
Observer lists for UI consumers.

- Callbacks run in registration order
- A callback that raises is logged and skipped; the rest still run
- Nothing propagates back to the emitter
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from observability.logger import log_event

T = TypeVar("T")


class Subscription(Generic[T]):
    """Handle returned by ObserverList.add(); cancel() unregisters."""

    def __init__(self, owner: ObserverList[T], callback: Callable[[T], None]) -> None:
        self._owner = owner
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._owner.contains(self._callback)

    def cancel(self) -> None:
        """Idempotent."""
        self._owner.remove(self._callback)


class ObserverList(Generic[T]):
    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: list[Callable[[T], None]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def add(self, callback: Callable[[T], None]) -> Subscription[T]:
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def remove(self, callback: Callable[[T], None]) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def contains(self, callback: Callable[[T], None]) -> bool:
        return callback in self._callbacks

    def clear(self) -> None:
        self._callbacks.clear()

    def notify(self, value: T) -> None:
        # Iterate a copy: callbacks may cancel their own subscription
        for callback in list(self._callbacks):
            try:
                callback(value)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                log_event({
                    "event_type": "OBSERVER_CALLBACK_ERROR",
                    "observer": self._name,
                    "exception": type(exc).__name__,
                    "message": str(exc),
                })
