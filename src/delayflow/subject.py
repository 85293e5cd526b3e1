"""Subject — a hot stream you push values into.

Unlike a cold Stream, a Subject does not replay anything: subscribers only
see values pushed after they subscribed. Once it errors or completes, late
subscribers receive the terminal notification immediately.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from delayflow.errors import DeliveryError
from delayflow.stream import Stream, Subscriber

T = TypeVar("T")


class Subject(Stream[T]):
    """Multicast push-based stream."""

    __slots__ = ("_subscribers", "_stopped", "_error")

    def __init__(self) -> None:
        super().__init__(self._attach)
        self._subscribers: list[Subscriber[T]] = []
        self._stopped = False
        self._error: Exception | None = None

    @property
    def observer_count(self) -> int:
        """Number of live subscribers. Useful for testing teardown."""
        return len(self._subscribers)

    def next(self, value: T) -> None:
        """Push a value to all subscribers."""
        if self._stopped:
            return
        _broadcast(list(self._subscribers), "next", value)

    def error(self, err: Exception) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._error = err
        subscribers, self._subscribers = self._subscribers, []
        _broadcast(subscribers, "error", err)

    def complete(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        subscribers, self._subscribers = self._subscribers, []
        _broadcast(subscribers, "complete")

    def _attach(self, subscriber: Subscriber[T]) -> Callable[[], None] | None:
        if self._stopped:
            if self._error is not None:
                subscriber.error(self._error)
            else:
                subscriber.complete()
            return None
        self._subscribers.append(subscriber)

        def _detach() -> None:
            try:
                self._subscribers.remove(subscriber)
            except ValueError:
                pass  # already removed

        return _detach

    def __repr__(self) -> str:
        state = "stopped" if self._stopped else "open"
        return f"Subject({state}, observers={len(self._subscribers)})"


def _broadcast(subscribers: list[Subscriber[Any]], method: str, *args: Any) -> None:
    """Notify every subscriber, then raise whatever they raised."""
    errors: list[Exception] = []
    for subscriber in subscribers:
        try:
            getattr(subscriber, method)(*args)
        except Exception as err:
            errors.append(err)
    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise DeliveryError(errors)
