"""Creation functions — turn plain Python values into Streams.

from_() is the single adaptation point: anything accepted where a stream
is expected (duration selectors, subscription delays, merge_map
projections) goes through it.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from concurrent.futures import CancelledError
from typing import Any, Callable, TypeVar

from delayflow.scheduler import marshal
from delayflow.stream import Stream, Subscriber

T = TypeVar("T")


def from_(value: Any) -> Stream[Any]:
    """Adapt a stream, a future or an iterable into a Stream.

    - Stream: returned unchanged.
    - Future-like (has add_done_callback): emits the result then completes,
      or errors with the future's exception.
    - Iterable: emits each item, then completes.

    Raises TypeError for anything else.
    """
    if isinstance(value, Stream):
        return value
    if callable(getattr(value, "add_done_callback", None)):
        return _from_future(value)
    if isinstance(value, Iterable):
        return _from_iterable(value)
    raise TypeError(f"{type(value).__name__!r} object cannot be adapted to a Stream")


def _from_iterable(iterable: Iterable[T]) -> Stream[T]:
    def on_subscribe(subscriber: Subscriber[T]) -> None:
        for item in iterable:
            subscriber.next(item)
            # Downstream may have taken what it needs.
            if subscriber.closed:
                return
        subscriber.complete()

    return Stream(on_subscribe)


def _from_future(future: Any) -> Stream[Any]:
    def on_subscribe(subscriber: Subscriber[Any]) -> None:
        def deliver(done: Any) -> None:
            if done.cancelled():
                subscriber.error(CancelledError())
                return
            exc = done.exception()
            if exc is not None:
                subscriber.error(exc)
                return
            subscriber.next(done.result())
            subscriber.complete()

        # Late callbacks after unsubscribe are no-ops on a stopped subscriber.
        future.add_done_callback(lambda done: marshal(lambda: deliver(done)))

    return Stream(on_subscribe)


def defer(factory: Callable[[], Any]) -> Stream[Any]:
    """Call factory on every subscribe and subscribe to its adapted result."""

    def on_subscribe(subscriber: Subscriber[Any]) -> None:
        from_(factory()).subscribe(subscriber)

    return Stream(on_subscribe)


def of(*values: T) -> Stream[T]:
    """Emit the given values synchronously, then complete."""
    return _from_iterable(values)


def empty() -> Stream[Any]:
    """Complete immediately without emitting."""
    return Stream(lambda subscriber: subscriber.complete())


def never() -> Stream[Any]:
    """Never emit, never terminate."""
    return Stream(lambda subscriber: None)


def throw(err: Exception) -> Stream[Any]:
    """Error immediately with err."""
    return Stream(lambda subscriber: subscriber.error(err))


def timer(seconds: float, value: Any = 0) -> Stream[Any]:
    """Emit value once after seconds, then complete.

    Uses threading.Timer (daemon=True). Unsubscribing cancels the timer.
    Expirations go through marshal(), so overlapping timers deliver one at
    a time, or on the scheduler thread once set_scheduler() was called.
    """

    def on_subscribe(subscriber: Subscriber[Any]) -> Callable[[], None]:
        def fire() -> None:
            subscriber.next(value)
            subscriber.complete()

        t = threading.Timer(seconds, marshal, args=[fire])
        t.daemon = True
        t.start()
        return t.cancel

    return Stream(on_subscribe)
