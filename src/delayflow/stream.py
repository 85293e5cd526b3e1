"""Push-based stream with operator chaining.

A Stream is cold: it is only a recipe (an on_subscribe function) until
someone subscribes. Every subscribe() runs the recipe again with a fresh
Subscriber, so each subscription owns its own upstream resources.
Operators are plain functions Stream -> Stream, composed with pipe().
unsubscribe() on the returned handle tears down the entire chain.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from delayflow.subscription import Subscription, Teardown

if TYPE_CHECKING:
    from delayflow.delay_when import DurationSelector

T = TypeVar("T")
U = TypeVar("U")

Operator = Callable[["Stream[Any]"], "Stream[Any]"]

logger = logging.getLogger("delayflow.stream")


class Subscriber(Subscription, Generic[T]):
    """Guarded observer. Delivers nothing after a terminal notification.

    After error() or complete() the subscriber unsubscribes itself, which
    runs every teardown registered on it (upstream subscriptions, timers).

    An exception raised by one of its callbacks (or an error with no
    handler) is remembered as escaped, so Stream.subscribe can tell it
    apart from an upstream failing after this subscriber stopped.
    """

    __slots__ = ("_on_next", "_on_error", "_on_complete", "_stopped", "_escaped")

    def __init__(
        self,
        on_next: Callable[[T], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> None:
        super().__init__()
        self._on_next = on_next
        self._on_error = on_error
        self._on_complete = on_complete
        self._stopped = False
        self._escaped: Exception | None = None

    @property
    def stopped(self) -> bool:
        return self._stopped

    def escaped(self, err: Exception) -> bool:
        """Did err come out of this subscriber's own callbacks?"""
        return err is self._escaped

    def next(self, value: T) -> None:
        if self._stopped:
            return
        if self._on_next is not None:
            self._call(self._on_next, value)

    def error(self, err: Exception) -> None:
        """Deliver err, then tear down. Re-raises when there is no handler."""
        if self._stopped:
            return
        self._stopped = True
        try:
            if self._on_error is None:
                self._escaped = err
                raise err
            self._call(self._on_error, err)
        finally:
            self.unsubscribe()

    def complete(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        try:
            if self._on_complete is not None:
                self._call(self._on_complete)
        finally:
            self.unsubscribe()

    def _call(self, callback: Callable[..., None], *args: Any) -> None:
        try:
            callback(*args)
        except Exception as err:
            self._escaped = err
            raise

    def unsubscribe(self) -> None:
        self._stopped = True
        super().unsubscribe()


class Stream(Generic[T]):
    """Cold push-based stream built from an on_subscribe function.

    on_subscribe receives the Subscriber and may return a teardown
    (a callable or a Subscription) to run when the subscription ends.
    """

    __slots__ = ("_on_subscribe",)

    def __init__(self, on_subscribe: Callable[[Subscriber[T]], Teardown | None]) -> None:
        self._on_subscribe = on_subscribe

    def subscribe(
        self,
        on_next: Callable[[T], None] | Subscriber[T] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        on_complete: Callable[[], None] | None = None,
    ) -> Subscription:
        """Start the stream. Returns the handle that cancels it.

        Pass callbacks, or an existing Subscriber (used by operators so
        the upstream can observe its closed state while still emitting).

        If on_subscribe raises after the subscriber already stopped, the
        error has nowhere to go: it is logged and dropped. Errors escaping
        the subscriber's own callbacks keep propagating to the caller.
        """
        if isinstance(on_next, Subscriber):
            subscriber = on_next
        else:
            subscriber = Subscriber(on_next, on_error, on_complete)
        try:
            subscriber.add(self._on_subscribe(subscriber))
        except Exception as err:
            if not subscriber.stopped:
                subscriber.error(err)
            elif subscriber.escaped(err):
                raise
            else:
                logger.exception("Dropped error raised after %r stopped", subscriber)
        return subscriber

    def pipe(self, *operators: Operator) -> Stream[Any]:
        """Apply operators left to right."""
        return functools.reduce(lambda stream, op: op(stream), operators, self)

    # --- Fluent shortcuts ---

    def map(self, fn: Callable[[T], U]) -> Stream[U]:
        """Transform values through fn."""
        from delayflow.operators import map as _map

        return _map(fn)(self)

    def filter(self, predicate: Callable[[T], bool]) -> Stream[T]:
        """Only pass values where predicate returns True."""
        from delayflow.operators import filter as _filter

        return _filter(predicate)(self)

    def delay_when(
        self,
        duration_selector: DurationSelector[T],
        subscription_delay: Any = None,
        *,
        release_on_complete: bool | None = None,
    ) -> Stream[T]:
        """Delay each value until its duration stream resolves."""
        from delayflow.delay_when import delay_when as _delay_when

        return _delay_when(
            duration_selector, subscription_delay, release_on_complete=release_on_complete
        )(self)

    def __repr__(self) -> str:
        name = getattr(self._on_subscribe, "__qualname__", repr(self._on_subscribe))
        return f"Stream({name})"
