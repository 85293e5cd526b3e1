"""Operators — functions Stream -> Stream.

Each operator subscribes upstream with its own Subscriber and registers
that Subscriber as a teardown of the downstream one, so unsubscribing or
terminating downstream always releases the upstream.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable, TypeVar

from delayflow.create import empty, from_
from delayflow.stream import Operator, Stream, Subscriber

T = TypeVar("T")
U = TypeVar("U")


def _lift(
    source: Stream[Any],
    subscriber: Subscriber[Any],
    on_next: Callable[[Any], None],
    on_complete: Callable[[], None] | None = None,
) -> None:
    """Subscribe to source, routing errors and (by default) completion downstream."""
    upstream: Subscriber[Any] = Subscriber(
        on_next, subscriber.error, on_complete or subscriber.complete
    )
    subscriber.add(upstream)
    source.subscribe(upstream)


def map(fn: Callable[[T], U]) -> Operator:
    """Transform each value through fn. Errors from fn terminate the stream."""

    def operator(source: Stream[T]) -> Stream[U]:
        def on_subscribe(subscriber: Subscriber[U]) -> None:
            def on_next(value: T) -> None:
                try:
                    result = fn(value)
                except Exception as err:
                    subscriber.error(err)
                    return
                subscriber.next(result)

            _lift(source, subscriber, on_next)

        return Stream(on_subscribe)

    return operator


def filter(predicate: Callable[[T], bool]) -> Operator:
    """Only pass values where predicate returns True."""

    def operator(source: Stream[T]) -> Stream[T]:
        def on_subscribe(subscriber: Subscriber[T]) -> None:
            def on_next(value: T) -> None:
                try:
                    keep = predicate(value)
                except Exception as err:
                    subscriber.error(err)
                    return
                if keep:
                    subscriber.next(value)

            _lift(source, subscriber, on_next)

        return Stream(on_subscribe)

    return operator


def take(count: int) -> Operator:
    """Forward the first count values, then complete and release upstream."""

    def operator(source: Stream[T]) -> Stream[T]:
        if count <= 0:
            return empty()

        def on_subscribe(subscriber: Subscriber[T]) -> None:
            seen = 0

            def on_next(value: T) -> None:
                nonlocal seen
                seen += 1
                if seen <= count:
                    subscriber.next(value)
                    if seen == count:
                        subscriber.complete()

            _lift(source, subscriber, on_next)

        return Stream(on_subscribe)

    return operator


def map_to(value: U) -> Operator:
    """Replace every value with a fixed one."""

    def operator(source: Stream[Any]) -> Stream[U]:
        def on_subscribe(subscriber: Subscriber[U]) -> None:
            _lift(source, subscriber, lambda _: subscriber.next(value))

        return Stream(on_subscribe)

    return operator


def default_if_empty(default: Any) -> Operator:
    """Emit default before completing if the source emitted nothing."""

    def operator(source: Stream[T]) -> Stream[Any]:
        def on_subscribe(subscriber: Subscriber[Any]) -> None:
            has_value = False

            def on_next(value: T) -> None:
                nonlocal has_value
                has_value = True
                subscriber.next(value)

            def on_complete() -> None:
                if not has_value:
                    subscriber.next(default)
                subscriber.complete()

            _lift(source, subscriber, on_next, on_complete)

        return Stream(on_subscribe)

    return operator


def merge_map(project: Callable[[T, int], Any]) -> Operator:
    """Project each value to an inner stream and merge all of them.

    project(value, index) may return anything from_() accepts. Every inner
    stream is subscribed immediately, with no concurrency cap. The output
    completes once the source and every active inner stream completed.
    """

    def operator(source: Stream[T]) -> Stream[Any]:
        def on_subscribe(subscriber: Subscriber[Any]) -> None:
            index = itertools.count()
            keys = itertools.count()
            # Active inner subscriptions, keyed by creation order.
            active: dict[int, Subscriber[Any]] = {}
            source_done = False

            def maybe_complete() -> None:
                if source_done and not active:
                    subscriber.complete()

            def on_next(value: T) -> None:
                try:
                    inner_stream = from_(project(value, next(index)))
                except Exception as err:
                    subscriber.error(err)
                    return
                key = next(keys)

                def on_inner_complete() -> None:
                    active.pop(key, None)
                    maybe_complete()

                inner: Subscriber[Any] = Subscriber(
                    subscriber.next, subscriber.error, on_inner_complete
                )
                active[key] = inner
                inner_stream.subscribe(inner)

            def on_source_complete() -> None:
                nonlocal source_done
                source_done = True
                maybe_complete()

            def release_inners() -> None:
                pending = list(active.values())
                active.clear()
                for inner in pending:
                    inner.unsubscribe()

            subscriber.add(release_inners)
            _lift(source, subscriber, on_next, on_source_complete)

        return Stream(on_subscribe)

    return operator
