"""delay_when — time-shift each value until its own duration stream resolves.

When the source emits a value, duration_selector(value, index) is called
and should return a stream (or anything from_() adapts), called the
duration stream. The value is re-emitted on the output only when that
duration stream emits its first value or completes, whichever comes first.
Values whose durations resolve out of order are emitted out of order.

An optional subscription_delay gates the subscription to the source: the
source is only subscribed once subscription_delay emits or completes.

Usage:
    clicks.pipe(delay_when(lambda click, i: timer(random.random() * 5)))

Completion releasing a value is deprecated. It stays the default for
compatibility; pass release_on_complete=False (or flip
RELEASE_ON_COMPLETE) to get the future behavior, where an empty duration
stream drops its value and an empty subscription_delay never opens.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from delayflow.create import defer, from_
from delayflow.operators import default_if_empty, map, map_to, merge_map, take
from delayflow.stream import Operator, Stream

T = TypeVar("T")

DurationSelector = Callable[[T, int], Any]

logger = logging.getLogger("delayflow.delay_when")

# Deprecated: completion of a notifier counts as resolution.
RELEASE_ON_COMPLETE = True


class _NoValue:
    """Marker emitted by a notifier that completed without a value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE = _NoValue()


def _resolution(notifier: Any, release_on_complete: bool) -> Stream[Any]:
    """First value of notifier, or NO_VALUE if it completes empty."""
    first = from_(notifier).pipe(take(1))
    if not release_on_complete:
        return first
    return first.pipe(default_if_empty(NO_VALUE), map(_note_empty))


def _note_empty(signal: Any) -> Any:
    if signal is NO_VALUE:
        logger.debug("Empty notifier released a value (deprecated behavior)")
    return signal


def delay_when(
    duration_selector: DurationSelector[T],
    subscription_delay: Any = None,
    *,
    release_on_complete: bool | None = None,
) -> Operator:
    """Delay each source value until duration_selector's stream resolves.

    Errors from duration_selector, from any duration stream, from
    subscription_delay or from the source terminate the output unchanged,
    tearing down everything else that is still active. The output completes
    once the source completed and every pending duration resolved.
    """
    if release_on_complete is None:
        release_on_complete = RELEASE_ON_COMPLETE

    def operator(source: Stream[T]) -> Stream[T]:
        def delay(value: T, index: int) -> Stream[T]:
            return _resolution(duration_selector(value, index), release_on_complete).pipe(
                map_to(value)
            )

        delayed = source.pipe(merge_map(delay))
        if subscription_delay is None:
            return delayed

        def open_gate(signal: Any, _index: int) -> Stream[T]:
            logger.debug("Subscription delay resolved with %r, subscribing to source", signal)
            return delayed

        return defer(lambda: _resolution(subscription_delay, release_on_complete)).pipe(
            merge_map(open_gate)
        )

    return operator
