"""Subscription — a cancellable handle owning a list of teardowns.

Every active piece of a stream graph (a subscriber, a timer, an inner
stream of merge_map) is tied to a Subscription. unsubscribe() runs all
teardowns once, in the order they were added, and the handle stays closed.
"""

from __future__ import annotations

from typing import Callable, Union

from delayflow.errors import UnsubscriptionError

Teardown = Union["Subscription", Callable[[], None]]


class Subscription:
    """Disposable handle. Idempotent unsubscribe, teardowns run once."""

    __slots__ = ("_closed", "_teardowns")

    def __init__(self, teardown: Teardown | None = None) -> None:
        self._closed = False
        self._teardowns: list[Teardown] = []
        if teardown is not None:
            self._teardowns.append(teardown)

    @property
    def closed(self) -> bool:
        return self._closed

    def add(self, teardown: Teardown | None) -> None:
        """Attach a teardown. If already closed, it runs immediately."""
        if teardown is None or teardown is self:
            return
        if self._closed:
            _execute(teardown)
            return
        self._teardowns.append(teardown)

    def unsubscribe(self) -> None:
        """Run every teardown. Errors are collected and raised at the end."""
        if self._closed:
            return
        self._closed = True
        teardowns, self._teardowns = self._teardowns, []
        errors: list[BaseException] = []
        for teardown in teardowns:
            try:
                _execute(teardown)
            except UnsubscriptionError as err:
                errors.extend(err.errors)
            except Exception as err:
                errors.append(err)
        if errors:
            raise UnsubscriptionError(errors)

    def __repr__(self) -> str:
        state = "closed" if self._closed else "active"
        return f"{type(self).__name__}({state})"


def _execute(teardown: Teardown) -> None:
    if isinstance(teardown, Subscription):
        teardown.unsubscribe()
    else:
        teardown()
