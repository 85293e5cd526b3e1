"""Errors raised by the stream runtime itself.

Errors travelling through a stream are never wrapped. These are only for
failures of the runtime's own bookkeeping.
"""

from __future__ import annotations


class UnsubscriptionError(Exception):
    """One or more teardowns raised while a Subscription was unsubscribing.

    Every teardown still runs. The collected errors are kept on ``errors``
    in the order they were raised.
    """

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        details = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} error(s) during unsubscribe: {details}")


class DeliveryError(Exception):
    """More than one subscriber raised while a Subject broadcast.

    Every subscriber still receives the notification. The raised errors
    are kept on ``errors`` in subscription order.
    """

    def __init__(self, errors: list[BaseException]) -> None:
        self.errors = list(errors)
        details = "; ".join(f"{type(e).__name__}: {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} subscriber(s) raised: {details}")
