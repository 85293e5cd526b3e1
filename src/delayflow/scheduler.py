"""Thread marshaling for deliveries that originate off the main thread.

Streams are single-threaded: every notification is expected on one thread.
Futures and timers complete on foreign threads, so they hand their
deliveries to marshal().

Call set_scheduler() once from the main/UI thread:
    delayflow.set_scheduler(app.call_from_thread)

After that, a delivery from a background thread is passed to the scheduler.
Deliveries on the scheduler thread stay synchronous. Without a scheduler,
deliveries run on whichever thread fired them, one at a time: overlapping
timers and futures never run stream callbacks concurrently with each other.
Values pushed from your own threads are not covered by that lock; use a
scheduler to serialize those too.
"""

from __future__ import annotations

import threading
from typing import Callable

_scheduler: Callable[[Callable[[], None]], object] | None = None
_scheduler_thread: threading.Thread | None = None

# Reentrant: a delivery may synchronously resolve a future or timer chain.
_delivery_lock = threading.RLock()


def set_scheduler(scheduler: Callable[[Callable[[], None]], object] | None) -> None:
    """Set the global scheduler. Pass None to go back to direct delivery."""
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def marshal(fn: Callable[[], None]) -> None:
    """Run fn on the scheduler thread, or directly if already there."""
    if _scheduler is not None and threading.current_thread() != _scheduler_thread:
        _scheduler(fn)
        return
    with _delivery_lock:
        fn()
