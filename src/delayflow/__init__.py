"""delayflow: push-based streams with per-value delays."""

from importlib.metadata import version as _version

__version__ = _version("delayflow")

from delayflow.errors import DeliveryError, UnsubscriptionError
from delayflow.subscription import Subscription
from delayflow.stream import Stream, Subscriber
from delayflow.subject import Subject
from delayflow.create import defer, empty, from_, never, of, throw, timer
from delayflow.operators import default_if_empty, filter, map, map_to, merge_map, take
from delayflow.delay_when import NO_VALUE, delay_when
from delayflow.scheduler import set_scheduler

__all__ = [
    "Stream",
    "Subscriber",
    "Subscription",
    "Subject",
    "from_",
    "defer",
    "of",
    "empty",
    "never",
    "throw",
    "timer",
    "map",
    "filter",
    "take",
    "map_to",
    "default_if_empty",
    "merge_map",
    "delay_when",
    "NO_VALUE",
    "set_scheduler",
    "UnsubscriptionError",
    "DeliveryError",
]
