"""Observer events emitted by :class:`~asyncresource.resource.NetworkResource`.

Every branch of the freshness decision reports what it did through a
:class:`ResourceEvent` passed to an injectable observer callable. The
default observer, :func:`log_event`, writes to the standard :mod:`logging`
tree at DEBUG level; the CLI swaps in an observer that prints through
:mod:`asyncresource.output` when ``--verbose`` is set.

Observers run inline. Exceptions raised by an observer propagate to the
caller of ``get``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


class ResourceEventKind(str, enum.Enum):
    """The decision points a network resource reports."""

    MEMORY_HIT = "memory_hit"
    FETCH_STARTED = "fetch_started"
    FETCH_SUCCEEDED = "fetch_succeeded"
    FETCH_FAILED = "fetch_failed"
    CACHE_WRITE = "cache_write"
    CACHE_FALLBACK = "cache_fallback"
    FALLBACK_SKIPPED = "fallback_skipped"
    CACHE_LOAD = "cache_load"


@dataclass(frozen=True)
class ResourceEvent:
    """A single observation from a resource's ``get`` call.

    Attributes:
        kind: Which branch was taken.
        location: The url of the resource that emitted the event.
        message: Human-readable description.
    """

    kind: ResourceEventKind
    location: str
    message: str


Observer = Callable[[ResourceEvent], None]


def log_event(event: ResourceEvent) -> None:
    """Default observer: log *event* at DEBUG level."""
    logger.debug("[%s] %s", event.kind.value, event.message)
