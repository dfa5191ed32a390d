"""Lightweight in-process event bus.

The frames storage publishes what it loads and recomputes; the CLI and tests
subscribe.
"""

from .event_bus import EventBus, Subscription
from .storage_events import (
    DatasetLoaded,
    DetectorFailed,
    DetectorRecomputed,
    DetectorUpToDate,
)

__all__ = [
    "EventBus",
    "Subscription",
    "DatasetLoaded",
    "DetectorRecomputed",
    "DetectorUpToDate",
    "DetectorFailed",
]
