from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from itertools import count
from threading import Lock
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

TEvent = TypeVar("TEvent")
Handler = Callable[[Any], None]


@dataclass(frozen=True, slots=True)
class Subscription:
    event_type: type[object]
    token: int


class EventBus:
    """In-process bus for storage events.

    Handlers run synchronously in the publishing thread; during ``compute_all``
    that is a detector worker, so handlers must be thread safe. Handler lists
    are copy-on-write tuples, publishing never takes the lock for long.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._tokens = count(1)
        self._handlers: dict[type[object], tuple[tuple[int, Handler], ...]] = {}

    def subscribe(
        self, event_type: type[TEvent], handler: Callable[[TEvent], None]
    ) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._handlers[event_type] = (*self._handlers.get(event_type, ()), (token, handler))
        return Subscription(event_type=event_type, token=token)

    def unsubscribe(self, subscription: Subscription) -> None:
        """Drop a subscription; unknown or already removed ones are ignored."""
        with self._lock:
            current = self._handlers.get(subscription.event_type, ())
            kept = tuple(item for item in current if item[0] != subscription.token)
            if kept:
                self._handlers[subscription.event_type] = kept
            else:
                self._handlers.pop(subscription.event_type, None)

    def publish(self, event: object) -> None:
        with self._lock:
            handlers = self._handlers.get(type(event), ())
        for _token, handler in handlers:
            try:
                handler(event)
            except Exception:
                # One broken subscriber must not stop the pass.
                logger.exception(
                    "Handler of %s failed",
                    type(event).__name__,
                    extra={"event": type(event).__name__},
                )
