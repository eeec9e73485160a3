from __future__ import annotations

import logging
import threading
from itertools import count

from barbershop.application.ports.change_feed import ChangeCallback, ChangeFeedPort, Subscription
from barbershop.domain.entities.change_event import ChangeEvent


class _FeedSubscription(Subscription):
    def __init__(self, feed: "InProcessChangeFeed", key: int) -> None:
        self._feed = feed
        self._key = key

    def unsubscribe(self) -> None:
        self._feed._remove(self._key)


class InProcessChangeFeed(ChangeFeedPort):
    """Synchronous fan-out to subscribers in subscription order. No replay."""

    def __init__(self) -> None:
        self._subscribers: dict[int, tuple[str, str, ChangeCallback]] = {}
        self._ids = count(1)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def subscribe(self, table: str, event: str, callback: ChangeCallback) -> Subscription:
        with self._lock:
            key = next(self._ids)
            self._subscribers[key] = (table, event, callback)
        return _FeedSubscription(self, key)

    def publish(self, event: ChangeEvent) -> None:
        with self._lock:
            targets = [cb for table, ev, cb in self._subscribers.values() if event.matches(table, ev)]

        for callback in targets:
            try:
                callback(event)
            except Exception as e:
                self._logger.exception(
                    "Change subscriber failed",
                    extra={"event": event.event_type, "error": str(e)},
                )

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def _remove(self, key: int) -> None:
        with self._lock:
            self._subscribers.pop(key, None)
