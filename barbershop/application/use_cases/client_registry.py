from __future__ import annotations

import json
import logging
import threading

from barbershop.application.exceptions import LocalStateError
from barbershop.application.ports.change_feed import ChangeFeedPort, Subscription
from barbershop.application.ports.local_storage import LocalStoragePort
from barbershop.domain.entities.booking import Booking
from barbershop.domain.entities.change_event import DELETE, ChangeEvent


STORAGE_KEY = "user_bookings"
BOOKINGS_TABLE = "bookings"


def reconcile(bookings: list[Booking], event: ChangeEvent) -> list[Booking]:
    """Drop the booking removed by a DELETE event; any other event leaves the list as is."""
    if event.table != BOOKINGS_TABLE or event.event_type != DELETE:
        return bookings

    deleted_id = (event.old or {}).get("id")
    if deleted_id is None:
        return bookings
    try:
        deleted_id = int(deleted_id)
    except (TypeError, ValueError):
        return bookings

    if not any(b.id == deleted_id for b in bookings):
        return bookings
    return [b for b in bookings if b.id != deleted_id]


def parse_stored_bookings(raw: str) -> list[Booking]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LocalStateError(f"Stored bookings are not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise LocalStateError("Stored bookings must be a list")
    try:
        return [Booking.from_row(item) for item in data]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise LocalStateError(f"Stored booking is malformed: {e}") from e


class ClientBookingRegistry:
    """
    Device-local list of bookings this client created. Writes go through to
    local storage immediately; deletions made anywhere else are picked up from
    the change feed. Never writes to the booking store.
    """

    def __init__(self, storage: LocalStoragePort, feed: ChangeFeedPort | None = None) -> None:
        self._storage = storage
        self._feed = feed
        self._bookings: list[Booking] = []
        self._subscription: Subscription | None = None
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def bookings(self) -> list[Booking]:
        with self._lock:
            return list(self._bookings)

    def contains(self, booking_id: int) -> bool:
        with self._lock:
            return any(b.id == booking_id for b in self._bookings)

    def load(self) -> list[Booking]:
        raw = self._storage.get_item(STORAGE_KEY)
        bookings: list[Booking] = []
        if raw:
            try:
                bookings = parse_stored_bookings(raw)
            except LocalStateError as e:
                self._logger.warning("Discarding corrupt local bookings", extra={"error": str(e)})
                self._storage.remove_item(STORAGE_KEY)
                bookings = []
        with self._lock:
            self._bookings = bookings
        return list(bookings)

    def add(self, booking: Booking) -> None:
        with self._lock:
            self._bookings = [b for b in self._bookings if b.id != booking.id] + [booking]
            self._persist()

    def remove(self, booking_id: int) -> bool:
        with self._lock:
            remaining = [b for b in self._bookings if b.id != booking_id]
            if len(remaining) == len(self._bookings):
                return False
            self._bookings = remaining
            self._persist()
            return True

    def apply(self, event: ChangeEvent) -> bool:
        """Reconcile against one change event. Returns True when an entry was removed."""
        with self._lock:
            updated = reconcile(self._bookings, event)
            if updated is self._bookings:
                return False
            self._bookings = updated
            self._persist()
        self._logger.info("Tracked booking deleted remotely", extra={"booking_id": event.old.get("id")})
        return True

    def start(self) -> None:
        if self._feed is None or self._subscription is not None:
            return
        self._subscription = self._feed.subscribe(BOOKINGS_TABLE, DELETE, self.apply)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _persist(self) -> None:
        payload = json.dumps([b.to_row() for b in self._bookings], ensure_ascii=False)
        self._storage.set_item(STORAGE_KEY, payload)
