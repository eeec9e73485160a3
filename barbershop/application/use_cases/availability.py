from __future__ import annotations

import logging
import threading
from datetime import date, datetime
from typing import Callable
from zoneinfo import ZoneInfo

from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.ports.change_feed import ChangeFeedPort, Subscription
from barbershop.application.utils.refresh_signal import RefreshSignal
from barbershop.application.utils.time_slots import generate_time_slots, has_slot_elapsed, is_closed_weekday
from barbershop.domain.entities.availability import DayAvailability, DayStatus, SlotAvailability, SlotState
from barbershop.domain.entities.change_event import ALL_EVENTS, DELETE, ChangeEvent


DEFAULT_BLOCK_REASON = "Nuk ka termine për këtë datë."
BOOKINGS_TABLE = "bookings"


class AvailabilityResolver:
    def __init__(
        self,
        store: BookingStorePort,
        timezone: ZoneInfo,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._timezone = timezone
        self._clock = clock or (lambda: datetime.now(self._timezone))
        self._logger = logging.getLogger(__name__)

    def resolve(self, day: date, now: datetime | None = None) -> DayAvailability:
        """
        Classify day and each generated slot.

        Checks run in order and short-circuit: weekly closure (no store query),
        admin blocked period, booked slots, then elapsed slots for today.
        Store failures propagate to the caller.
        """
        now = now or self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=self._timezone)
        else:
            now = now.astimezone(self._timezone)
        today = now.date()
        time_slots = generate_time_slots()

        if is_closed_weekday(day):
            return DayAvailability(
                date=day,
                status=DayStatus.weekly_closed,
                slots=tuple(SlotAvailability(time=t, state=SlotState.booked) for t in time_slots),
            )

        period = self._store.find_blocking_period(day)
        if period is not None:
            reason = (period.reason or "").strip() or DEFAULT_BLOCK_REASON
            self._logger.debug("Date blocked", extra={"date": day.isoformat(), "reason": reason})
            return DayAvailability(date=day, status=DayStatus.admin_blocked, slots=(), reason=reason)

        booked = set(self._store.get_booked_slots(day))

        slots: list[SlotAvailability] = []
        for label in time_slots:
            if label in booked:
                state = SlotState.booked
            elif day < today or (day == today and has_slot_elapsed(day, label, now)):
                state = SlotState.elapsed
            else:
                state = SlotState.available
            slots.append(SlotAvailability(time=label, state=state))

        status = DayStatus.past if day < today else DayStatus.open
        return DayAvailability(date=day, status=status, slots=tuple(slots))


class AvailabilityWatcher:
    """
    Keeps the availability of one displayed date fresh.

    Re-resolves when the date changes, when the refresh signal fires after a
    local write, and on change notifications for the displayed date. DELETE
    notifications always trigger a reload because the removed row's date is
    not part of the payload.
    """

    def __init__(
        self,
        resolver: AvailabilityResolver,
        feed: ChangeFeedPort,
        refresh: RefreshSignal | None = None,
        on_update: Callable[[DayAvailability], None] | None = None,
    ) -> None:
        self._resolver = resolver
        self._feed = feed
        self._on_update = on_update
        self._selected: date | None = None
        self._current: DayAvailability | None = None
        self._subscription: Subscription | None = None
        self._disconnect_refresh = refresh.connect(self._on_refresh) if refresh else None
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def selected_date(self) -> date | None:
        return self._selected

    @property
    def current(self) -> DayAvailability | None:
        return self._current

    def select_date(self, day: date) -> DayAvailability:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

        self._selected = day
        self._current = None
        self._subscription = self._feed.subscribe(BOOKINGS_TABLE, ALL_EVENTS, self._on_change)
        return self.reload()

    def reload(self) -> DayAvailability:
        day = self._selected
        if day is None:
            raise ValueError("No date selected")

        availability = self._resolver.resolve(day)
        with self._lock:
            # A newer date selection wins over a late reload of the old one.
            if day != self._selected:
                return availability
            self._current = availability
        if self._on_update:
            self._on_update(availability)
        return availability

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        if self._disconnect_refresh is not None:
            self._disconnect_refresh()
            self._disconnect_refresh = None

    def _on_refresh(self, version: int) -> None:
        if self._selected is not None:
            self.reload()

    def _on_change(self, event: ChangeEvent) -> None:
        if self._selected is None:
            return
        if event.event_type == DELETE or event.new.get("date") == self._selected.isoformat():
            self._logger.debug(
                "Reloading availability after change",
                extra={"event": event.event_type, "date": self._selected.isoformat()},
            )
            self.reload()
