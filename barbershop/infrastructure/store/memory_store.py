from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any

from barbershop.application.exceptions import ConflictError
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.ports.change_feed import ChangeFeedPort
from barbershop.domain.entities.blocked_period import BlockedPeriod
from barbershop.domain.entities.booking import Booking, BookingInsert
from barbershop.domain.entities.change_event import DELETE, INSERT, UPDATE, ChangeEvent
from barbershop.domain.entities.profile import Profile
from barbershop.infrastructure.store.policy import ensure_admin, ensure_can_delete


@dataclass
class MemoryTables:
    bookings: dict[int, Booking] = field(default_factory=dict)
    blocked_periods: list[BlockedPeriod] = field(default_factory=list)
    profiles: dict[str, Profile] = field(default_factory=dict)
    next_booking_id: int = 1
    next_period_id: int = 1
    lock: threading.Lock = field(default_factory=threading.Lock)


class MemoryBookingStore(BookingStorePort):
    """
    In-process tables. The (date, time_slot) check and the insert happen under
    one lock, standing in for a database unique constraint.
    """

    def __init__(
        self,
        feed: ChangeFeedPort | None = None,
        tables: MemoryTables | None = None,
        principal_id: str | None = None,
    ) -> None:
        self._feed = feed
        self._tables = tables or MemoryTables()
        self._principal_id = principal_id

    def with_principal(self, principal_id: str | None) -> "MemoryBookingStore":
        return MemoryBookingStore(feed=self._feed, tables=self._tables, principal_id=principal_id)

    def add_profile(self, principal_id: str, is_admin: bool = False, email: str | None = None) -> Profile:
        profile = Profile(id=principal_id, is_admin=is_admin, email=email, created_at=_now())
        with self._tables.lock:
            self._tables.profiles[principal_id] = profile
        return profile

    def list_bookings(self, day: date | None = None, include_completed: bool = False) -> list[Booking]:
        with self._tables.lock:
            rows = list(self._tables.bookings.values())
        if day is not None:
            rows = [b for b in rows if b.date == day]
        if not include_completed:
            rows = [b for b in rows if not b.is_completed]
        return sorted(rows, key=lambda b: (b.date, b.time_slot))

    def get_booked_slots(self, day: date) -> list[str]:
        with self._tables.lock:
            return [b.time_slot for b in self._tables.bookings.values() if b.date == day]

    def find_blocking_period(self, day: date) -> BlockedPeriod | None:
        with self._tables.lock:
            for period in self._tables.blocked_periods:
                if period.contains(day):
                    return period
        return None

    def insert_booking(self, booking: BookingInsert) -> Booking:
        with self._tables.lock:
            for existing in self._tables.bookings.values():
                if existing.date == booking.date and existing.time_slot == booking.time_slot:
                    raise ConflictError()
            created = Booking(
                id=self._tables.next_booking_id,
                date=booking.date,
                time_slot=booking.time_slot,
                client_name=booking.client_name,
                client_phone=booking.client_phone,
                service_type=booking.service_type,
                is_completed=False,
                created_at=_now(),
                user_id=booking.user_id,
            )
            self._tables.bookings[created.id] = created
            self._tables.next_booking_id += 1

        self._publish(INSERT, new=created.to_row())
        return created

    def mark_completed(self, booking_id: int) -> None:
        with self._tables.lock:
            ensure_admin(self._current_profile(), "update bookings")
            existing = self._tables.bookings.get(booking_id)
            if existing is None:
                return
            updated = replace(existing, is_completed=True)
            self._tables.bookings[booking_id] = updated

        self._publish(UPDATE, new=updated.to_row(), old={"id": booking_id})

    def delete_booking(self, booking_id: int) -> None:
        with self._tables.lock:
            existing = self._tables.bookings.get(booking_id)
            if existing is None:
                return
            ensure_can_delete(self._current_profile(), self._principal_id, existing.user_id)
            del self._tables.bookings[booking_id]

        self._publish(DELETE, old={"id": booking_id})

    def insert_blocked_period(self, start_date: date, end_date: date, reason: str | None = None) -> BlockedPeriod:
        with self._tables.lock:
            ensure_admin(self._current_profile(), "block periods")
            period = BlockedPeriod(
                id=self._tables.next_period_id,
                start_date=start_date,
                end_date=end_date,
                reason=reason,
                created_at=_now(),
            )
            self._tables.blocked_periods.append(period)
            self._tables.next_period_id += 1
        return period

    def get_profile(self, principal_id: str) -> Profile | None:
        with self._tables.lock:
            return self._tables.profiles.get(principal_id)

    def _current_profile(self) -> Profile | None:
        if self._principal_id is None:
            return None
        return self._tables.profiles.get(self._principal_id)

    def _publish(self, event_type: str, new: dict[str, Any] | None = None, old: dict[str, Any] | None = None) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent(table="bookings", event_type=event_type, new=new or {}, old=old or {}))


def _now() -> datetime:
    return datetime.now(timezone.utc)
