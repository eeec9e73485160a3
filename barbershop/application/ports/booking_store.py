from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date

from barbershop.domain.entities.blocked_period import BlockedPeriod
from barbershop.domain.entities.booking import Booking, BookingInsert
from barbershop.domain.entities.profile import Profile


class BookingStorePort(ABC):
    @abstractmethod
    def with_principal(self, principal_id: str | None) -> "BookingStorePort":
        """Return a view of the same store whose mutations are authorized as principal_id."""
        raise NotImplementedError

    @abstractmethod
    def list_bookings(self, day: date | None = None, include_completed: bool = False) -> list[Booking]:
        """Bookings ordered by date then time_slot; active only unless include_completed."""
        raise NotImplementedError

    @abstractmethod
    def get_booked_slots(self, day: date) -> list[str]:
        """Time slots taken on day, completed bookings included."""
        raise NotImplementedError

    @abstractmethod
    def find_blocking_period(self, day: date) -> BlockedPeriod | None:
        """First blocked period with start_date <= day <= end_date."""
        raise NotImplementedError

    @abstractmethod
    def insert_booking(self, booking: BookingInsert) -> Booking:
        """Insert one row. Raises ConflictError on a (date, time_slot) uniqueness violation."""
        raise NotImplementedError

    @abstractmethod
    def mark_completed(self, booking_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_booking(self, booking_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def insert_blocked_period(self, start_date: date, end_date: date, reason: str | None = None) -> BlockedPeriod:
        raise NotImplementedError

    @abstractmethod
    def get_profile(self, principal_id: str) -> Profile | None:
        raise NotImplementedError
