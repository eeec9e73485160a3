from __future__ import annotations

import logging
from datetime import date

from barbershop.application.exceptions import AuthorizationError, BookingError, StoreError, ValidationError
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.utils.refresh_signal import RefreshSignal
from barbershop.domain.entities.blocked_period import BlockedPeriod
from barbershop.domain.entities.booking import Booking


MISSING_PERIOD_DATES = "Ju lutem zgjidhni datën e fillimit dhe mbarimit"


class BookingLifecycleManager:
    """
    Admin-side transitions: active -> completed, active|completed -> deleted,
    plus blocked period creation. Keeps the admin's working set of active
    bookings in step with successful mutations.
    """

    def __init__(self, store: BookingStorePort, refresh: RefreshSignal | None = None) -> None:
        self._store = store
        self._refresh = refresh
        self._active: list[Booking] = []
        self._logger = logging.getLogger(__name__)

    @property
    def active_bookings(self) -> list[Booking]:
        return list(self._active)

    def load_active_bookings(self, day: date | None = None) -> list[Booking]:
        try:
            self._active = self._store.list_bookings(day=day, include_completed=False)
        except BookingError:
            self._active = []
            raise
        return self.active_bookings

    def mark_completed(self, booking_id: int) -> None:
        self._call("mark_completed", booking_id, lambda: self._store.mark_completed(booking_id))
        self._active = [b for b in self._active if b.id != booking_id]
        self._logger.info("Booking marked completed", extra={"booking_id": booking_id})
        self._emit_refresh()

    def delete_booking(self, booking_id: int) -> None:
        self._call("delete_booking", booking_id, lambda: self._store.delete_booking(booking_id))
        self._active = [b for b in self._active if b.id != booking_id]
        self._logger.info("Booking deleted", extra={"booking_id": booking_id})
        self._emit_refresh()

    def block_period(self, start_date: date | None, end_date: date | None, reason: str | None = None) -> BlockedPeriod:
        if start_date is None or end_date is None:
            raise ValidationError(MISSING_PERIOD_DATES)
        if start_date > end_date:
            raise ValidationError("Data e fillimit duhet të jetë para datës së mbarimit")

        cleaned_reason = (reason or "").strip() or None
        try:
            period = self._store.insert_blocked_period(start_date, end_date, cleaned_reason)
        except BookingError:
            raise
        except Exception as e:
            raise StoreError(str(e)) from e

        self._logger.info(
            "Period blocked",
            extra={"date": f"{start_date.isoformat()}..{end_date.isoformat()}", "reason": cleaned_reason},
        )
        self._emit_refresh()
        return period

    def _call(self, action: str, booking_id: int, operation) -> None:
        try:
            operation()
        except AuthorizationError:
            self._logger.warning("Store rejected %s", action, extra={"booking_id": booking_id})
            raise
        except BookingError:
            raise
        except Exception as e:
            raise StoreError(str(e)) from e

    def _emit_refresh(self) -> None:
        if self._refresh:
            self._refresh.emit()
