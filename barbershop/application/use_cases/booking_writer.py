from __future__ import annotations

import logging
from datetime import date

from barbershop.application.exceptions import BookingError, ConflictError, StoreError, ValidationError
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.utils.refresh_signal import RefreshSignal
from barbershop.application.utils.time_slots import is_valid_slot
from barbershop.domain.entities.booking import DEFAULT_SERVICE_TYPE, Booking, BookingInsert


MISSING_CLIENT_FIELDS = "Emri i klientit dhe telefoni janë të detyrueshëm."
MISSING_SLOT = "Zgjidhni datën dhe orarin."


class BookingWriter:
    def __init__(self, store: BookingStorePort, refresh: RefreshSignal | None = None) -> None:
        self._store = store
        self._refresh = refresh
        self._logger = logging.getLogger(__name__)

    def create_booking(
        self,
        day: date | None,
        time_slot: str | None,
        client_name: str | None,
        client_phone: str | None,
        service_type: str = DEFAULT_SERVICE_TYPE,
        user_id: str | None = None,
    ) -> Booking:
        """
        Reserve one slot. The store's (date, time_slot) uniqueness constraint
        decides concurrent attempts; the loser gets ConflictError. Nothing is
        retried here.
        """
        payload = self._validate(day, time_slot, client_name, client_phone, service_type, user_id)

        try:
            booking = self._store.insert_booking(payload)
        except ConflictError:
            self._logger.info(
                "Slot already taken",
                extra={"date": payload.date.isoformat(), "time_slot": payload.time_slot},
            )
            raise
        except BookingError:
            raise
        except Exception as e:
            raise StoreError(str(e)) from e

        self._logger.info(
            "Booking created",
            extra={"booking_id": booking.id, "date": booking.date.isoformat(), "time_slot": booking.time_slot},
        )
        if self._refresh:
            self._refresh.emit()
        return booking

    def _validate(
        self,
        day: date | None,
        time_slot: str | None,
        client_name: str | None,
        client_phone: str | None,
        service_type: str,
        user_id: str | None,
    ) -> BookingInsert:
        if day is None or not time_slot:
            raise ValidationError(MISSING_SLOT)
        if not is_valid_slot(time_slot):
            raise ValidationError(f"Invalid time slot: {time_slot}")

        name = (client_name or "").strip()
        phone = (client_phone or "").strip()
        if not name or not phone:
            raise ValidationError(MISSING_CLIENT_FIELDS)

        return BookingInsert(
            date=day,
            time_slot=time_slot,
            client_name=name,
            client_phone=phone,
            service_type=service_type or DEFAULT_SERVICE_TYPE,
            user_id=user_id,
        )
