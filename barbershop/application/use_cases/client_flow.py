from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date

from barbershop.application.exceptions import ValidationError
from barbershop.application.use_cases.availability import AvailabilityResolver
from barbershop.application.use_cases.booking_writer import BookingWriter
from barbershop.application.use_cases.client_registry import ClientBookingRegistry
from barbershop.application.use_cases.lifecycle import BookingLifecycleManager
from barbershop.domain.entities.booking import DEFAULT_SERVICE_TYPE, Booking


SLOT_NOT_SELECTABLE = "Ky orar nuk është i lirë. Ju lutem zgjidhni një orar tjetër."


@dataclass(frozen=True)
class FlowState:
    step: str = "calendar"  # "calendar", "time", "confirmation", "success"
    selected_date: date | None = None
    selected_time: str | None = None
    last_booking: Booking | None = None
    busy: bool = False


class ClientBookingFlow:
    """
    Client-side booking steps for one device session: pick a date, pick a
    slot, confirm with name and phone. Only slots the resolver reports as
    selectable can be picked. Successful bookings are mirrored into the
    registry; self-cancel removes them again.
    """

    def __init__(
        self,
        writer: BookingWriter,
        lifecycle: BookingLifecycleManager,
        registry: ClientBookingRegistry,
        resolver: AvailabilityResolver,
        session_id: str | None = None,
    ) -> None:
        self._writer = writer
        self._resolver = resolver
        self._lifecycle = lifecycle
        self._registry = registry
        self._session_id = session_id
        self._state = FlowState()
        self._logger = logging.getLogger(__name__)

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def my_bookings(self) -> list[Booking]:
        return self._registry.bookings

    def select_date(self, day: date) -> FlowState:
        self._state = FlowState(step="time", selected_date=day)
        return self._state

    def select_time(self, time_slot: str) -> FlowState:
        if self._state.selected_date is None:
            raise ValidationError("Zgjidhni datën fillimisht.")
        availability = self._resolver.resolve(self._state.selected_date)
        if not availability.is_selectable(time_slot):
            self._logger.info(
                "Slot not selectable",
                extra={"date": availability.date.isoformat(), "time_slot": time_slot, "reason": availability.status.value},
            )
            raise ValidationError(SLOT_NOT_SELECTABLE)
        self._state = replace(self._state, step="confirmation", selected_time=time_slot)
        return self._state

    def confirm(self, client_name: str, client_phone: str) -> Booking:
        self._begin()
        try:
            booking = self._writer.create_booking(
                day=self._state.selected_date,
                time_slot=self._state.selected_time,
                client_name=client_name,
                client_phone=client_phone,
                service_type=DEFAULT_SERVICE_TYPE,
                user_id=self._session_id,
            )
            self._registry.add(booking)
        finally:
            self._state = replace(self._state, busy=False)

        self._state = FlowState(step="success", last_booking=booking)
        return booking

    def cancel(self, booking_id: int) -> None:
        # Advisory only: the store decides whether this session may delete the row.
        if not self._registry.contains(booking_id):
            raise ValidationError("Ky rezervim nuk gjendet në listën tuaj.")

        self._begin()
        try:
            self._lifecycle.delete_booking(booking_id)
            self._registry.remove(booking_id)
        finally:
            self._state = replace(self._state, busy=False)
        self._logger.info("Booking cancelled by client", extra={"booking_id": booking_id})

    def reset(self) -> FlowState:
        self._state = FlowState()
        return self._state

    def _begin(self) -> None:
        if self._state.busy:
            raise ValidationError("Një veprim është në proces.")
        self._state = replace(self._state, busy=True)
