"""
Tests for booking creation: validation, uniqueness conflicts and error mapping.
"""

from __future__ import annotations

import threading
from datetime import date

import pytest

from barbershop.application.exceptions import ConflictError, StoreError, ValidationError
from barbershop.application.use_cases.availability import AvailabilityResolver
from barbershop.application.use_cases.booking_writer import BookingWriter
from barbershop.domain.entities.availability import SlotState
from barbershop.domain.entities.booking import DEFAULT_SERVICE_TYPE
from barbershop.infrastructure.store.memory_store import MemoryBookingStore


class RecordingStore(MemoryBookingStore):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.inserts = 0

    def insert_booking(self, booking):
        self.inserts += 1
        return super().insert_booking(booking)


class BrokenStore(MemoryBookingStore):
    def insert_booking(self, booking):
        raise StoreError("network unreachable")


class CrashingStore(MemoryBookingStore):
    def insert_booking(self, booking):
        raise OSError("socket closed")


def test_create_booking_scenario(store, resolver):
    """Booking 2025-06-15 10:00 returns a fresh active booking and the slot reads booked."""
    writer = BookingWriter(store=store)

    booking = writer.create_booking(date(2025, 6, 15), "10:00", "Arben Hoxha", "0691234567")

    assert booking.id >= 1
    assert booking.date == date(2025, 6, 15)
    assert booking.time_slot == "10:00"
    assert booking.is_completed is False
    assert booking.service_type == DEFAULT_SERVICE_TYPE
    assert booking.created_at is not None
    assert resolver.resolve(date(2025, 6, 15)).state_of("10:00") is SlotState.booked


def test_create_booking_on_open_day_marks_slot_booked(store, resolver):
    BookingWriter(store=store).create_booking(date(2025, 6, 16), "10:00", "Arben", "069")

    assert resolver.resolve(date(2025, 6, 16)).state_of("10:00") is SlotState.booked


def test_name_and_phone_are_trimmed(store):
    booking = BookingWriter(store=store).create_booking(date(2025, 6, 16), "10:00", "  Arben  ", " 069 ")

    assert booking.client_name == "Arben"
    assert booking.client_phone == "069"


@pytest.mark.parametrize(
    "day,slot,name,phone",
    [
        (None, "10:00", "Arben", "069"),
        (date(2025, 6, 16), None, "Arben", "069"),
        (date(2025, 6, 16), "", "Arben", "069"),
        (date(2025, 6, 16), "10:00", "   ", "069"),
        (date(2025, 6, 16), "10:00", "Arben", ""),
        (date(2025, 6, 16), "10:00", None, "069"),
        (date(2025, 6, 16), "10:15", "Arben", "069"),
    ],
)
def test_invalid_input_never_reaches_store(day, slot, name, phone):
    store = RecordingStore()

    with pytest.raises(ValidationError):
        BookingWriter(store=store).create_booking(day, slot, name, phone)

    assert store.inserts == 0


def test_second_booking_for_same_slot_conflicts(store):
    writer = BookingWriter(store=store)
    writer.create_booking(date(2025, 6, 16), "10:00", "Arben", "069")

    with pytest.raises(ConflictError) as exc:
        writer.create_booking(date(2025, 6, 16), "10:00", "Besa", "068")

    assert "sapo u rezervua" in str(exc.value)
    assert len(store.list_bookings(day=date(2025, 6, 16))) == 1


def test_concurrent_bookings_for_same_slot():
    """Two simultaneous writers: exactly one wins, the other gets ConflictError."""
    store = MemoryBookingStore()
    writer = BookingWriter(store=store)
    barrier = threading.Barrier(2)
    results: list[object] = []
    lock = threading.Lock()

    def attempt(name: str) -> None:
        barrier.wait()
        try:
            outcome = writer.create_booking(date(2025, 6, 16), "17:30", name, "069")
        except ConflictError as e:
            outcome = e
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=attempt, args=(n,)) for n in ("Arben", "Besa")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(results) == 2
    assert len(conflicts) == 1
    assert len(store.list_bookings(day=date(2025, 6, 16))) == 1


def test_store_failures_surface_as_store_error():
    with pytest.raises(StoreError) as exc:
        BookingWriter(store=BrokenStore()).create_booking(date(2025, 6, 16), "10:00", "Arben", "069")
    assert "network unreachable" in str(exc.value)


def test_unexpected_errors_are_wrapped():
    with pytest.raises(StoreError) as exc:
        BookingWriter(store=CrashingStore()).create_booking(date(2025, 6, 16), "10:00", "Arben", "069")
    assert "socket closed" in str(exc.value)


def test_success_emits_refresh(store, refresh):
    versions = []
    refresh.connect(versions.append)

    BookingWriter(store=store, refresh=refresh).create_booking(date(2025, 6, 16), "10:00", "Arben", "069")

    assert versions == [1]


def test_failure_does_not_emit_refresh(refresh):
    versions = []
    refresh.connect(versions.append)

    with pytest.raises(StoreError):
        BookingWriter(store=BrokenStore(), refresh=refresh).create_booking(date(2025, 6, 16), "10:00", "A", "1")

    assert versions == []


def test_owner_reference_is_stored(store):
    booking = BookingWriter(store=store).create_booking(
        date(2025, 6, 16), "10:00", "Arben", "069", user_id="device-7"
    )

    assert booking.user_id == "device-7"
