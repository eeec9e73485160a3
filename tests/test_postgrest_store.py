"""
Tests for the PostgREST store using httpx.MockTransport.
"""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from barbershop.application.exceptions import AuthorizationError, ConflictError, StoreError
from barbershop.application.use_cases.client_registry import ClientBookingRegistry
from barbershop.application.use_cases.lifecycle import BookingLifecycleManager
from barbershop.domain.entities.booking import Booking, BookingInsert
from barbershop.domain.entities.change_event import ALL_EVENTS, DELETE, INSERT
from barbershop.infrastructure.local.memory_storage import MemoryLocalStorage
from barbershop.infrastructure.realtime.memory_feed import InProcessChangeFeed
from barbershop.infrastructure.store.postgrest_store import PostgrestBookingStore


BASE_URL = "https://project.supabase.test"
ROW = {
    "id": 7,
    "created_at": "2025-06-01T10:00:00+00:00",
    "date": "2025-06-16",
    "time_slot": "10:00:00",
    "client_name": "Arben",
    "client_phone": "069",
    "service_type": "Qethje flokësh (Barber)",
    "is_completed": False,
    "user_id": "device-1",
}


def _store(handler, feed=None, token_provider=None):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return PostgrestBookingStore(
        base_url=BASE_URL,
        api_key="anon-key",
        feed=feed,
        token_provider=token_provider,
        client=client,
    )


def _insert_payload():
    return BookingInsert(date=date(2025, 6, 16), time_slot="10:00", client_name="Arben", client_phone="069")


def test_requires_url_and_key():
    with pytest.raises(ValueError):
        PostgrestBookingStore(base_url="", api_key="")


def test_list_bookings_sends_filters():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[ROW])

    bookings = _store(handler).list_bookings(date(2025, 6, 16))

    request = seen[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/v1/bookings"
    assert request.url.params["date"] == "eq.2025-06-16"
    assert request.url.params["is_completed"] == "eq.false"
    assert request.url.params["order"] == "date.asc,time_slot.asc"
    assert request.headers["apikey"] == "anon-key"
    assert bookings[0].id == 7
    assert bookings[0].time_slot == "10:00"


def test_booked_slots_are_truncated():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"time_slot": "09:30:00"}, {"time_slot": "14:00"}])

    assert _store(handler).get_booked_slots(date(2025, 6, 16)) == ["09:30", "14:00"]


def test_blocking_period_query():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[{"id": 1, "start_date": "2025-07-01", "end_date": "2025-07-31", "reason": "Pushime verore"}],
        )

    period = _store(handler).find_blocking_period(date(2025, 7, 10))

    assert seen[0].url.params["start_date"] == "lte.2025-07-10"
    assert seen[0].url.params["end_date"] == "gte.2025-07-10"
    assert period.reason == "Pushime verore"


def test_insert_publishes_and_returns_row():
    feed = InProcessChangeFeed()
    events = []
    feed.subscribe("bookings", ALL_EVENTS, events.append)

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.headers["Prefer"] == "return=representation"
        body = json.loads(request.content)
        assert body[0]["time_slot"] == "10:00"
        return httpx.Response(201, json=[ROW])

    booking = _store(handler, feed=feed).insert_booking(_insert_payload())

    assert booking.id == 7
    assert [e.event_type for e in events] == [INSERT]


def test_unique_violation_maps_to_conflict():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409,
            json={"code": "23505", "message": 'duplicate key value violates unique constraint "bookings_date_time_slot_key"'},
        )

    with pytest.raises(ConflictError):
        _store(handler).insert_booking(_insert_payload())


@pytest.mark.parametrize(
    "status,body",
    [
        (403, {"code": "42501", "message": "new row violates row-level security policy"}),
        (401, {"message": "JWT expired"}),
    ],
)
def test_permission_errors_map_to_authorization(status, body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    with pytest.raises(AuthorizationError):
        _store(handler).mark_completed(7)


def test_server_error_maps_to_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="upstream unavailable")

    with pytest.raises(StoreError):
        _store(handler).get_booked_slots(date(2025, 6, 16))


def test_transport_error_maps_to_store_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    with pytest.raises(StoreError):
        _store(handler).list_bookings()


def test_delete_uses_principal_token_and_publishes():
    feed = InProcessChangeFeed()
    events = []
    feed.subscribe("bookings", DELETE, events.append)
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[ROW])

    store = _store(handler, feed=feed, token_provider=lambda principal: f"token-{principal}")
    store.with_principal("admin-1").delete_booking(7)

    assert seen[0].method == "DELETE"
    assert seen[0].headers["Prefer"] == "return=representation"
    assert seen[0].url.params["id"] == "eq.7"
    assert seen[0].headers["Authorization"] == "Bearer token-admin-1"
    assert events[0].old == {"id": 7}


def test_missing_profile_returns_none():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[])

    assert _store(handler).get_profile("nobody") is None


def _filtered_writes(request: httpx.Request) -> httpx.Response:
    """Row-level security: writes match nothing, the row itself stays readable."""
    if request.method == "GET":
        return httpx.Response(200, json=[{"id": 7}])
    if request.method == "PATCH":
        return httpx.Response(200, json=[])
    return httpx.Response(204)


def test_filtered_delete_is_denied_and_not_published():
    feed = InProcessChangeFeed()
    registry = ClientBookingRegistry(storage=MemoryLocalStorage(), feed=feed)
    registry.start()
    registry.add(Booking.from_row(ROW))
    store = _store(_filtered_writes, feed=feed).with_principal("stranger")

    with pytest.raises(AuthorizationError):
        BookingLifecycleManager(store=store).delete_booking(7)

    assert [b.id for b in registry.bookings] == [7]
    registry.stop()


def test_filtered_completion_is_denied():
    feed = InProcessChangeFeed()
    events = []
    feed.subscribe("bookings", ALL_EVENTS, events.append)

    with pytest.raises(AuthorizationError):
        _store(_filtered_writes, feed=feed).with_principal("client-1").mark_completed(7)

    assert events == []


def test_writes_to_missing_rows_are_noops():
    feed = InProcessChangeFeed()
    events = []
    feed.subscribe("bookings", ALL_EVENTS, events.append)
    methods = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(200, json=[])

    store = _store(handler, feed=feed).with_principal("admin-1")
    store.mark_completed(404)
    store.delete_booking(404)

    assert methods == ["PATCH", "GET", "DELETE", "GET"]
    assert events == []
