from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from barbershop.application.use_cases.availability import AvailabilityResolver
from barbershop.application.utils.refresh_signal import RefreshSignal
from barbershop.infrastructure.realtime.memory_feed import InProcessChangeFeed
from barbershop.infrastructure.store.memory_store import MemoryBookingStore


UTC = ZoneInfo("UTC")
MONDAY = date(2025, 6, 16)


@pytest.fixture
def feed():
    return InProcessChangeFeed()


@pytest.fixture
def store(feed):
    store = MemoryBookingStore(feed=feed)
    store.add_profile("admin-1", is_admin=True, email="admin@barber.test")
    store.add_profile("client-1", is_admin=False)
    return store


@pytest.fixture
def admin_store(store):
    return store.with_principal("admin-1")


@pytest.fixture
def refresh():
    return RefreshSignal()


@pytest.fixture
def resolver(store):
    # Fixed clock well before the dates used in tests.
    return AvailabilityResolver(store=store, timezone=UTC, clock=lambda: datetime(2025, 1, 1, 9, 0, tzinfo=UTC))
