"""
Tests for store selection in the dependency wiring.
"""

from __future__ import annotations

import pytest

from barbershop.core.config import settings
from barbershop.infrastructure.store.memory_store import MemoryBookingStore
from barbershop.wiring.dependencies import get_booking_store, reset_booking_store


@pytest.fixture(autouse=True)
def fresh_store():
    reset_booking_store()
    yield
    reset_booking_store()


def _postgrest_without_credentials(monkeypatch, env):
    monkeypatch.setattr(settings, "STORE_PROVIDER", "postgrest")
    monkeypatch.setattr(settings, "SUPABASE_URL", None)
    monkeypatch.setattr(settings, "SUPABASE_ANON_KEY", None)
    monkeypatch.setattr(settings, "ENV", env)


def test_dev_falls_back_to_memory_store(monkeypatch):
    _postgrest_without_credentials(monkeypatch, "local")
    monkeypatch.setattr(settings, "ADMIN_PRINCIPALS", "admin-1, admin-2")

    store = get_booking_store()

    assert isinstance(store, MemoryBookingStore)
    assert store.get_profile("admin-2").is_admin is True


def test_production_requires_credentials(monkeypatch):
    _postgrest_without_credentials(monkeypatch, "prod")

    with pytest.raises(ValueError):
        get_booking_store()


def test_store_is_reused(monkeypatch):
    monkeypatch.setattr(settings, "STORE_PROVIDER", "memory")

    assert get_booking_store() is get_booking_store()
