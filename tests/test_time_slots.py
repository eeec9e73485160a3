"""
Tests for the fixed daily slot sequence and its date helpers.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from zoneinfo import ZoneInfo

from barbershop.application.utils.time_slots import (
    generate_time_slots,
    has_slot_elapsed,
    is_closed_weekday,
    is_valid_slot,
    safe_timezone,
)


def test_slots_cover_opening_hours_in_half_hours():
    """Slots run 08:00 to 19:30, 24 entries, zero-padded."""
    slots = generate_time_slots()

    assert len(slots) == 24
    assert slots[0] == "08:00"
    assert slots[1] == "08:30"
    assert slots[-1] == "19:30"
    assert "20:00" not in slots
    assert all(len(s) == 5 and s[2] == ":" for s in slots)


def test_slots_are_deterministic():
    assert generate_time_slots() == generate_time_slots()
    first = generate_time_slots()
    first.append("23:00")
    assert "23:00" not in generate_time_slots()


def test_valid_slot_labels():
    assert is_valid_slot("10:00")
    assert is_valid_slot("19:30")
    assert not is_valid_slot("07:30")
    assert not is_valid_slot("10:15")
    assert not is_valid_slot("9:00")


def test_sunday_is_closed():
    assert is_closed_weekday(date(2025, 6, 15))  # Sunday
    assert not is_closed_weekday(date(2025, 6, 16))  # Monday
    assert not is_closed_weekday(date(2025, 7, 5))  # Saturday


def test_elapsed_compares_against_now():
    tz = ZoneInfo("UTC")
    now = datetime(2025, 6, 16, 10, 15, tzinfo=tz)
    day = date(2025, 6, 16)

    assert has_slot_elapsed(day, "10:00", now)
    assert not has_slot_elapsed(day, "10:30", now)
    assert not has_slot_elapsed(date(2025, 6, 17), "08:00", now)


def test_unknown_timezone_falls_back_to_utc(caplog):
    with caplog.at_level(logging.WARNING):
        assert safe_timezone("Europe/Tirana_Typo") == ZoneInfo("UTC")

    assert "falling back to UTC" in caplog.text
    assert caplog.records[-1].reason == "Europe/Tirana_Typo"


def test_known_timezone_does_not_warn(caplog):
    with caplog.at_level(logging.WARNING):
        assert safe_timezone("UTC") == ZoneInfo("UTC")

    assert caplog.records == []
