from __future__ import annotations

import logging
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


OPENING_HOUR = 8
CLOSING_HOUR = 20
SLOT_MINUTES = 30
CLOSED_WEEKDAY = 6  # Sunday, date.weekday()

logger = logging.getLogger(__name__)


def generate_time_slots() -> list[str]:
    """Zero-padded HH:MM labels from opening (inclusive) to closing (exclusive)."""
    slots: list[str] = []
    for hour in range(OPENING_HOUR, CLOSING_HOUR):
        for minute in range(0, 60, SLOT_MINUTES):
            slots.append(f"{hour:02d}:{minute:02d}")
    return slots


def is_valid_slot(label: str) -> bool:
    return label in generate_time_slots()


def is_closed_weekday(day: date) -> bool:
    return day.weekday() == CLOSED_WEEKDAY


def parse_slot(label: str) -> time:
    hours, minutes = label.split(":")
    return time(hour=int(hours), minute=int(minutes))


def slot_start(day: date, label: str, tz: ZoneInfo | None = None) -> datetime:
    return datetime.combine(day, parse_slot(label), tzinfo=tz)


def has_slot_elapsed(day: date, label: str, now: datetime) -> bool:
    """True when the slot's start on day is strictly before now (in now's timezone)."""
    return slot_start(day, label, now.tzinfo) < now


def safe_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone, falling back to UTC", extra={"reason": name})
        return ZoneInfo("UTC")


def shop_now(timezone: str) -> datetime:
    return datetime.now(safe_timezone(timezone))
