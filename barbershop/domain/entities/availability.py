from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class SlotState(str, Enum):
    available = "available"
    booked = "booked"
    elapsed = "elapsed"


class DayStatus(str, Enum):
    open = "open"
    weekly_closed = "weekly_closed"
    admin_blocked = "admin_blocked"
    past = "past"


@dataclass(frozen=True)
class SlotAvailability:
    time: str
    state: SlotState


@dataclass(frozen=True)
class DayAvailability:
    date: date
    status: DayStatus
    slots: tuple[SlotAvailability, ...] = field(default_factory=tuple)
    reason: str | None = None

    def state_of(self, time_slot: str) -> SlotState | None:
        for slot in self.slots:
            if slot.time == time_slot:
                return slot.state
        return None

    def booked_slots(self) -> list[str]:
        return [s.time for s in self.slots if s.state is SlotState.booked]

    def selectable_slots(self) -> list[str]:
        """
        Slots a caller may pick: the available slots of an open day. Admins
        and clients get the same set.
        """
        if self.status is not DayStatus.open:
            return []
        return [s.time for s in self.slots if s.state is SlotState.available]

    def is_selectable(self, time_slot: str) -> bool:
        return time_slot in self.selectable_slots()
