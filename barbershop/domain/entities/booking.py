from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


DEFAULT_SERVICE_TYPE = "Qethje flokësh (Barber)"


@dataclass(frozen=True)
class BookingInsert:
    date: date
    time_slot: str
    client_name: str
    client_phone: str
    service_type: str = DEFAULT_SERVICE_TYPE
    user_id: str | None = None

    def to_row(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "time_slot": self.time_slot,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "service_type": self.service_type,
            "user_id": self.user_id,
        }


@dataclass(frozen=True)
class Booking:
    id: int
    date: date
    time_slot: str
    client_name: str
    client_phone: str
    service_type: str = DEFAULT_SERVICE_TYPE
    is_completed: bool = False
    created_at: datetime | None = None
    user_id: str | None = None

    def to_row(self) -> dict[str, Any]:
        """Serialize to the JSON row shape used by the store and local storage."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "date": self.date.isoformat(),
            "time_slot": self.time_slot,
            "client_name": self.client_name,
            "client_phone": self.client_phone,
            "service_type": self.service_type,
            "is_completed": self.is_completed,
            "user_id": self.user_id,
        }

    @staticmethod
    def from_row(row: dict[str, Any]) -> "Booking":
        """Build a Booking from a store row. Raises KeyError/ValueError/TypeError on malformed rows."""
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))

        day = row["date"]
        if isinstance(day, str):
            day = date.fromisoformat(day)
        if not isinstance(day, date):
            raise TypeError(f"Invalid booking date: {day!r}")

        return Booking(
            id=int(row["id"]),
            date=day,
            time_slot=str(row["time_slot"])[:5],
            client_name=str(row["client_name"]),
            client_phone=str(row["client_phone"]),
            service_type=str(row.get("service_type") or DEFAULT_SERVICE_TYPE),
            is_completed=bool(row.get("is_completed", False)),
            created_at=created_at,
            user_id=row.get("user_id"),
        )
