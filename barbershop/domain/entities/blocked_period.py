from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class BlockedPeriod:
    id: int
    start_date: date
    end_date: date
    reason: str | None = None
    created_at: datetime | None = None

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    @staticmethod
    def from_row(row: dict[str, Any]) -> "BlockedPeriod":
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        start = row["start_date"]
        end = row["end_date"]
        return BlockedPeriod(
            id=int(row["id"]),
            start_date=date.fromisoformat(start) if isinstance(start, str) else start,
            end_date=date.fromisoformat(end) if isinstance(end, str) else end,
            reason=row.get("reason"),
            created_at=created_at,
        )
