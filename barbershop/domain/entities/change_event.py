from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL_EVENTS = "*"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event_type: str  # INSERT, UPDATE or DELETE
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)
    commit_timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def matches(self, table: str, event: str) -> bool:
        if table != self.table:
            return False
        return event == ALL_EVENTS or event == self.event_type

    def to_payload(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "eventType": self.event_type,
            "new": self.new,
            "old": self.old,
            "commit_timestamp": self.commit_timestamp.isoformat(),
        }
