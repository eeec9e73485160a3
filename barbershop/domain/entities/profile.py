from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Profile:
    id: str
    is_admin: bool = False
    email: str | None = None
    created_at: datetime | None = None

    @staticmethod
    def from_payload(row: dict[str, Any]) -> "Profile":
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        return Profile(
            id=str(row["id"]),
            is_admin=bool(row.get("is_admin", False)),
            email=row.get("email"),
            created_at=created_at,
        )
