from __future__ import annotations

from barbershop.application.exceptions import AuthorizationError
from barbershop.domain.entities.profile import Profile


# Row-level rules the local adapters enforce, mirroring the hosted database's
# policies: anyone may read availability and insert bookings; completing
# bookings and blocking periods needs an admin profile; a booking can be
# deleted by an admin or by the session that owns it.


def ensure_admin(profile: Profile | None, action: str) -> None:
    if profile is None or not profile.is_admin:
        raise AuthorizationError(f"Not allowed to {action}")


def ensure_can_delete(profile: Profile | None, principal_id: str | None, owner_id: str | None) -> None:
    if profile is not None and profile.is_admin:
        return
    if principal_id is not None and owner_id is not None and principal_id == owner_id:
        return
    raise AuthorizationError("Not allowed to delete this booking")
