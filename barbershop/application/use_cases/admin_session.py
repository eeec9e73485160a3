from __future__ import annotations

import logging

from barbershop.application.exceptions import AuthorizationError, StoreError
from barbershop.application.ports.booking_store import BookingStorePort
from barbershop.application.ports.change_feed import Subscription
from barbershop.application.ports.identity import IdentityPort
from barbershop.application.utils.retry import RetryPolicy
from barbershop.domain.entities.profile import Profile


NOT_ADMIN_MESSAGE = 'Nuk keni të drejta administrimi. Llogaria juaj nuk është e shënuar si "admin".'
PROFILE_FETCH_FAILED = 'Gabim gjatë marrjes së profilit. Sigurohu që tabela "profiles" ekziston dhe RLS është korrekt.'


class AdminSession:
    """
    Process-wide view of who is signed in and whether they are an admin.

    start() subscribes to identity changes and resolves the admin flag from
    the principal's profile (retrying per the policy); close() unsubscribes.
    """

    def __init__(
        self,
        identity: IdentityPort,
        store: BookingStorePort,
        retry: RetryPolicy | None = None,
    ) -> None:
        self._identity = identity
        self._store = store
        self._retry = retry or RetryPolicy()
        self._subscription: Subscription | None = None
        self._principal_id: str | None = None
        self._profile: Profile | None = None
        self._loading = False
        self._error: str | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def principal_id(self) -> str | None:
        return self._principal_id

    @property
    def is_admin(self) -> bool:
        return bool(self._profile and self._profile.is_admin)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def store(self) -> BookingStorePort:
        """Store view bound to the signed-in principal."""
        return self._store.with_principal(self._principal_id)

    def start(self) -> None:
        if self._subscription is None:
            self._subscription = self._identity.on_auth_state_change(self._on_auth_state_change)

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._clear()

    def require_admin(self) -> None:
        # UX guard only; the store policy is the real boundary.
        if not self.is_admin:
            raise AuthorizationError(self._error or NOT_ADMIN_MESSAGE)

    def _on_auth_state_change(self, event: str, principal_id: str | None) -> None:
        if principal_id:
            self._principal_id = principal_id
            self._fetch_profile(principal_id)
        else:
            self._clear()

    def _fetch_profile(self, principal_id: str) -> None:
        self._loading = True
        self._error = None
        self._profile = None

        def fetch() -> Profile:
            profile = self._store.get_profile(principal_id)
            if profile is None:
                raise StoreError(f"Profile not found for {principal_id}")
            return profile

        try:
            self._profile = self._retry.run(fetch, retry_on=(StoreError,))
        except StoreError as e:
            self._logger.error("Profile fetch failed", extra={"principal": principal_id, "error": str(e)})
            self._error = PROFILE_FETCH_FAILED
            return
        finally:
            self._loading = False

        if not self._profile.is_admin:
            self._error = NOT_ADMIN_MESSAGE
        self._logger.info("Session resolved", extra={"principal": principal_id, "reason": self._error})

    def _clear(self) -> None:
        self._principal_id = None
        self._profile = None
        self._loading = False
        self._error = None
