from __future__ import annotations

import logging
import threading

from barbershop.application.ports.change_feed import Subscription
from barbershop.application.ports.identity import (
    INITIAL_SESSION,
    SIGNED_IN,
    SIGNED_OUT,
    AuthStateCallback,
    IdentityPort,
)


class _AuthSubscription(Subscription):
    def __init__(self, provider: "MemoryIdentityProvider", callback: AuthStateCallback) -> None:
        self._provider = provider
        self._callback = callback

    def unsubscribe(self) -> None:
        self._provider._remove(self._callback)


class MemoryIdentityProvider(IdentityPort):
    def __init__(self, principal_id: str | None = None) -> None:
        self._principal_id = principal_id
        self._listeners: list[AuthStateCallback] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def current_principal(self) -> str | None:
        return self._principal_id

    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        with self._lock:
            self._listeners.append(callback)
        callback(INITIAL_SESSION, self._principal_id)
        return _AuthSubscription(self, callback)

    def sign_in(self, principal_id: str) -> None:
        self._principal_id = principal_id
        self._logger.info("Signed in", extra={"principal": principal_id})
        self._notify(SIGNED_IN, principal_id)

    def sign_out(self) -> None:
        self._principal_id = None
        self._notify(SIGNED_OUT, None)

    def _notify(self, event: str, principal_id: str | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event, principal_id)

    def _remove(self, callback: AuthStateCallback) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)
