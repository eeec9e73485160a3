from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from barbershop.application.ports.change_feed import Subscription


INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"

AuthStateCallback = Callable[[str, "str | None"], None]


class IdentityPort(ABC):
    @abstractmethod
    def current_principal(self) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def on_auth_state_change(self, callback: AuthStateCallback) -> Subscription:
        """
        Register callback(event, principal_id). The current state is replayed
        to the callback immediately after registration.
        """
        raise NotImplementedError
