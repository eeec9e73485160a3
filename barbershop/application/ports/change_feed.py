from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable

from barbershop.domain.entities.change_event import ChangeEvent


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription(ABC):
    @abstractmethod
    def unsubscribe(self) -> None:
        raise NotImplementedError


class ChangeFeedPort(ABC):
    @abstractmethod
    def subscribe(self, table: str, event: str, callback: ChangeCallback) -> Subscription:
        """Register callback for events on table; event is INSERT, UPDATE, DELETE or '*'."""
        raise NotImplementedError

    @abstractmethod
    def publish(self, event: ChangeEvent) -> None:
        raise NotImplementedError
