from __future__ import annotations

import logging
import threading
from typing import Callable


class RefreshSignal:
    """
    Monotonic counter that availability consumers watch. Every local write
    bumps it so views re-query instead of waiting for a change notification.
    """

    def __init__(self) -> None:
        self._version = 0
        self._listeners: list[Callable[[int], None]] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def version(self) -> int:
        return self._version

    def connect(self, listener: Callable[[int], None]) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def disconnect() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return disconnect

    def emit(self) -> int:
        with self._lock:
            self._version += 1
            version = self._version
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(version)
            except Exception as e:
                self._logger.exception("Refresh listener failed", extra={"error": str(e)})
        return version
