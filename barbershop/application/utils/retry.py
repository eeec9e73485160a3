from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar


T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed attempt cap with a fixed delay before every attempt after the first."""

    max_attempts: int = 4
    delay_seconds: float = 0.5
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False, repr=False)

    def run(self, operation: Callable[[], T], retry_on: tuple[type[BaseException], ...] = (Exception,)) -> T:
        attempts = max(1, self.max_attempts)
        for attempt in range(1, attempts + 1):
            if attempt > 1:
                self.sleep(self.delay_seconds)
            try:
                return operation()
            except retry_on as e:
                if attempt >= attempts:
                    raise
                logger.info(
                    "Retrying after failure (%s/%s)",
                    attempt,
                    attempts - 1,
                    extra={"error": str(e)},
                )
        raise RuntimeError("unreachable")
