from __future__ import annotations

import threading
import time
from typing import Callable

from loguru import logger


class ConnectionBackoff:
    """Escalating pause after consecutive mailbox connection failures.

    The first ``threshold - 1`` failures cost nothing extra. From the
    ``threshold``-th on, the poll loop is blocked for
    ``min(cap, base * 2 ** min(failures - threshold, max_steps))`` seconds.
    Any successful connection resets the counter.
    """

    def __init__(
        self,
        threshold: int = 5,
        base_sec: float = 300.0,
        cap_sec: float = 1800.0,
        max_steps: int = 10,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.threshold = threshold
        self.base_sec = base_sec
        self.cap_sec = cap_sec
        self.max_steps = max_steps
        self._sleep = sleep
        self._lock = threading.Lock()
        self._failures = 0

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def delay_for(self, failures: int) -> float:
        if failures < self.threshold:
            return 0.0
        step = min(failures - self.threshold, self.max_steps)
        return min(self.cap_sec, self.base_sec * (2 ** step))

    def record_success(self) -> None:
        with self._lock:
            if self._failures:
                logger.info(f"[imap] Connection restored after {self._failures} failure(s)")
            self._failures = 0

    def record_failure(self, exc: BaseException | None = None) -> float:
        with self._lock:
            self._failures += 1
            failures = self._failures
        if exc is not None:
            logger.error(f"[imap] Connection error: {exc}")
        delay = self.delay_for(failures)
        if delay > 0:
            logger.warning(f"[imap] Failed {failures} times, waiting {delay:.0f}s before next attempt")
            self._sleep(delay)
        return delay
