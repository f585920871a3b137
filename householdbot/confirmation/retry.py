from __future__ import annotations

import time
from typing import Callable

from loguru import logger

from .attempt import AttemptExecutor
from .models import ConfirmationLink, Credentials, Outcome

MAX_ATTEMPTS = 3


class RetryOrchestrator:
    """Drives one confirmation link to a terminal outcome.

    Each attempt runs in a brand-new session. SUCCESS, EXPIRED and ABORTED stop
    immediately; FAILED is retried after ``attempt`` seconds until the budget
    is spent.
    """

    def __init__(
        self,
        executor: AttemptExecutor,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.executor = executor
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self.max_attempts = max_attempts
        self._sleep = sleep

    def resolve(self, link: ConfirmationLink, credentials: Credentials, trace_id: str = "") -> Outcome:
        log = logger.bind(trace_id=trace_id or "-")
        log.info(f"[retry] Resolving confirmation link: {link}")

        for attempt in range(1, self.max_attempts + 1):
            log.info(f"[retry] Attempt {attempt}/{self.max_attempts} (fresh browser & profile)")
            try:
                outcome = self.executor.run(link, credentials, attempt, trace_id)
            except Exception:
                log.exception(f"[retry] Attempt {attempt} raised unexpectedly")
                outcome = Outcome.FAILED

            if outcome.is_terminal:
                log.info(f"[retry] Attempt {attempt} finished: {outcome.value}")
                return outcome

            if attempt < self.max_attempts:
                backoff = float(attempt)
                log.info(f"[retry] Retrying in {backoff:.0f}s")
                self._sleep(backoff)

        log.warning("[retry] All attempts failed, giving up on link")
        return Outcome.FAILED

    def resolve_confirmation_link(
        self,
        link: ConfirmationLink,
        credentials: Credentials,
        trace_id: str = "",
    ) -> Outcome:
        return self.resolve(link, credentials, trace_id)
