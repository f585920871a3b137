from __future__ import annotations

from typing import Any

from loguru import logger
from playwright.sync_api import Error as PwError
from playwright.sync_api import TimeoutError as PwTimeoutError

from ..errors import ResourceError
from .models import Attempt, ConfirmationLink, Credentials, Outcome
from .page_state import (
    AUTH,
    CONFIRM,
    CONSENT,
    EXPIRED,
    LOGIN_SUBMIT,
    PASSWORD_FIELD,
    PageStateDetector,
)
from .session import SessionManager

CONSENT_CLICK_TIMEOUT_MS = 5000


class AttemptExecutor:
    """Runs one confirmation attempt inside one fresh browser session.

    Flow: open link -> accept cookies -> log in if asked -> click confirm,
    or report the link as expired. Anything else is FAILED.
    """

    def __init__(
        self,
        sessions: SessionManager,
        detector: PageStateDetector | None = None,
        settle_timeout_ms: int = 30000,
    ) -> None:
        self.sessions = sessions
        self.detector = detector or PageStateDetector()
        self.settle_timeout_ms = settle_timeout_ms

    def run(
        self,
        link: ConfirmationLink,
        credentials: Credentials,
        attempt_index: int,
        trace_id: str = "",
    ) -> Outcome:
        return self.run_attempt(Attempt(index=attempt_index, link=link, credentials=credentials, trace_id=trace_id))

    def run_attempt(self, attempt: Attempt) -> Outcome:
        log = logger.bind(trace_id=attempt.trace_id or "-", attempt=attempt.index)
        try:
            with self.sessions.session(attempt.trace_id) as session:
                return self._drive(session.page, attempt)
        except ResourceError as exc:
            log.warning(f"[attempt] Attempt {attempt.index}: no browser session: {exc}")
            return Outcome.FAILED
        except PwError as exc:
            log.warning(f"[attempt] Attempt {attempt.index}: browser interaction failed: {exc}")
            return Outcome.FAILED

    def _drive(self, page: Any, attempt: Attempt) -> Outcome:
        log = logger.bind(trace_id=attempt.trace_id or "-", attempt=attempt.index)
        trace_id = attempt.trace_id

        log.info(f"[attempt] Opening {attempt.link}")
        page.goto(attempt.link)
        self._settle(page)

        self._accept_consent(page, trace_id)

        if self.detector.present(page, AUTH, trace_id):
            if not attempt.credentials:
                log.info("[attempt] Login required but credentials unavailable, aborting link")
                return Outcome.ABORTED
            log.info(f"[attempt] Login fields detected, logging in as {attempt.credentials.email}")
            page.fill(AUTH.selector, attempt.credentials.email)
            page.fill(PASSWORD_FIELD, attempt.credentials.password)
            page.click(LOGIN_SUBMIT)
            self._settle(page)
            # Cookie banner can come back after login
            self._accept_consent(page, trace_id)

        if self.detector.present(page, CONFIRM, trace_id):
            page.click(CONFIRM.selector)
            log.info("[attempt] Clicked confirm button")
            return Outcome.SUCCESS

        log.warning(f"[attempt] Attempt {attempt.index}: confirm button not found, checking for expired marker")
        if self.detector.present(page, EXPIRED, trace_id):
            log.info("[attempt] Expired link detected")
            return Outcome.EXPIRED

        log.warning(f"[attempt] Attempt {attempt.index}: neither confirm button nor expired marker found")
        return Outcome.FAILED

    def _accept_consent(self, page: Any, trace_id: str) -> None:
        """Best effort: a banner that won't take the click is left alone."""
        if not self.detector.present(page, CONSENT, trace_id):
            return
        log = logger.bind(trace_id=trace_id or "-")
        log.info("[attempt] Cookie banner detected, accepting")
        try:
            page.click(CONSENT.selector, timeout=CONSENT_CLICK_TIMEOUT_MS)
        except PwError as exc:
            log.warning(f"[attempt] Cookie banner click failed, continuing: {exc}")

    def _settle(self, page: Any) -> None:
        try:
            page.wait_for_load_state("load", timeout=self.settle_timeout_ms)
        except PwTimeoutError:
            pass
