from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger
from playwright.sync_api import TimeoutError as PwTimeoutError


@dataclass(frozen=True)
class PageStep:
    """A recognised UI affordance, how long to wait for it and in which state.

    Steps the executor clicks wait for ``visible``; markers only need to be attached.
    """
    name: str
    selector: str
    timeout_ms: int
    state: str = "attached"


class Presence(Enum):
    PRESENT = "present"
    ABSENT = "absent"

    def __bool__(self) -> bool:
        return self is Presence.PRESENT


# Evaluated in this order by the attempt executor
CONSENT = PageStep("consent", "#onetrust-accept-btn-handler", 5000, state="visible")
AUTH = PageStep("auth", "input[name='userLoginId']", 10000)
CONFIRM = PageStep("confirm", '[data-uia="set-primary-location-action"]', 10000, state="visible")
EXPIRED = PageStep("expired", '[data-uia="upl-invalid-token"]', 5000)

PASSWORD_FIELD = "input[name='password']"
LOGIN_SUBMIT = '[data-uia="login-submit-button"]'


class PageStateDetector:
    """Waits for named elements on a rendered page.

    Absence is a normal answer, not an error: a Playwright timeout turns into
    ``Presence.ABSENT``. Other Playwright errors propagate to the caller.

    If ``expired_phrase`` is set, the EXPIRED step also matches when the marker
    element is missing but the page text contains the phrase.
    """

    def __init__(self, expired_phrase: str = "") -> None:
        self.expired_phrase = expired_phrase.strip()

    def find(self, page: Any, step: PageStep, trace_id: str = "") -> Presence:
        try:
            page.wait_for_selector(step.selector, state=step.state, timeout=step.timeout_ms)
        except PwTimeoutError:
            if step == EXPIRED and self._phrase_on_page(page):
                logger.bind(trace_id=trace_id or "-").info(
                    f"[detect] Expired phrase found in page text: {self.expired_phrase!r}"
                )
                return Presence.PRESENT
            logger.bind(trace_id=trace_id or "-").debug(
                f"[detect] {step.name} absent after {step.timeout_ms} ms"
            )
            return Presence.ABSENT
        logger.bind(trace_id=trace_id or "-").debug(f"[detect] {step.name} present")
        return Presence.PRESENT

    def present(self, page: Any, step: PageStep, trace_id: str = "") -> bool:
        return self.find(page, step, trace_id) is Presence.PRESENT

    def _phrase_on_page(self, page: Any) -> bool:
        if not self.expired_phrase:
            return False
        text = page.inner_text("body") or ""
        return self.expired_phrase.lower() in text.lower()
