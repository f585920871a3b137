"""
Tests for the page state detector.
"""

import pytest
from playwright.sync_api import Error as PwError

from conftest import FakePage
from householdbot.confirmation.page_state import (
    AUTH,
    CONFIRM,
    CONSENT,
    EXPIRED,
    PageStateDetector,
    Presence,
)


class TestStepTable:
    """Test the recognised steps and their timeouts."""

    def test_timeouts(self):
        assert CONSENT.timeout_ms == 5000
        assert AUTH.timeout_ms == 10000
        assert CONFIRM.timeout_ms == 10000
        assert EXPIRED.timeout_ms == 5000


class TestFind:
    """Test presence/absence detection."""

    def test_present(self):
        page = FakePage(present=[CONFIRM.selector])
        assert PageStateDetector().find(page, CONFIRM) is Presence.PRESENT

    def test_absent_on_timeout(self):
        page = FakePage()
        assert PageStateDetector().find(page, CONFIRM) is Presence.ABSENT

    def test_uses_step_timeout(self):
        page = FakePage()
        PageStateDetector().find(page, CONSENT)
        assert page.waits == [(CONSENT.selector, 5000)]

    def test_clickable_steps_wait_for_visible(self):
        page = FakePage()
        detector = PageStateDetector()
        for step in (CONSENT, AUTH, CONFIRM, EXPIRED):
            detector.find(page, step)

        assert page.states == [
            (CONSENT.selector, "visible"),
            (AUTH.selector, "attached"),
            (CONFIRM.selector, "visible"),
            (EXPIRED.selector, "attached"),
        ]

    def test_presence_is_truthy_only_when_present(self):
        assert Presence.PRESENT
        assert not Presence.ABSENT

    def test_other_errors_propagate(self):
        class BrokenPage(FakePage):
            def wait_for_selector(self, selector, state="visible", timeout=None):
                raise PwError("Target closed")

        with pytest.raises(PwError):
            PageStateDetector().find(BrokenPage(), AUTH)


class TestExpiredPhrase:
    """Test the optional text fallback for the expired state."""

    def test_phrase_matches_when_marker_missing(self):
        page = FakePage(body_text="Sorry, this LINK HAS EXPIRED.")
        detector = PageStateDetector(expired_phrase="link has expired")
        assert detector.present(page, EXPIRED)

    def test_phrase_ignored_for_other_steps(self):
        page = FakePage(body_text="link has expired")
        detector = PageStateDetector(expired_phrase="link has expired")
        assert not detector.present(page, CONFIRM)

    def test_no_phrase_configured(self):
        page = FakePage(body_text="link has expired")
        assert not PageStateDetector().present(page, EXPIRED)
