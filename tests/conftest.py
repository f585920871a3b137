"""
Pytest configuration and shared fakes.

Browser-facing code is exercised against FakePage / FakeLauncher so no
Chromium is needed.
"""

import os
import sys
from pathlib import Path

import pytest
from playwright.sync_api import TimeoutError as PwTimeoutError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from householdbot.confirmation.page_state import CONSENT, LOGIN_SUBMIT
from householdbot.confirmation.session import SessionManager, SessionRegistry


class FakePage:
    """Minimal stand-in for a Playwright page.

    `present` lists selectors attached to the DOM. After the login submit is
    clicked the set is replaced by `after_login` (when given). `click_errors`
    maps a selector to the exception its click raises.
    """

    def __init__(self, present=(), after_login=None, goto_error=None, click_error=None, body_text="",
                 click_errors=None):
        self.present = set(present)
        self.after_login = set(after_login) if after_login is not None else None
        self.goto_error = goto_error
        self.click_error = click_error
        self.click_errors = dict(click_errors or {})
        self.body_text = body_text
        self.calls = []
        self.waits = []
        self.states = []

    def goto(self, url):
        self.calls.append(("goto", url))
        if self.goto_error is not None:
            raise self.goto_error

    def wait_for_load_state(self, state="load", timeout=None):
        self.calls.append(("settle", state))

    def wait_for_selector(self, selector, state="visible", timeout=None):
        self.waits.append((selector, timeout))
        self.states.append((selector, state))
        if selector in self.present:
            return object()
        raise PwTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    def click(self, selector, timeout=None):
        self.calls.append(("click", selector))
        if selector in self.click_errors:
            raise self.click_errors[selector]
        if self.click_error is not None:
            raise self.click_error
        if selector == CONSENT.selector:
            self.present.discard(selector)
        if selector == LOGIN_SUBMIT and self.after_login is not None:
            self.present = set(self.after_login)

    def fill(self, selector, value):
        self.calls.append(("fill", selector, value))

    def inner_text(self, selector):
        return self.body_text

    def clicked(self, selector):
        return ("click", selector) in self.calls


class FakeLauncher:
    """Hands out one FakePage per launch and records launches and closes."""

    def __init__(self, pages=(), error=None, close_error=None):
        self.pages = list(pages)
        self.error = error
        self.close_error = close_error
        self.launched = []
        self.closed = []

    def __call__(self, user_data_dir, headless=True):
        self.launched.append(Path(user_data_dir))
        if self.error is not None:
            raise self.error
        page = self.pages.pop(0) if self.pages else FakePage()

        def _close():
            self.closed.append(Path(user_data_dir))
            if self.close_error is not None:
                raise self.close_error

        return page, _close


@pytest.fixture
def registry():
    return SessionRegistry()


@pytest.fixture
def make_sessions(registry, tmp_path):
    def _make(launcher):
        return SessionManager(registry, launcher=launcher, storage_root=tmp_path / "profiles")
    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable load_config reads so tests start from scratch."""
    for name in (
        "IMAP_SERVER", "IMAP_LOGIN", "IMAP_PASSWORD", "IMAP_MAILBOX", "IMAP_REFRESH",
        "TARGET_FROM", "TARGET_SUBJECT", "FILTER_BY_ACCOUNT", "ACCOUNTS_FILE",
        "BROWSER_HEADLESS", "BROWSER_WORKERS", "PROFILE_ROOT", "EXPIRED_LINK_MESSAGE",
        "LOG_DIR", "LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
