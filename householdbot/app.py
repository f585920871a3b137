from __future__ import annotations

from .config import BrowserConfig
from .confirmation.attempt import AttemptExecutor
from .confirmation.page_state import PageStateDetector
from .confirmation.retry import MAX_ATTEMPTS, RetryOrchestrator
from .confirmation.session import SessionManager, SessionRegistry


def build_confirmer(
    browser: BrowserConfig,
    registry: SessionRegistry | None = None,
    max_attempts: int = MAX_ATTEMPTS,
) -> tuple[RetryOrchestrator, SessionManager]:
    """Wire session manager, detector, executor and orchestrator together."""
    sessions = SessionManager(
        registry or SessionRegistry(),
        storage_root=browser.profile_root,
        headless=browser.headless,
    )
    executor = AttemptExecutor(sessions, PageStateDetector(expired_phrase=browser.expired_phrase))
    return RetryOrchestrator(executor, max_attempts=max_attempts), sessions
