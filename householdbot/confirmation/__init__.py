from __future__ import annotations

"""Confirmation-link state machine.

Submodules:
 - models: Outcome, Credentials, Attempt and the ConfirmationBrowser protocol
 - session: per-attempt Chromium profiles, live-session registry, orphan sweep
 - page_state: element presence detection under per-step timeouts
 - attempt: one end-to-end attempt in one session
 - retry: bounded retries with linear spacing
"""

from .attempt import AttemptExecutor
from .models import Attempt, ConfirmationBrowser, Credentials, Outcome
from .page_state import PageStateDetector, PageStep, Presence
from .retry import RetryOrchestrator
from .session import Session, SessionManager, SessionRegistry

__all__ = [
    "Attempt",
    "AttemptExecutor",
    "ConfirmationBrowser",
    "Credentials",
    "Outcome",
    "PageStateDetector",
    "PageStep",
    "Presence",
    "RetryOrchestrator",
    "Session",
    "SessionManager",
    "SessionRegistry",
]
