from __future__ import annotations

"""Household confirmation bot.

Subpackages:
 - confirmation: browser sessions, page-state detection, attempt/retry state machine
 - mail: IMAP mailbox access, message parsing, connection backoff
"""

__all__ = [
    "confirmation",
    "mail",
]

__version__ = "0.1.0"
