from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

ConfirmationLink = str


class Outcome(str, Enum):
    SUCCESS = "success"
    EXPIRED = "expired"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Only FAILED may be retried."""
        return self is not Outcome.FAILED

    @property
    def handled(self) -> bool:
        """True when the source message can be marked as processed."""
        return self in (Outcome.SUCCESS, Outcome.EXPIRED)


@dataclass(frozen=True)
class Credentials:
    """Account credentials used when the confirmation page asks to log in.

    Both fields empty means "do not attempt authentication".
    """
    email: str = ""
    password: str = ""

    def __bool__(self) -> bool:
        return bool(self.email) and bool(self.password)

    def __repr__(self) -> str:
        return f"Credentials(email={self.email!r}, password={'***' if self.password else ''!r})"

    @classmethod
    def empty(cls) -> "Credentials":
        return cls()


@dataclass(frozen=True)
class Attempt:
    index: int
    link: ConfirmationLink
    credentials: Credentials
    trace_id: str = ""


class ConfirmationBrowser(Protocol):
    """Anything able to drive a confirmation link to a terminal outcome."""

    def resolve_confirmation_link(
        self,
        link: ConfirmationLink,
        credentials: Credentials,
        trace_id: str = "",
    ) -> Outcome:
        ...
