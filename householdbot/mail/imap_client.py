from __future__ import annotations

import imaplib
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from loguru import logger

from ..errors import MailboxConnectionError, MailboxError

DEFAULT_PORT = 993
DEFAULT_TIMEOUT_SEC = 30.0

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass(frozen=True)
class FetchedMessage:
    uid: int
    raw: bytes
    internal_date: datetime | None = None


def split_server(server: str) -> tuple[str, int]:
    """``imap.example.com:993`` -> (host, port). Port defaults to 993."""
    host, sep, port = (server or "").strip().rpartition(":")
    if not sep:
        return port, DEFAULT_PORT
    try:
        return host, int(port)
    except ValueError as exc:
        raise MailboxError(f"invalid IMAP port in {server!r}") from exc


def imap_date(value: datetime) -> str:
    """IMAP SEARCH date (``19-Oct-2026``), independent of the process locale."""
    return f"{value.day:02d}-{_MONTHS[value.month - 1]}-{value.year}"


def _internal_date(header: bytes) -> datetime | None:
    parsed = imaplib.Internaldate2tuple(header)
    if parsed is None:
        return None
    return datetime.fromtimestamp(time.mktime(parsed), tz=timezone.utc)


class ImapMailbox:
    """Small IMAP-over-TLS client covering what the poll loop needs."""

    def __init__(self, timeout_sec: float = DEFAULT_TIMEOUT_SEC) -> None:
        self.timeout_sec = timeout_sec
        self._imap: imaplib.IMAP4 | None = None

    def __enter__(self) -> "ImapMailbox":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _client(self) -> imaplib.IMAP4:
        if self._imap is None:
            raise MailboxError("not connected")
        return self._imap

    def connect(self, server: str) -> None:
        host, port = split_server(server)
        try:
            self._imap = imaplib.IMAP4_SSL(host, port, timeout=self.timeout_sec)
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailboxConnectionError(f"IMAP connection error: {exc}") from exc
        logger.debug(f"[imap] Connected to {host}:{port}")

    def login(self, user: str, password: str) -> None:
        try:
            self._client().login(user, password)
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailboxError(f"login failed for {user}: {exc}") from exc

    def select(self, mailbox: str = "INBOX") -> None:
        try:
            status, data = self._client().select(mailbox)
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailboxError(f"cannot select {mailbox}: {exc}") from exc
        if status != "OK":
            raise MailboxError(f"cannot select {mailbox}: {data!r}")

    def list_unseen_uids(self, window: timedelta, now: datetime | None = None) -> list[int]:
        # SINCE has day granularity; the processor applies the exact window.
        since = (now or datetime.now(timezone.utc)) - window
        try:
            status, data = self._client().uid("SEARCH", None, "UNSEEN", "SINCE", imap_date(since))
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailboxError(f"error searching for recent emails: {exc}") from exc
        if status != "OK":
            raise MailboxError(f"error searching for recent emails: {data!r}")
        raw = data[0] if data and data[0] else b""
        return [int(uid) for uid in raw.split()]

    def fetch_message(self, uid: int) -> FetchedMessage:
        try:
            status, data = self._client().uid("FETCH", str(uid), "(INTERNALDATE BODY.PEEK[])")
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailboxError(f"error fetching message UID {uid}: {exc}") from exc
        if status != "OK":
            raise MailboxError(f"error fetching message UID {uid}: {data!r}")
        for item in data or []:
            if isinstance(item, tuple) and len(item) >= 2:
                return FetchedMessage(uid=uid, raw=item[1], internal_date=_internal_date(item[0]))
        raise MailboxError(f"no message retrieved for UID {uid}")

    def mark_seen(self, uid: int) -> None:
        try:
            status, data = self._client().uid("STORE", str(uid), "+FLAGS.SILENT", r"(\Seen)")
        except (OSError, imaplib.IMAP4.error) as exc:
            raise MailboxError(f"cannot mark UID {uid} as seen: {exc}") from exc
        if status != "OK":
            raise MailboxError(f"cannot mark UID {uid} as seen: {data!r}")

    def close(self) -> None:
        if self._imap is None:
            return
        imap, self._imap = self._imap, None
        try:
            imap.logout()
        except (OSError, imaplib.IMAP4.error) as exc:
            logger.debug(f"[imap] Logout failed: {exc}")
