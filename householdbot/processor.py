from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from typing import Iterable, Protocol

from loguru import logger

from .errors import MailboxError, MessageParseError
from .mail.imap_client import FetchedMessage
from .mail.parse import MailMessage, parse_message
from .service import HouseholdService

# Verification emails arrive right away; older ones are not worth a browser run.
EMAIL_VALIDITY_WINDOW = timedelta(minutes=15)


class Mailbox(Protocol):
    def fetch_message(self, uid: int) -> FetchedMessage:
        ...

    def mark_seen(self, uid: int) -> None:
        ...


def is_fresh(message: MailMessage, now: datetime | None = None, window: timedelta = EMAIL_VALIDITY_WINDOW) -> bool:
    if message.internal_date is None:
        return True
    now = now or datetime.now(timezone.utc)
    return message.internal_date >= now - window


class EmailProcessor:
    """fetch -> parse -> check age -> handle (in worker pool) -> mark seen.

    IMAP calls stay on the calling thread; only link resolution is handed to
    the pool, so several links can be confirmed at once.
    """

    def __init__(self, mailbox: Mailbox, service: HouseholdService, workers: int = 2) -> None:
        self.mailbox = mailbox
        self.service = service
        self.workers = max(1, int(workers))

    def load(self, uid: int) -> MailMessage | None:
        try:
            message = parse_message(self.mailbox.fetch_message(uid))
        except (MailboxError, MessageParseError) as exc:
            logger.error(f"[mail] Error loading email UID {uid}: {exc}")
            return None
        if not is_fresh(message):
            logger.bind(trace_id=message.trace_id).info(
                f"[mail] Message UID {uid} is older than {EMAIL_VALIDITY_WINDOW} (date: {message.internal_date}), skipping"
            )
            return None
        return message

    def process_uids(self, uids: Iterable[int]) -> int:
        messages = [m for m in (self.load(uid) for uid in uids) if m is not None]
        if not messages:
            return 0

        marked = 0
        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="confirm") as pool:
            futures: dict[Future[bool], MailMessage] = {
                pool.submit(self.service.handle_email, message): message for message in messages
            }
            for fut in as_completed(futures):
                message = futures[fut]
                log = logger.bind(trace_id=message.trace_id)
                try:
                    handled = fut.result()
                except Exception:
                    log.exception(f"[mail] Error processing email UID {message.uid}")
                    continue
                if not handled:
                    continue
                try:
                    self.mailbox.mark_seen(message.uid)
                except MailboxError as exc:
                    log.error(f"[mail] Error marking message UID {message.uid} as seen: {exc}")
                    continue
                marked += 1
        return marked
