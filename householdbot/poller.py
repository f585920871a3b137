from __future__ import annotations

import threading
from typing import Callable

from loguru import logger

from .config import AppConfig
from .errors import MailboxConnectionError, MailboxError
from .mail.backoff import ConnectionBackoff
from .mail.imap_client import ImapMailbox
from .processor import EMAIL_VALIDITY_WINDOW, EmailProcessor
from .service import HouseholdService


class Poller:
    """One poll cycle at a time: connect, search unseen, process, disconnect."""

    def __init__(
        self,
        config: AppConfig,
        service: HouseholdService,
        backoff: ConnectionBackoff | None = None,
        mailbox_factory: Callable[[], ImapMailbox] = ImapMailbox,
    ) -> None:
        self.config = config
        self.service = service
        self.backoff = backoff or ConnectionBackoff()
        self.mailbox_factory = mailbox_factory

    def run_cycle(self) -> int:
        mail = self.config.mail
        mailbox = self.mailbox_factory()
        try:
            try:
                mailbox.connect(mail.server)
            except MailboxConnectionError as exc:
                self.backoff.record_failure(exc)
                return 0
            self.backoff.record_success()

            try:
                mailbox.login(mail.login, mail.password)
                mailbox.select(mail.mailbox)
                uids = mailbox.list_unseen_uids(EMAIL_VALIDITY_WINDOW)
            except MailboxError as exc:
                logger.error(f"[imap] {exc}")
                return 0

            if not uids:
                return 0
            logger.info(f"[imap] {len(uids)} unseen message(s)")
            processor = EmailProcessor(mailbox, self.service, workers=self.config.browser.workers)
            return processor.process_uids(uids)
        finally:
            mailbox.close()

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop = stop_event or threading.Event()
        logger.info(f"Starting email verification loop, refresh every {self.config.mail.refresh_sec:g}s")
        while not stop.is_set():
            self.run_cycle()
            stop.wait(self.config.mail.refresh_sec)
