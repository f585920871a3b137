from __future__ import annotations

from loguru import logger

from .config import AppConfig
from .confirmation.models import ConfirmationBrowser, Credentials
from .mail.parse import MailMessage, find_link

LINK_MARKER = "update-primary-location"


class HouseholdService:
    """Decides whether a message is a household-verification email and, if so,
    resolves its confirmation link through the browser.

    Returns True only when the message can be marked as seen.
    """

    def __init__(self, browser: ConfirmationBrowser, config: AppConfig) -> None:
        self.browser = browser
        self.config = config

    def handle_email(self, message: MailMessage) -> bool:
        log = logger.bind(trace_id=message.trace_id or "-")

        if message.from_address.lower() != self.config.target_from.lower():
            log.info(f"[mail] Email received from {message.from_address}, skip")
            return False
        if message.subject != self.config.target_subject:
            log.info(f"[mail] Email subject not recognized: {message.subject}")
            return False
        if not message.body_text.strip():
            log.info("[mail] Empty email body, nothing to process")
            return False

        link = find_link(message, LINK_MARKER)
        if not link:
            log.info(f"[mail] No {LINK_MARKER} link found in email")
            return False

        credentials = self._credentials_for(message)
        if credentials is None:
            log.info(f"[mail] No matching account found for To: {message.to_primary}")
            return False

        try:
            outcome = self.browser.resolve_confirmation_link(link, credentials, message.trace_id)
        except Exception:
            log.exception("[mail] Browser error")
            return False

        log.info(f"[mail] Link resolved: {outcome.value}")
        return outcome.handled

    def _credentials_for(self, message: MailMessage) -> Credentials | None:
        if not self.config.filter_by_account:
            return Credentials.empty()
        account = self.config.credentials_for(message.to_primary)
        if account is not None:
            logger.bind(trace_id=message.trace_id or "-").info(f"[mail] Email received for {account.email}")
        return account
