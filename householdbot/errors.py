from __future__ import annotations


class HouseholdBotError(Exception):
    """Base class for errors raised by householdbot."""


class ConfigError(HouseholdBotError):
    """Raised when configuration is missing or invalid. Fatal at startup."""


class ResourceError(HouseholdBotError):
    """Raised when a browser session (profile dir or context) cannot be allocated."""


class MailboxError(HouseholdBotError):
    """Raised on IMAP connect/login/select/search/fetch failures."""


class MailboxConnectionError(MailboxError):
    """Raised when the IMAP server cannot be reached at all."""


class MessageParseError(HouseholdBotError):
    """Raised when a fetched message cannot be parsed."""
