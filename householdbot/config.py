from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from dotenv import load_dotenv

from .confirmation.models import Credentials
from .errors import ConfigError

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class MailConfig:
    """IMAP mailbox settings.

    - `server`: ``host[:port]``, TLS, port defaults to 993.
    - `refresh_sec`: pause between poll cycles.
    """
    server: str
    login: str
    password: str = field(repr=False)
    mailbox: str = "INBOX"
    refresh_sec: float = 30.0


@dataclass(frozen=True)
class BrowserConfig:
    headless: bool = True
    workers: int = 2
    profile_root: str | None = None
    expired_phrase: str = ""


@dataclass(frozen=True)
class AppConfig:
    mail: MailConfig
    target_subject: str
    target_from: str = "info@account.netflix.com"
    filter_by_account: bool = False
    accounts: tuple[Credentials, ...] = ()
    browser: BrowserConfig = BrowserConfig()
    log_dir: str = "logs"
    log_json: bool = False

    def credentials_for(self, recipient: str) -> Credentials | None:
        recipient = (recipient or "").strip().lower()
        for account in self.accounts:
            if account.email.lower() == recipient:
                return account
        return None


def parse_duration(raw: str) -> float:
    """``45`` / ``30s`` / ``2m`` / ``1h`` / ``500ms`` -> seconds."""
    m = _DURATION_RE.match(raw or "")
    if not m:
        raise ConfigError(f"invalid duration: {raw!r}")
    unit = (m.group(2) or "s").lower()
    return float(m.group(1)) * _DURATION_UNITS[unit]


def parse_bool(raw: str | None, default: bool = False) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"invalid boolean: {raw!r}")


def iter_accounts(path: Path) -> Iterator[Credentials]:
    """Accounts file: one ``email<TAB>password`` (or whitespace separated) per line."""
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split("\t") if "\t" in line else line.split()
        if len(parts) < 2:
            continue
        yield Credentials(email=parts[0].strip(), password=parts[1].strip())


def _required(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"{name} is not set")
    return value


def _int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


def load_config(env_file: str | os.PathLike[str] | None = None) -> AppConfig:
    load_dotenv(env_file, override=False)

    mail = MailConfig(
        server=_required("IMAP_SERVER"),
        login=_required("IMAP_LOGIN"),
        password=_required("IMAP_PASSWORD"),
        mailbox=os.getenv("IMAP_MAILBOX", "INBOX").strip() or "INBOX",
        refresh_sec=parse_duration(os.getenv("IMAP_REFRESH", "30s")),
    )

    filter_by_account = parse_bool(os.getenv("FILTER_BY_ACCOUNT"), default=False)
    accounts_path = Path(os.getenv("ACCOUNTS_FILE", "accounts.txt").strip() or "accounts.txt")
    accounts: tuple[Credentials, ...] = ()
    if accounts_path.exists():
        try:
            accounts = tuple(iter_accounts(accounts_path))
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"cannot read accounts file {accounts_path}: {exc}") from exc
    if filter_by_account and not accounts:
        raise ConfigError(f"FILTER_BY_ACCOUNT is enabled but no accounts found in {accounts_path}")

    workers = _int("BROWSER_WORKERS", 2)
    if workers < 1:
        raise ConfigError("BROWSER_WORKERS must be >= 1")

    browser = BrowserConfig(
        headless=parse_bool(os.getenv("BROWSER_HEADLESS"), default=True),
        workers=workers,
        profile_root=os.getenv("PROFILE_ROOT", "").strip() or None,
        expired_phrase=os.getenv("EXPIRED_LINK_MESSAGE", "").strip(),
    )

    return AppConfig(
        mail=mail,
        target_subject=_required("TARGET_SUBJECT"),
        target_from=os.getenv("TARGET_FROM", "info@account.netflix.com").strip() or "info@account.netflix.com",
        filter_by_account=filter_by_account,
        accounts=accounts,
        browser=browser,
        log_dir=os.getenv("LOG_DIR", "logs").strip() or "logs",
        log_json=parse_bool(os.getenv("LOG_JSON"), default=False),
    )
