from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import getaddresses, parseaddr

from bs4 import BeautifulSoup

from ..errors import MessageParseError
from .imap_client import FetchedMessage

_URL_RE = re.compile(r"https?://[^\s\"'<>)\]]+")


@dataclass(frozen=True)
class MailMessage:
    uid: int
    from_address: str
    subject: str
    to: list[str] = field(default_factory=list)
    text_body: str | None = None
    html_body: str | None = None
    internal_date: datetime | None = None
    trace_id: str = ""

    @property
    def to_primary(self) -> str:
        return self.to[0] if self.to else ""

    @property
    def body_text(self) -> str:
        if self.text_body and self.text_body.strip():
            return self.text_body
        if self.html_body:
            return html_to_text(self.html_body)
        return ""


def html_to_text(raw: str) -> str:
    soup = BeautifulSoup(raw, "html.parser")
    return soup.get_text("\n", strip=False)


def extract_links(text: str | None) -> list[str]:
    return _URL_RE.findall(text or "")


def extract_links_from_html(html: str | None) -> list[str]:
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    urls: list[str] = []
    for a in soup.find_all("a"):
        href = a.get("href")
        if isinstance(href, str) and href.startswith("http"):
            urls.append(href.strip())
    return urls


def find_link(message: MailMessage, marker: str) -> str | None:
    """First link containing ``marker``: plain-text links first, then HTML anchors."""
    candidates = extract_links(message.text_body) + extract_links_from_html(message.html_body)
    if not message.text_body and message.html_body:
        candidates += extract_links(html_to_text(message.html_body))
    for url in candidates:
        if marker in url:
            return url
    return None


def _part_content(part: EmailMessage) -> str | None:
    try:
        content = part.get_content()
    except (LookupError, UnicodeDecodeError):
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")
    return content if isinstance(content, str) else None


def parse_message(fetched: FetchedMessage) -> MailMessage:
    if not fetched.raw:
        raise MessageParseError(f"empty message body for UID {fetched.uid}")
    try:
        msg = BytesParser(policy=policy.default).parsebytes(fetched.raw)
        from_address = parseaddr(str(msg.get("From", "")))[1]
        to = [addr for _, addr in getaddresses([str(v) for v in msg.get_all("To", [])]) if addr]
        subject = str(msg.get("Subject", "") or "").strip()
    except (ValueError, TypeError, IndexError) as exc:
        raise MessageParseError(f"cannot parse message UID {fetched.uid}: {exc}") from exc

    text_body: str | None = None
    html_body: str | None = None
    for part in msg.walk():
        if part.is_multipart() or part.get_content_disposition() == "attachment":
            continue
        ctype = part.get_content_type()
        if ctype == "text/plain" and text_body is None:
            text_body = _part_content(part)
        elif ctype == "text/html" and html_body is None:
            html_body = _part_content(part)

    return MailMessage(
        uid=fetched.uid,
        from_address=from_address,
        subject=subject,
        to=to,
        text_body=text_body,
        html_body=html_body,
        internal_date=fetched.internal_date,
        trace_id=str(uuid.uuid4()),
    )
