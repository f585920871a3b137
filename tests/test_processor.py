"""
Tests for per-message processing: freshness, worker pool and mark-seen.
"""

from datetime import datetime, timedelta, timezone

from householdbot.errors import MailboxError
from householdbot.mail.imap_client import FetchedMessage
from householdbot.mail.parse import MailMessage
from householdbot.processor import EMAIL_VALIDITY_WINDOW, EmailProcessor, is_fresh


def raw_message(subject="Test Subject"):
    return (
        "From: info@account.netflix.com\r\n"
        "To: user@example.com\r\n"
        f"Subject: {subject}\r\n"
        "Content-Type: text/plain; charset=UTF-8\r\n"
        "\r\n"
        "https://netflix.com/update-primary-location?token=abc\r\n"
    ).encode()


class FakeMailbox:
    def __init__(self, messages, fail_fetch=(), fail_mark=()):
        self.messages = messages
        self.fail_fetch = set(fail_fetch)
        self.fail_mark = set(fail_mark)
        self.seen = []

    def fetch_message(self, uid):
        if uid in self.fail_fetch:
            raise MailboxError(f"error fetching message UID {uid}")
        raw, when = self.messages[uid]
        return FetchedMessage(uid=uid, raw=raw, internal_date=when)

    def mark_seen(self, uid):
        if uid in self.fail_mark:
            raise MailboxError("store failed")
        self.seen.append(uid)


class FakeService:
    def __init__(self, handled_subjects=("Test Subject",), error_subjects=()):
        self.handled_subjects = set(handled_subjects)
        self.error_subjects = set(error_subjects)
        self.handled = []

    def handle_email(self, message):
        self.handled.append(message.uid)
        if message.subject in self.error_subjects:
            raise RuntimeError("unexpected")
        return message.subject in self.handled_subjects


class TestIsFresh:
    """Test the 15 minute validity window."""

    def test_no_date_is_fresh(self):
        assert is_fresh(MailMessage(uid=1, from_address="", subject=""))

    def test_boundary_is_inclusive(self):
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        msg = MailMessage(uid=1, from_address="", subject="", internal_date=now - EMAIL_VALIDITY_WINDOW)
        assert is_fresh(msg, now=now)

    def test_older_is_stale(self):
        now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
        msg = MailMessage(uid=1, from_address="", subject="", internal_date=now - timedelta(minutes=16))
        assert not is_fresh(msg, now=now)


class TestProcessUids:
    """Test fetch, handle and mark-seen flow."""

    def test_marks_only_handled(self):
        now = datetime.now(timezone.utc)
        mailbox = FakeMailbox({
            1: (raw_message(), now),
            2: (raw_message("Other"), now),
            3: (raw_message(), now),
        })
        service = FakeService()

        marked = EmailProcessor(mailbox, service, workers=2).process_uids([1, 2, 3])

        assert marked == 2
        assert sorted(mailbox.seen) == [1, 3]
        assert sorted(service.handled) == [1, 2, 3]

    def test_stale_messages_skipped(self):
        old = datetime.now(timezone.utc) - timedelta(hours=1)
        mailbox = FakeMailbox({1: (raw_message(), old)})
        service = FakeService()

        assert EmailProcessor(mailbox, service).process_uids([1]) == 0
        assert service.handled == []

    def test_fetch_error_does_not_stop_others(self):
        now = datetime.now(timezone.utc)
        mailbox = FakeMailbox({2: (raw_message(), now)}, fail_fetch=[1])
        service = FakeService()

        assert EmailProcessor(mailbox, service).process_uids([1, 2]) == 1
        assert mailbox.seen == [2]

    def test_handler_exception_leaves_message_unseen(self):
        now = datetime.now(timezone.utc)
        mailbox = FakeMailbox({1: (raw_message("Boom"), now), 2: (raw_message(), now)})
        service = FakeService(handled_subjects=("Test Subject", "Boom"), error_subjects=("Boom",))

        assert EmailProcessor(mailbox, service).process_uids([1, 2]) == 1
        assert mailbox.seen == [2]

    def test_mark_seen_error_is_logged(self):
        now = datetime.now(timezone.utc)
        mailbox = FakeMailbox({1: (raw_message(), now)}, fail_mark=[1])

        assert EmailProcessor(mailbox, FakeService()).process_uids([1]) == 0

    def test_empty(self):
        assert EmailProcessor(FakeMailbox({}), FakeService()).process_uids([]) == 0
