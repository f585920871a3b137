from __future__ import annotations

import argparse
from pathlib import Path
import sys
import uuid

from loguru import logger

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
from householdbot.app import build_confirmer
from householdbot.config import BrowserConfig
from householdbot.confirmation.models import Credentials
from householdbot.logging_setup import setup_logging


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Resolve a single household confirmation link with a fresh browser")
    ap.add_argument("--link", required=True, help="Confirmation URL (update-primary-location)")
    ap.add_argument("--email", type=str, default="", help="Account email, used only if the page asks to log in")
    ap.add_argument("--password", type=str, default="", help="Account password")
    ap.add_argument("--headed", action="store_true", help="Show the browser window")
    ap.add_argument("--attempts", type=positive_int, default=3, help="Max attempts (default: 3)")
    ap.add_argument("--expired-phrase", type=str, default="", help="Optional page text that also means 'expired'")
    ap.add_argument("--profile-root", type=str, default="", help="Where per-attempt profiles are created (default: temp dir)")
    return ap.parse_args(argv)


def main() -> None:
    setup_logging()
    args = parse_args()
    browser_cfg = BrowserConfig(
        headless=not args.headed,
        workers=1,
        profile_root=args.profile_root or None,
        expired_phrase=args.expired_phrase,
    )
    confirmer, _ = build_confirmer(browser_cfg, max_attempts=args.attempts)
    trace_id = str(uuid.uuid4())
    outcome = confirmer.resolve(args.link, Credentials(args.email, args.password), trace_id)
    logger.bind(trace_id=trace_id).info(f"Outcome: {outcome.value}")
    sys.exit(0 if outcome.handled else 1)


if __name__ == "__main__":
    main()
