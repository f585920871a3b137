from __future__ import annotations

import threading

from loguru import logger

from householdbot.app import build_confirmer
from householdbot.config import load_config
from householdbot.confirmation.session import SessionRegistry
from householdbot.errors import ConfigError
from householdbot.logging_setup import setup_logging
from householdbot.mail.backoff import ConnectionBackoff
from householdbot.poller import Poller
from householdbot.service import HouseholdService


def main() -> int:
    setup_logging()
    try:
        cfg = load_config()
    except ConfigError as exc:
        logger.error(f"Error reading configuration: {exc}")
        return 1
    if cfg.log_dir != "logs" or cfg.log_json:
        setup_logging(cfg.log_dir, json=cfg.log_json)

    stop = threading.Event()
    registry = SessionRegistry()
    confirmer, sessions = build_confirmer(cfg.browser, registry)
    # Profiles orphaned by a crash are reclaimed hourly once no session is live
    sessions.start_sweeper(stop_event=stop)

    service = HouseholdService(confirmer, cfg)
    poller = Poller(cfg, service, backoff=ConnectionBackoff(sleep=stop.wait))
    try:
        poller.run_forever(stop)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        stop.set()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
