from __future__ import annotations

import os
import sys
from pathlib import Path
from loguru import logger


def setup_logging(logs_dir: str | os.PathLike[str] = "logs", json: bool = False) -> None:
    """Configure loguru logging sinks.

    Creates a rotating log file under `logs/householdbot.log` and a console sink,
    either readable text or one JSON object per line (`json=True`). Every record
    carries a `trace_id` extra ("-" unless bound).
    """
    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)
    log_file = logs_path / "householdbot.log"

    logger.remove()
    logger.configure(extra={"trace_id": "-"})
    logger.add(
        log_file,
        rotation="5 MB",
        retention=10,
        compression="zip",
        enqueue=True,
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {extra[trace_id]} | {name}:{function}:{line} | {message}",
    )
    if json:
        logger.add(sys.stdout, level="INFO", serialize=True)
    else:
        logger.add(
            lambda msg: print(msg, end=""),
            level="INFO",
            colorize=True,
            format="<green>{time:HH:mm:ss}</green> | <level>{level:<8}</level> | <magenta>{extra[trace_id]}</magenta> | <cyan>{message}</cyan>",
        )
