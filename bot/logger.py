"""
Logging setup for the bot process.

JSON logs for hosted runs, a readable format for local work. Driven by
LOG_LEVEL, LOG_FORMAT and LOG_FILE.
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Attributes every LogRecord has; anything else came in through `extra`
_RECORD_ATTRS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message', 'asctime'}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line:
    {"timestamp": ..., "level": "INFO", "logger": "review_monitor.service",
     "message": ..., "extra": {"subscription_id": 3, ...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """2024-11-24 12:34:56 INFO     review_monitor.service: Tick #1 done"""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s %(levelname)-8s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def setup_logging(
    level: str = "INFO",
    use_json: bool = True,
    log_file: Optional[Path] = None
) -> None:
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR
        use_json: JSON lines instead of plain text
        log_file: Also write to this file
    """
    formatter = StructuredFormatter() if use_json else HumanReadableFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Third-party chatter
    for noisy in ("aiogram", "aiohttp", "sqlalchemy", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def auto_setup_logging():
    """
    Configure logging from the environment.

    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default INFO)
    LOG_FORMAT: json or human (default human)
    LOG_FILE: optional log file path
    """
    log_file_path = os.getenv("LOG_FILE")

    setup_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        use_json=os.getenv("LOG_FORMAT", "human").lower() == "json",
        log_file=Path(log_file_path) if log_file_path else None,
    )


__all__ = [
    'setup_logging',
    'StructuredFormatter',
    'HumanReadableFormatter',
    'auto_setup_logging'
]
