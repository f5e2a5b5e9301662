"""Logging setup for the tally tool.

Records go to the console and to a rotating file next to the saved
state, one JSON object per line.  Context passed through ``extra`` (for
example ``shop_id`` or ``product_id``) is merged into the record.
"""

import json
import logging
import logging.handlers
import os
from datetime import datetime, timezone

LOG_FILENAME = "event-counter.log"

_CONTEXT_FIELDS = ("shop_id", "product_id", "path")


class JsonFormatter(logging.Formatter):
    """Format log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                log_record[name] = getattr(record, name)
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def level_from_name(name: str, default: int = logging.INFO) -> int:
    level = logging.getLevelName((name or "").strip().upper())
    return level if isinstance(level, int) else default


def configure_logging(log_dir: str, level: int = logging.INFO) -> str:
    """Configure the root logger and return the log file path.

    Args:
        log_dir: Directory for the rotating log file.  Created if missing.
        level: Level for the root logger and both handlers.
    """
    os.makedirs(log_dir, exist_ok=True)
    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = JsonFormatter()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    root.addHandler(console_handler)

    path = os.path.join(log_dir, LOG_FILENAME)
    file_handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    root.addHandler(file_handler)
    return path
