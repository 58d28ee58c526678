"""
Root logger setup, called once from the app lifespan.
"""
from __future__ import annotations

import json
import logging
import logging.config

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log drains (LOG_JSON=true)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    formatter = {"()": JsonFormatter} if json_logs else {"format": CONSOLE_FORMAT}
    logging.config.dictConfig({
        "version": 1,
        # uvicorn/gunicorn set up their own loggers before the lifespan runs
        "disable_existing_loggers": False,
        "formatters": {"app": formatter},
        "handlers": {
            "stderr": {"class": "logging.StreamHandler", "formatter": "app"},
        },
        "root": {"handlers": ["stderr"], "level": level.upper()},
    })
