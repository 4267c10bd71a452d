# telemetry/logger.py
from __future__ import annotations

import json
import logging
import sqlite3
import sys
from contextlib import closing
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from settings import DEBUG, LOG_LEVEL, TELEMETRY_DB


# -------------------------------------------------------------------
# Process logging
# -------------------------------------------------------------------
class JsonFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.COLORS["RESET"])
        reset = self.COLORS["RESET"]
        line = f"{color}[{record.levelname:8s}] {record.name}: {record.getMessage()}{reset}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging() -> None:
    root = logging.getLogger()
    level = logging.DEBUG if DEBUG else getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter() if DEBUG else JsonFormatter())
    root.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        setup_logging()
    return logging.getLogger(name)


# -------------------------------------------------------------------
# Telemetry events (sqlite)
# -------------------------------------------------------------------
def _conn() -> sqlite3.Connection:
    c = sqlite3.connect(TELEMETRY_DB)
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            ts TEXT NOT NULL,
            user_id TEXT,
            event TEXT NOT NULL,
            payload TEXT NOT NULL
        )
        """
    )
    c.commit()
    return c


def log_event(event: str, payload: Dict[str, Any], user_id: Optional[str] = None) -> None:
    """
    Telemetry must NEVER crash production logic.
    Payload should avoid raw user text by default.
    """
    try:
        ts = datetime.now(timezone.utc).isoformat()
        with closing(_conn()) as c:
            c.execute(
                "INSERT INTO events (ts, user_id, event, payload) VALUES (?, ?, ?, ?)",
                (ts, user_id, event, json.dumps(payload, ensure_ascii=False)),
            )
            c.commit()
    except Exception as e:
        get_logger(__name__).debug(f"telemetry write failed for {event}: {e}")
