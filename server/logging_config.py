"""
Logging setup for the Takedown server.

Production (ENVIRONMENT=production) writes one JSON object per line for log
shippers; every other environment gets short colored lines for a terminal.
Both formats pick up the room, game and player of the connection currently
being served from the context variables below, which handlers set when a
connection enters a room.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

room_code_var: ContextVar[Optional[str]] = ContextVar("room_code", default=None)
game_id_var: ContextVar[Optional[str]] = ContextVar("game_id", default=None)
player_id_var: ContextVar[Optional[str]] = ContextVar("player_id", default=None)

_CONTEXT_VARS = {
    "room_code": room_code_var,
    "game_id": game_id_var,
    "player_id": player_id_var,
}

# Third-party loggers that are too chatty at INFO.
NOISY_LOGGERS = ("uvicorn.access", "websockets", "asyncio")


def _context_value(record: logging.LogRecord, name: str) -> Optional[str]:
    # An explicit `extra={...}` on the log call wins over the context var.
    return getattr(record, name, None) or _CONTEXT_VARS[name].get()


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with connection context and error location."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_VARS:
            value = _context_value(record, name)
            if value:
                entry[name] = value

        if record.levelno >= logging.ERROR:
            entry["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Colored single-line records for local runs."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname)
        level = f"{color}{record.levelname:8}{self.RESET}" if color else f"{record.levelname:8}"
        clock = datetime.now().strftime("%H:%M:%S.%f")[:-3]

        tags = []
        room_code = _context_value(record, "room_code")
        if room_code:
            tags.append(f"room={room_code}")
        player_id = _context_value(record, "player_id")
        if player_id:
            tags.append(f"player={player_id[:8]}")
        where = f" [{', '.join(tags)}]" if tags else ""

        line = f"{clock} {level} {record.name}{where} - {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str = "INFO", environment: str = "development") -> None:
    """
    Install a single stdout handler on the root logger.

    Args:
        level: Root log level name; unknown names fall back to INFO.
        environment: "production" selects JSON output.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if environment == "production" else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Logging ready: level={level}, environment={environment}")
