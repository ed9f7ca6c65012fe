"""
Server configuration for Takedown.

Values come from environment variables, optionally seeded from a `.env`
file at the repository root; anything unset keeps the default below.

    from config import config
    config.PORT                         # 8000
    config.game_defaults.hand_size      # 5

Recognized variables: HOST, PORT, DEBUG, LOG_LEVEL, ENVIRONMENT,
MAX_PLAYERS_PER_ROOM, MIN_PLAYERS_TO_START, ROOM_CODE_LENGTH, HAND_SIZE,
CARD_MANIFEST, SENTRY_DSN.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

try:
    from dotenv import load_dotenv

    _dotenv_file = Path(__file__).resolve().parent.parent / ".env"
    if _dotenv_file.is_file():
        load_dotenv(_dotenv_file)
except ImportError:
    pass  # without python-dotenv only the real environment is read

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Parse a yes/no style variable; unrecognized values give the default."""
    raw = os.environ.get(key, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Parse an integer variable; missing or non-numeric values give the default."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass
class GameDefaults:
    """Rule settings shared by every game on this server."""
    hand_size: int = 5
    card_manifest: Optional[str] = None  # path to a "<count> <identifier>" deck list


@dataclass
class ServerConfig:
    """Process-wide settings."""
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Lobby limits
    MAX_PLAYERS_PER_ROOM: int = 4
    MIN_PLAYERS_TO_START: int = 2
    ROOM_CODE_LENGTH: int = 4

    SENTRY_DSN: str = ""

    game_defaults: GameDefaults = field(default_factory=GameDefaults)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        defaults = cls()
        return cls(
            HOST=get_env("HOST", defaults.HOST),
            PORT=get_env_int("PORT", defaults.PORT),
            DEBUG=get_env_bool("DEBUG", defaults.DEBUG),
            LOG_LEVEL=get_env("LOG_LEVEL", defaults.LOG_LEVEL),
            ENVIRONMENT=get_env("ENVIRONMENT", defaults.ENVIRONMENT),
            MAX_PLAYERS_PER_ROOM=get_env_int("MAX_PLAYERS_PER_ROOM", defaults.MAX_PLAYERS_PER_ROOM),
            MIN_PLAYERS_TO_START=get_env_int("MIN_PLAYERS_TO_START", defaults.MIN_PLAYERS_TO_START),
            ROOM_CODE_LENGTH=get_env_int("ROOM_CODE_LENGTH", defaults.ROOM_CODE_LENGTH),
            SENTRY_DSN=get_env("SENTRY_DSN", defaults.SENTRY_DSN),
            game_defaults=GameDefaults(
                hand_size=get_env_int("HAND_SIZE", defaults.game_defaults.hand_size),
                card_manifest=get_env("CARD_MANIFEST") or None,
            ),
        )


config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """
    Re-read the environment into the module-level config.

    Only code that looks the value up through this module (`config.config`)
    sees the new settings. Names bound at import time keep the old ones:
    `from config import config` in game.py and main.py, and the values copied
    into constants.py (HAND_SIZE, MAX_PLAYERS, MIN_PLAYERS, ROOM_CODE_LENGTH).
    Restart the process to change those.
    """
    global config
    config = ServerConfig.from_env()
    return config
