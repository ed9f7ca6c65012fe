"""
Game constants for Takedown.

Room limits and the opening hand size come from config.py (and therefore
from environment variables); card colors are fixed per kind and used when a
deck is built from an external manifest that carries no display data.
"""

from config import config


# =============================================================================
# Game Constants
# =============================================================================

HAND_SIZE = config.game_defaults.hand_size
MAX_PLAYERS = config.MAX_PLAYERS_PER_ROOM
MIN_PLAYERS = config.MIN_PLAYERS_TO_START
ROOM_CODE_LENGTH = config.ROOM_CODE_LENGTH


# =============================================================================
# Card Colors (by CardKind value)
# =============================================================================

KIND_COLORS: dict[str, str] = {
    "NEUTRAL": "#111111",
    "ATTEMPT_TAKEDOWN": "#111111",
    "TOP": "#1e6fd0",
    "BOTTOM": "#28a745",
    "TRIPOD": "#28a745",
    "SITOUT": "#28a745",
    "COUNTER": "#f08a24",
    "PIN": "#ffffff",
    "BLOODTIME": "#d0021b",
    "PENALTY": "#74c045",
    "OUT_OF_BOUNDS": "#808080",
    "STALLING": "#d19b00",
    "END_OF_PERIOD": "#7a3db5",
    "BONUS": "#c0c0c0",
}