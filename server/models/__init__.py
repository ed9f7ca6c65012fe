"""Models package for the Takedown game engine."""

from .actions import (
    Action,
    ActionResult,
    ActionType,
    DrawAction,
    PlayCardAction,
    Rejection,
    RejectionReason,
    action_from_message,
)
from .game_state import GamePhase, GameState, Player, end_turn

__all__ = [
    "Action",
    "ActionResult",
    "ActionType",
    "DrawAction",
    "PlayCardAction",
    "Rejection",
    "RejectionReason",
    "action_from_message",
    "GamePhase",
    "GameState",
    "Player",
    "end_turn",
]
