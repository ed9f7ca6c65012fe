"""
Player actions and their results.

Clients submit intents (draw, play a card); the engine answers every intent
with an ActionResult. Rule violations are results, not exceptions: a
rejected action always leaves the game state untouched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class ActionType(str, Enum):
    """Intents a player can submit on their turn."""

    DRAW = "DRAW"
    PLAY_CARD = "PLAY_CARD"


class RejectionReason(str, Enum):
    """Why an action was refused."""

    GAME_NOT_STARTED = "game_not_started"
    GAME_ALREADY_ENDED = "game_already_ended"
    NOT_YOUR_TURN = "not_your_turn"
    CARD_NOT_IN_HAND = "card_not_in_hand"
    ILLEGAL_PLAY = "illegal_play"


@dataclass(frozen=True)
class DrawAction:
    """Draw one card and end the turn."""

    player_id: str
    type: ActionType = ActionType.DRAW


@dataclass(frozen=True)
class PlayCardAction:
    """Play a card from hand."""

    player_id: str
    card_id: str
    type: ActionType = ActionType.PLAY_CARD


Action = Union[DrawAction, PlayCardAction]


@dataclass(frozen=True)
class Rejection:
    """A refused action: the reason category plus a human-readable message."""

    reason: RejectionReason
    message: str


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of applying an action.

    Attributes:
        ok: Whether the action was applied.
        error: Rejection category when ok is False.
        message: Human-readable rejection message ("" on success).
        turns_advanced: Turn-ends performed (0 when the action won the game).
        game_over: The action ended the game.
    """

    ok: bool
    error: Optional[RejectionReason] = None
    message: str = ""
    turns_advanced: int = 0
    game_over: bool = False

    @classmethod
    def success(cls, turns_advanced: int = 1, game_over: bool = False) -> "ActionResult":
        return cls(ok=True, turns_advanced=turns_advanced, game_over=game_over)

    @classmethod
    def reject(cls, rejection: Rejection) -> "ActionResult":
        return cls(ok=False, error=rejection.reason, message=rejection.message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "ok": self.ok,
            "error": self.error.value if self.error else None,
            "message": self.message,
            "turns_advanced": self.turns_advanced,
            "game_over": self.game_over,
        }


def action_from_message(data: dict, player_id: str) -> Optional[Action]:
    """
    Build an action from a client message.

    Args:
        data: Message dict with a "type" of "draw" or "play_card".
        player_id: Player bound to the sending connection.

    Returns:
        The action, or None if the message does not describe one.
    """
    msg_type = data.get("type")
    if msg_type == "draw":
        return DrawAction(player_id=player_id)
    if msg_type == "play_card":
        card_id = data.get("card_id")
        if isinstance(card_id, str) and card_id:
            return PlayCardAction(player_id=player_id, card_id=card_id)
    return None
