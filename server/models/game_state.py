"""
Game state record for Takedown.

GameState is a plain data record: every engine operation is a free function
that takes the state as its first argument and mutates it in place. Nothing
here knows about sockets, rooms or storage.

Phase Flow:
    LOBBY -> FIND_START_NEUTRAL -> PLAY -> ENDED   (forward only, ENDED is terminal)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from cards import Card, Position


class GamePhase(str, Enum):
    """
    Coarse lifecycle stage of a game.

    LOBBY: Players are joining, no cards dealt.
    FIND_START_NEUTRAL: Hands dealt, the opening NEUTRAL card has not been played.
    PLAY: Normal play.
    ENDED: Someone pinned their opponent or emptied their hand.
    """

    LOBBY = "LOBBY"
    FIND_START_NEUTRAL = "FIND_START_NEUTRAL"
    PLAY = "PLAY"
    ENDED = "ENDED"


@dataclass
class Player:
    """
    A player in a Takedown game.

    Attributes:
        id: Unique identifier, allocated by the session layer.
        name: Display name.
        hand: Cards held, in the order they were received.
        score: Match points (never negative).
        penalty_points: Penalties received from PENALTY cards.
    """

    id: str
    name: str
    hand: list[Card] = field(default_factory=list)
    score: int = 0
    penalty_points: int = 0

    def find_card(self, card_id: str) -> Optional[Card]:
        """Return the card with this id from the hand, or None."""
        for card in self.hand:
            if card.id == card_id:
                return card
        return None


@dataclass
class GameState:
    """
    Authoritative state of one game.

    Attributes:
        id: Game identifier, allocated by the session layer.
        players: Turn order; fixed once the game starts.
        draw_pile: Face-down stack, top card is the last element.
        discard_pile: Played cards, top card is the last element.
        current_turn_index: Index into players of whose turn it is.
        current_position: Position the match is in.
        previous_position: Position at the end of the last turn unit (None before the first).
        phase: Lifecycle stage.
        can_counter_takedown: True for the one turn after a takedown.
        winner_id: Player who ended the game, once phase is ENDED.
    """

    id: str
    players: list[Player] = field(default_factory=list)
    draw_pile: list[Card] = field(default_factory=list)
    discard_pile: list[Card] = field(default_factory=list)
    current_turn_index: int = 0
    current_position: Position = Position.NEUTRAL
    previous_position: Optional[Position] = None
    phase: GamePhase = GamePhase.LOBBY
    can_counter_takedown: bool = False
    winner_id: Optional[str] = None

    def get_player(self, player_id: str) -> Optional[Player]:
        """Find a player by id."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def current_player(self) -> Optional[Player]:
        """Get the player whose turn it currently is."""
        if self.players:
            return self.players[self.current_turn_index]
        return None

    def next_player(self) -> Player:
        """The player after the current one in turn order."""
        return self.players[(self.current_turn_index + 1) % len(self.players)]

    def discard_top(self) -> Optional[Card]:
        """Get the top card of the discard pile (if any)."""
        if self.discard_pile:
            return self.discard_pile[-1]
        return None

    def card_count(self) -> int:
        """Cards in play: draw pile + discard pile + every hand."""
        return (
            len(self.draw_pile)
            + len(self.discard_pile)
            + sum(len(p.hand) for p in self.players)
        )


def end_turn(state: GameState) -> None:
    """
    End one turn unit.

    Records the position as previous_position, then passes the turn to the
    next player. Skip effects are repeated calls to this function.
    """
    state.previous_position = state.current_position
    state.current_turn_index = (state.current_turn_index + 1) % len(state.players)
