"""
Game engine for Takedown.

This module is the authoritative rule engine for the Takedown wrestling card
game: it owns the deck, the players' hands and the shared position, and
decides the legality and effect of every card played. It is synchronous and
in-memory; the session layer (room.py, handlers.py) calls it and broadcasts
the resulting state.

Takedown Rules Summary:
    - 2-4 players, each dealt 5 cards from one shared 50-card deck
    - The match opens with a NEUTRAL (or Attempted Takedown) card; until then
      players may only play those or draw
    - A card must match the current position (NEUTRAL / TOP / BOTTOM), except
      "anytime" cards (Blood Time, Penalty, Stalling, Out of Bounds, End of Period)
    - A takedown puts the match in BOTTOM and gives the next player one turn
      to answer with a COUNTER
    - On your turn: play one legal card or draw one card; either ends the turn
    - Playing a PIN card, or playing your last card, wins the match

Every operation is a free function over an explicit GameState, so the
engine can be driven from fixture states in tests without any networking.
"""

import logging
import random
from functools import lru_cache
from typing import Optional, Sequence, TypeVar

from cards import Card, CardTemplate, Position, build_deck, load_manifest, DEFAULT_TEMPLATES
from config import config
from constants import HAND_SIZE
from models.actions import (
    Action,
    ActionResult,
    ActionType,
    Rejection,
    RejectionReason,
)
from models.game_state import GamePhase, GameState, Player, end_turn
from rules import check_legality, is_win, playable_cards, resolve_effects

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OutOfCardsError(RuntimeError):
    """
    Both the draw pile and the discard pile are empty.

    The deck is closed, so with no card played this happens once every card
    sits in a hand: players who only draw eventually exhaust both piles. The
    engine raises and leaves the state untouched; the session layer decides
    how to wind the game down (see end_game).
    """


# =============================================================================
# Deck Manager
# =============================================================================

def shuffle(cards: Sequence[T], rng: Optional[random.Random] = None) -> list[T]:
    """
    Return a uniformly shuffled copy of a sequence (Fisher-Yates).

    Args:
        cards: Items to shuffle; not modified.
        rng: Optional random source for deterministic shuffles.

    Returns:
        A new list with the same items in random order.
    """
    rng = rng or random
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def draw_one(state: GameState, rng: Optional[random.Random] = None) -> Card:
    """
    Draw the top card of the draw pile.

    When the draw pile is empty, the discard pile is turned over: its top
    card stays face up as the new discard pile and the rest is shuffled into
    a fresh draw pile. If that top card was the only discard, it is drawn.

    Args:
        state: Game state whose piles are drawn from.
        rng: Optional random source for the reshuffle.

    Returns:
        The drawn card (the caller puts it somewhere).

    Raises:
        OutOfCardsError: If no card exists in either pile.
    """
    if not state.draw_pile:
        top = state.discard_pile.pop() if state.discard_pile else None
        state.draw_pile = shuffle(state.discard_pile, rng)
        state.discard_pile = [top] if top is not None else []
        logger.info(
            f"Game {state.id}: reshuffled {len(state.draw_pile)} discards into the draw pile"
        )
    if state.draw_pile:
        return state.draw_pile.pop()
    if state.discard_pile:
        return state.discard_pile.pop()
    logger.error(f"Game {state.id}: no cards left in draw or discard pile")
    raise OutOfCardsError(f"game {state.id}: no cards available to draw")


# =============================================================================
# Game Lifecycle
# =============================================================================

def create_game_state(game_id: str) -> GameState:
    """Create an empty game in the LOBBY phase."""
    return GameState(id=game_id)


def is_player_in_game(state: GameState, player_id: str) -> bool:
    """Check whether a player id is registered in the game."""
    return any(p.id == player_id for p in state.players)


def add_player(state: GameState, player_id: str, name: str) -> Optional[Player]:
    """
    Register a player while the game is in the lobby.

    Capacity is the session layer's concern; the engine only refuses joins
    after the start and duplicate ids.

    Returns:
        The new Player, or None if the game has started or the id is taken.
    """
    if state.phase != GamePhase.LOBBY or is_player_in_game(state, player_id):
        return None
    player = Player(id=player_id, name=name)
    state.players.append(player)
    return player


def remove_player(state: GameState, player_id: str) -> Optional[Player]:
    """
    Remove a player from a game that has not started.

    Players are never removed mid-game: turn order is fixed at the start.

    Returns:
        The removed Player, or None if not found or the game has started.
    """
    if state.phase != GamePhase.LOBBY:
        return None
    for i, player in enumerate(state.players):
        if player.id == player_id:
            return state.players.pop(i)
    return None


@lru_cache(maxsize=8)
def _manifest_templates(path: str) -> tuple[CardTemplate, ...]:
    return tuple(load_manifest(path))


def deck_templates() -> list[CardTemplate]:
    """Templates for new games: the configured manifest, else the standard deck."""
    if config.game_defaults.card_manifest:
        return list(_manifest_templates(config.game_defaults.card_manifest))
    return DEFAULT_TEMPLATES


def start(
    state: GameState,
    templates: Optional[list[CardTemplate]] = None,
    rng: Optional[random.Random] = None,
) -> None:
    """
    Deal a new game.

    Builds and shuffles a fresh deck, resets turn, position and counter
    window, enters FIND_START_NEUTRAL and deals HAND_SIZE cards to every
    registered player (resetting their score and penalties). The session
    layer decides when a start is allowed; the engine tolerates any player
    count.

    Args:
        state: Game to start (normally in LOBBY).
        templates: Deck templates (defaults to deck_templates()).
        rng: Optional random source for deterministic deals.
    """
    if state.phase != GamePhase.LOBBY:
        logger.warning(f"Game {state.id}: restarting from phase {state.phase.value}")

    state.draw_pile = shuffle(build_deck(templates or deck_templates()), rng)
    state.discard_pile = []
    state.current_turn_index = 0
    state.current_position = Position.NEUTRAL
    state.previous_position = None
    state.can_counter_takedown = False
    state.winner_id = None
    state.phase = GamePhase.FIND_START_NEUTRAL

    for player in state.players:
        player.hand = []
        for _ in range(HAND_SIZE):
            player.hand.append(draw_one(state, rng))
        player.score = 0
        player.penalty_points = 0

    logger.info(
        f"Game {state.id} started: {len(state.players)} players, "
        f"{len(state.draw_pile)} cards in draw pile"
    )


# =============================================================================
# Turn Controller
# =============================================================================

def end_game(state: GameState, winner_id: Optional[str] = None) -> None:
    """
    Move the game to ENDED.

    A winner_id of None ends the game without a winner, e.g. when nobody
    can draw any more.
    """
    state.phase = GamePhase.ENDED
    state.can_counter_takedown = False
    state.winner_id = winner_id
    if winner_id is None:
        logger.warning(f"Game {state.id} ended without a winner")



def _validate(state: GameState, action: Action) -> tuple[Optional[Rejection], Optional[Card]]:
    """Check an action without touching the state; returns (rejection, card)."""
    if state.phase == GamePhase.LOBBY:
        return Rejection(RejectionReason.GAME_NOT_STARTED, "game not started"), None
    if state.phase == GamePhase.ENDED:
        return Rejection(RejectionReason.GAME_ALREADY_ENDED, "game already ended"), None

    player = state.current_player()
    if player is None or player.id != action.player_id:
        return Rejection(RejectionReason.NOT_YOUR_TURN, "not your turn"), None

    if action.type == ActionType.DRAW:
        return None, None

    card = player.find_card(action.card_id)
    if card is None:
        return Rejection(RejectionReason.CARD_NOT_IN_HAND, "card not in hand"), None
    return check_legality(state, card), card


def apply_action(
    state: GameState,
    action: Action,
    rng: Optional[random.Random] = None,
) -> ActionResult:
    """
    Apply a player's draw or play to the game.

    The action is fully validated before anything is mutated, so a rejected
    action leaves the state exactly as it was.

    Args:
        state: Game state to mutate.
        action: DrawAction or PlayCardAction.
        rng: Optional random source used if the draw pile has to be reshuffled.

    Returns:
        ActionResult describing success (with the number of turn-ends) or the
        rejection.

    Raises:
        OutOfCardsError: Drawing with both piles empty (every card is in a hand); the state is left unchanged.
    """
    rejection, card = _validate(state, action)
    if rejection is not None:
        logger.debug(f"Game {state.id}: rejected {action.type.value} from {action.player_id}: {rejection.message}")
        return ActionResult.reject(rejection)

    player = state.current_player()

    if action.type == ActionType.DRAW:
        player.hand.append(draw_one(state, rng))
        state.can_counter_takedown = False
        end_turn(state)
        logger.debug(f"Game {state.id}: {player.name} drew a card")
        return ActionResult.success(turns_advanced=1)

    player.hand.remove(card)
    state.discard_pile.append(card)
    logger.debug(f"Game {state.id}: {player.name} played {card.kind.value} '{card.name}'")

    if is_win(card, player):
        end_game(state, player.id)
        logger.info(f"Game {state.id} won by {player.name} with '{card.name}'")
        return ActionResult.success(turns_advanced=0, game_over=True)

    extra_turns = resolve_effects(state, card)
    end_turn(state)
    return ActionResult.success(turns_advanced=extra_turns + 1)


# =============================================================================
# State Queries
# =============================================================================

def state_for_player(state: GameState, for_player_id: Optional[str]) -> dict:
    """
    Get the game state as seen by one player.

    Returns a dictionary suitable for JSON serialization. The viewer's own
    hand is included in full; opponents' hands only as card counts.

    Args:
        state: Game state.
        for_player_id: The receiving player, or None for a spectator view.

    Returns:
        Dict with phase, position, players, piles, current turn and the ids
        of the cards the viewer may legally play now.
    """
    current = state.current_player() if state.phase != GamePhase.LOBBY else None
    viewer = state.get_player(for_player_id) if for_player_id else None

    players_data = []
    for player in state.players:
        data = {
            "id": player.id,
            "name": player.name,
            "hand_count": len(player.hand),
            "score": player.score,
            "penalty_points": player.penalty_points,
        }
        if player is viewer:
            data["hand"] = [card.to_dict() for card in player.hand]
        players_data.append(data)

    playable_ids: list[str] = []
    if viewer is not None and viewer is current:
        playable_ids = [card.id for card in playable_cards(state, viewer)]

    discard_top = state.discard_top()
    return {
        "id": state.id,
        "phase": state.phase.value,
        "current_position": state.current_position.value,
        "previous_position": state.previous_position.value if state.previous_position else None,
        "can_counter_takedown": state.can_counter_takedown,
        "players": players_data,
        "current_player_id": current.id if current else None,
        "draw_pile_count": len(state.draw_pile),
        "discard_pile_count": len(state.discard_pile),
        "discard_top": discard_top.to_dict() if discard_top else None,
        "playable_card_ids": playable_ids,
        "winner_id": state.winner_id,
    }
