"""
Legality and effect resolution for Takedown.

Every CardKind has a fixed legality class and a fixed effect. Both are
looked up in tables keyed by CardKind; the tables are checked for
completeness at import time, so a new kind cannot be added without deciding
how it is played and what it does.

Legality (checked in this order):
    1. Start phase: only NEUTRAL / ATTEMPT_TAKEDOWN open the match.
    2. Anytime kinds: BLOODTIME, END_OF_PERIOD, OUT_OF_BOUNDS, PENALTY, STALLING.
    3. Positional kinds: must match the current position.
    4. COUNTER: only while the counter window is open (right after a takedown).
    5. Everything else is not playable.

Effects run after the card has left the hand and the win check has passed.
An effect handler returns how many extra turn-ends it performed, so the
turn controller can report the total turn advance of an action.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from cards import Card, CardKind, Position
from models.actions import Rejection, RejectionReason
from models.game_state import GamePhase, GameState, Player, end_turn

logger = logging.getLogger(__name__)


MUST_START_NEUTRAL = "must play a neutral-phase card to start (or draw)"
COUNTER_WINDOW_CLOSED = "counter window closed"
NOT_PLAYABLE_IN_POSITION = "not playable in the current position"


class LegalityClass(str, Enum):
    """How a card kind's legality is decided."""

    ANYTIME = "anytime"          # any position, once the match has started
    POSITIONAL = "positional"    # current position must match
    CONDITIONAL = "conditional"  # depends on transient state (counter window)
    UNPLAYABLE = "unplayable"    # never legal in the baseline rules


LEGALITY_CLASS: dict[CardKind, LegalityClass] = {
    CardKind.NEUTRAL: LegalityClass.POSITIONAL,
    CardKind.ATTEMPT_TAKEDOWN: LegalityClass.POSITIONAL,
    CardKind.TOP: LegalityClass.POSITIONAL,
    CardKind.BOTTOM: LegalityClass.POSITIONAL,
    CardKind.TRIPOD: LegalityClass.POSITIONAL,
    CardKind.SITOUT: LegalityClass.POSITIONAL,
    CardKind.PIN: LegalityClass.POSITIONAL,
    CardKind.BLOODTIME: LegalityClass.ANYTIME,
    CardKind.END_OF_PERIOD: LegalityClass.ANYTIME,
    CardKind.OUT_OF_BOUNDS: LegalityClass.ANYTIME,
    CardKind.PENALTY: LegalityClass.ANYTIME,
    CardKind.STALLING: LegalityClass.ANYTIME,
    CardKind.COUNTER: LegalityClass.CONDITIONAL,
    CardKind.BONUS: LegalityClass.UNPLAYABLE,
}

# Cards that may open the match during FIND_START_NEUTRAL.
START_KINDS = frozenset({CardKind.NEUTRAL, CardKind.ATTEMPT_TAKEDOWN})

# Position each positional kind is played from. PIN is absent: a PIN card
# carries its own pin_position.
KIND_POSITIONS: dict[CardKind, Position] = {
    CardKind.NEUTRAL: Position.NEUTRAL,
    CardKind.ATTEMPT_TAKEDOWN: Position.NEUTRAL,
    CardKind.TOP: Position.TOP,
    CardKind.BOTTOM: Position.BOTTOM,
    CardKind.TRIPOD: Position.BOTTOM,
    CardKind.SITOUT: Position.BOTTOM,
}


def _rejection(message: str) -> Rejection:
    return Rejection(RejectionReason.ILLEGAL_PLAY, message)


def _positional_match(state: GameState, card: Card) -> bool:
    if card.kind == CardKind.PIN:
        return card.pin_position is None or card.pin_position == state.current_position
    return KIND_POSITIONS[card.kind] == state.current_position


def check_legality(state: GameState, card: Card) -> Optional[Rejection]:
    """
    Decide whether a card may be played right now.

    Does not look at turn ownership or hand membership; the turn controller
    checks those first.

    Args:
        state: Current game state (phase FIND_START_NEUTRAL or PLAY).
        card: Candidate card.

    Returns:
        None if the card is legal, otherwise an ILLEGAL_PLAY rejection.
    """
    if state.phase == GamePhase.FIND_START_NEUTRAL:
        if card.kind in START_KINDS:
            return None
        return _rejection(MUST_START_NEUTRAL)

    legality = LEGALITY_CLASS[card.kind]
    if legality == LegalityClass.ANYTIME:
        return None
    if legality == LegalityClass.POSITIONAL and _positional_match(state, card):
        return None
    if legality == LegalityClass.CONDITIONAL:
        if state.can_counter_takedown and state.current_position == Position.BOTTOM:
            return None
        return _rejection(COUNTER_WINDOW_CLOSED)
    return _rejection(NOT_PLAYABLE_IN_POSITION)


def playable_cards(state: GameState, player: Player) -> list[Card]:
    """Cards in a player's hand that would pass the legality check now."""
    if state.phase not in (GamePhase.FIND_START_NEUTRAL, GamePhase.PLAY):
        return []
    return [card for card in player.hand if check_legality(state, card) is None]


def is_win(card: Card, player: Player) -> bool:
    """
    Check whether the card just played (already removed from hand) wins.

    A PIN card (or any card marked ends_game) wins, as does playing the
    last card in hand.
    """
    return card.kind == CardKind.PIN or card.ends_game or not player.hand


# =============================================================================
# Effects
# =============================================================================

EffectHandler = Callable[[GameState, Card], int]


def _leave_start_phase(state: GameState) -> None:
    if state.phase == GamePhase.FIND_START_NEUTRAL:
        state.phase = GamePhase.PLAY


def _neutral(state: GameState, card: Card) -> int:
    if card.is_takedown:
        state.current_position = Position.BOTTOM
        state.can_counter_takedown = True
    else:
        state.current_position = Position.NEUTRAL
    _leave_start_phase(state)
    return 0


def _attempt_takedown(state: GameState, card: Card) -> int:
    state.current_position = Position.NEUTRAL
    _leave_start_phase(state)
    return 0


def _counter(state: GameState, card: Card) -> int:
    state.current_position = Position.NEUTRAL
    state.can_counter_takedown = False
    return 0


def _top(state: GameState, card: Card) -> int:
    if not card.does_not_change_position:
        state.current_position = Position.TOP
    return 0


def _bottom(state: GameState, card: Card) -> int:
    if not card.does_not_change_position:
        state.current_position = Position.BOTTOM
    return 0


def _no_effect(state: GameState, card: Card) -> int:
    return 0


def _bloodtime(state: GameState, card: Card) -> int:
    # The opponent's upcoming turn is skipped.
    end_turn(state)
    return 1


def _out_of_bounds(state: GameState, card: Card) -> int:
    state.current_position = state.previous_position or Position.NEUTRAL
    return 0


def _penalty(state: GameState, card: Card) -> int:
    penalized = state.next_player()
    penalized.penalty_points += 1
    end_turn(state)
    return 1


def _stalling(state: GameState, card: Card) -> int:
    stalled = state.next_player()
    stalled.score = max(0, stalled.score - 1)
    return 0


def _end_of_period(state: GameState, card: Card) -> int:
    """
    End of period: no state change in the baseline rules.

    This is where a choice of restart position by the acting player would
    be applied once the protocol carries it.
    """
    return 0


EFFECTS: dict[CardKind, EffectHandler] = {
    CardKind.NEUTRAL: _neutral,
    CardKind.ATTEMPT_TAKEDOWN: _attempt_takedown,
    CardKind.COUNTER: _counter,
    CardKind.TOP: _top,
    CardKind.BOTTOM: _bottom,
    CardKind.TRIPOD: _no_effect,
    CardKind.SITOUT: _no_effect,
    CardKind.BLOODTIME: _bloodtime,
    CardKind.OUT_OF_BOUNDS: _out_of_bounds,
    CardKind.PENALTY: _penalty,
    CardKind.STALLING: _stalling,
    CardKind.END_OF_PERIOD: _end_of_period,
    CardKind.BONUS: _no_effect,
    CardKind.PIN: _no_effect,
}

_unhandled = (set(CardKind) - set(EFFECTS)) | (set(CardKind) - set(LEGALITY_CLASS))
if _unhandled:
    raise RuntimeError(f"Card kinds without rules: {sorted(k.value for k in _unhandled)}")


def resolve_effects(state: GameState, card: Card) -> int:
    """
    Apply a played card's effect to the game state.

    The counter window only lasts one turn: it is closed here before the
    effect runs, and only a takedown re-opens it.

    Args:
        state: Game state; the card is already on the discard pile.
        card: The card that was played.

    Returns:
        Number of extra turn-ends the effect performed.
    """
    state.can_counter_takedown = False
    extra_turns = EFFECTS[card.kind](state, card)
    logger.debug(
        f"Resolved {card.kind.value} '{card.name}': position={state.current_position.value}, "
        f"extra_turns={extra_turns}"
    )
    return extra_turns
