"""
Takedown Simulation Runner

Plays random games directly against the engine (no server/websocket) and
checks the engine's invariants after every action: the deck stays closed,
the turn index stays valid and phases only move forward.

Usage:
    python simulate.py [num_games] [num_players] [seed]

Examples:
    python simulate.py 100        # Run 100 games with 2 players each
    python simulate.py 500 4 7    # Run 500 games with 4 players, seed 7
"""

import logging
import random
import sys
from collections import Counter
from typing import Optional

from game import apply_action, create_game_state, add_player, start
from models.actions import DrawAction, PlayCardAction
from models.game_state import GamePhase, GameState
from rules import playable_cards

PHASE_ORDER = [GamePhase.LOBBY, GamePhase.FIND_START_NEUTRAL, GamePhase.PLAY, GamePhase.ENDED]


class InvariantViolation(AssertionError):
    """The engine broke one of its own invariants during a simulated game."""


class SimulationStats:
    """Track simulation statistics."""

    def __init__(self):
        self.games_played = 0
        self.games_finished = 0
        self.total_turns = 0
        self.draws = 0
        self.reshuffle_games = 0
        self.cards_played: Counter = Counter()
        self.wins_by_seat: Counter = Counter()
        self.win_cards: Counter = Counter()

    def record_game(self, state: GameState, turns: int, reshuffled: bool, win_card: Optional[str]):
        self.games_played += 1
        self.total_turns += turns
        if reshuffled:
            self.reshuffle_games += 1
        if state.phase == GamePhase.ENDED:
            self.games_finished += 1
            seat = next(i for i, p in enumerate(state.players) if p.id == state.winner_id)
            self.wins_by_seat[seat] += 1
            self.win_cards[win_card] += 1

    def report(self) -> str:
        lines = [
            "=" * 50,
            "SIMULATION RESULTS",
            "=" * 50,
            f"Games played:     {self.games_played}",
            f"Games finished:   {self.games_finished}",
            f"Avg turns/game:   {self.total_turns / max(1, self.games_played):.1f}",
            f"Draw actions:     {self.draws}",
            f"Games reshuffled: {self.reshuffle_games}",
            "",
            "Wins by seat:",
        ]
        for seat, wins in sorted(self.wins_by_seat.items()):
            lines.append(f"  seat {seat}: {wins}")
        lines.append("")
        lines.append("Winning plays:")
        for kind, count in self.win_cards.most_common():
            lines.append(f"  {kind}: {count}")
        lines.append("")
        lines.append("Cards played by kind:")
        for kind, count in self.cards_played.most_common():
            lines.append(f"  {kind}: {count}")
        return "\n".join(lines)


def check_invariants(state: GameState, deck_size: int, previous_phase: GamePhase) -> None:
    """Raise InvariantViolation if the state breaks an engine invariant."""
    if state.card_count() != deck_size:
        raise InvariantViolation(f"deck not closed: {state.card_count()} != {deck_size}")
    if not 0 <= state.current_turn_index < len(state.players):
        raise InvariantViolation(f"turn index {state.current_turn_index} out of range")
    if PHASE_ORDER.index(state.phase) < PHASE_ORDER.index(previous_phase):
        raise InvariantViolation(f"phase regressed {previous_phase.value} -> {state.phase.value}")
    for player in state.players:
        if player.score < 0 or player.penalty_points < 0:
            raise InvariantViolation(f"negative score for {player.name}")


def run_game(
    num_players: int,
    stats: SimulationStats,
    rng: random.Random,
    max_turns: int = 500,
    play_bias: float = 0.85,
) -> GameState:
    """
    Play one random game to the end (or max_turns).

    On each turn the current player plays a random legal card with
    probability play_bias, otherwise draws.
    """
    state = create_game_state(f"sim-{stats.games_played + 1}")
    for i in range(num_players):
        add_player(state, f"p{i}", f"Bot {i}")
    start(state, rng=rng)
    deck_size = state.card_count()

    turns = 0
    reshuffled = False
    win_card = None
    while state.phase != GamePhase.ENDED and turns < max_turns:
        player = state.current_player()
        options = playable_cards(state, player)
        if not options and not state.draw_pile and not state.discard_pile:
            # Every card is in a hand and nobody can move: a dead position.
            break
        previous_phase = state.phase
        draw_pile_before = len(state.draw_pile)

        can_draw = bool(state.draw_pile or state.discard_pile)
        if options and (rng.random() < play_bias or not can_draw):
            card = rng.choice(options)
            result = apply_action(state, PlayCardAction(player.id, card.id), rng=rng)
            stats.cards_played[card.kind.value] += 1
            if result.game_over:
                win_card = card.kind.value
        else:
            result = apply_action(state, DrawAction(player.id), rng=rng)
            stats.draws += 1
            reshuffled = reshuffled or draw_pile_before == 0

        if not result.ok:
            raise InvariantViolation(f"legal move rejected: {result.message}")
        check_invariants(state, deck_size, previous_phase)
        turns += 1

    stats.record_game(state, turns, reshuffled, win_card)
    return state


def run_simulation(num_games: int = 100, num_players: int = 2, seed: Optional[int] = None) -> SimulationStats:
    """Run multiple random games and collect statistics."""
    rng = random.Random(seed)
    stats = SimulationStats()
    for _ in range(num_games):
        run_game(num_players, stats, rng)
    return stats


def main():
    num_games = int(sys.argv[1]) if len(sys.argv) > 1 else 100
    num_players = int(sys.argv[2]) if len(sys.argv) > 2 else 2
    seed = int(sys.argv[3]) if len(sys.argv) > 3 else None

    logging.basicConfig(level=logging.WARNING)
    print(f"Running {num_games} games with {num_players} players...")
    stats = run_simulation(num_games, num_players, seed)
    print(stats.report())


if __name__ == "__main__":
    main()
