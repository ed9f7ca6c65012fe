"""
Randomized play against the engine.

Runs the simulator's random games with fixed seeds; check_invariants raises
on any broken invariant, so a clean run is the assertion.

Run with: pytest test_simulate.py -v
"""

import pytest

from models.game_state import GamePhase, GameState, Player
from simulate import InvariantViolation, check_invariants, run_simulation


@pytest.mark.parametrize("num_players", [2, 3, 4])
def test_random_games_hold_invariants(num_players):
    stats = run_simulation(num_games=40, num_players=num_players, seed=num_players)
    assert stats.games_played == 40
    assert sum(stats.wins_by_seat.values()) == stats.games_finished


def test_most_games_finish():
    stats = run_simulation(num_games=50, num_players=2, seed=123)
    assert stats.games_finished > 10


def test_report_mentions_totals():
    stats = run_simulation(num_games=3, num_players=2, seed=1)
    assert "Games played:     3" in stats.report()


def test_check_invariants_catches_lost_card():
    state = GameState(id="g", players=[Player(id="a", name="A"), Player(id="b", name="B")])
    with pytest.raises(InvariantViolation):
        check_invariants(state, deck_size=1, previous_phase=GamePhase.LOBBY)


def test_check_invariants_catches_phase_regression():
    state = GameState(id="g", players=[Player(id="a", name="A")])
    with pytest.raises(InvariantViolation):
        check_invariants(state, deck_size=0, previous_phase=GamePhase.PLAY)
