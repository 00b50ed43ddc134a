import random

import pytest

from game import DominoGame
from storage import ScoreTally, export_log_text


def test_tally_counts_each_outcome():
    tally = ScoreTally()
    tally.record("player_won")
    tally("opponent_won")
    tally.record("blocked")
    tally.record("player_won")
    assert tally.to_dict() == {"player_wins": 2, "opponent_wins": 1, "blocked": 1, "games": 4}


def test_tally_rejects_non_terminal_status():
    with pytest.raises(ValueError):
        ScoreTally().record("player_turn")


def test_export_log_text_lists_events():
    g = DominoGame(rng=random.Random(8))
    tile = g.state.player_hand[0]
    g.attempt_play(tile, "left")
    text = export_log_text(g.state)
    assert text.startswith("=== Domino Log ===")
    assert "=== Events ===" in text
    assert "game_start" in text
    assert "'type': 'play'" in text
    assert '"status"' in text
