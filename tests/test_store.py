import random

import pytest

from engine import ALL_TILES, EmptyDraw, GameState, IllegalPlacement, InvalidMove, InvariantError


def test_deal_new_conserves_tiles():
    st = GameState.deal_new(random.Random(1))
    assert len(st.player_hand) == 7
    assert len(st.opponent_hand) == 7
    assert len(st.draw_pile) == 14
    assert st.board.is_empty()
    assert st.status == "player_turn"
    assert [e.type for e in st.events] == ["game_start"]
    st.check_invariants()


def test_commit_moves_tile_from_hand_to_board(build_state):
    st = build_state(player=[(0, 1), (1, 2)], opponent=[(3, 4)])
    p = st.commit("player", (0, 1), "left")
    assert st.player_hand == [(1, 2)]
    assert st.board.tiles() == [(0, 1)]
    assert (p.left, p.right) == (0, 1)
    assert st.events[-1].type == "play"
    assert st.events[-1].tile == "0-1"


def test_failed_commit_changes_nothing(build_state):
    st = build_state(player=[(4, 5), (1, 2)], opponent=[(3, 4)], board=[((0, 1), "right")])
    before = (list(st.player_hand), st.board.tiles(), len(st.events))
    with pytest.raises(IllegalPlacement):
        st.commit("player", (4, 5), "left")
    with pytest.raises(IllegalPlacement):
        st.commit("player", (6, 6), "left")
    assert (list(st.player_hand), st.board.tiles(), len(st.events)) == before


def test_validate_play_reasons(build_state):
    st = build_state(player=[(4, 5), (1, 2)], opponent=[(3, 4)], board=[((0, 1), "right")])
    with pytest.raises(InvalidMove) as e:
        st.validate_play("player", (4, 5), "left")
    assert e.value.code == "invalid_move"
    with pytest.raises(InvalidMove) as e:
        st.validate_play("player", (3, 4), "right")
    assert e.value.code == "not_in_hand"
    with pytest.raises(InvalidMove) as e:
        st.validate_play("player", (1, 2), "up")
    assert e.value.code == "bad_side"
    st.validate_play("player", (1, 2), "right")


def test_draw_takes_front_of_pile(build_state):
    st = build_state(player=[(5, 5)], opponent=[(3, 4)], pile=[(6, 6), (2, 2)], rest="opponent")
    assert st.draw("player") == (6, 6)
    assert st.player_hand == [(5, 5), (6, 6)]
    assert st.draw_pile == [(2, 2)]
    st.draw("opponent")
    with pytest.raises(EmptyDraw):
        st.draw("player")
    assert len(st.player_hand) == 2


def test_must_draw_and_must_pass(build_state):
    st = build_state(player=[(5, 5)], opponent=[(3, 4)], board=[((0, 1), "right")], pile=[(6, 6)], rest="opponent")
    assert st.must_draw() and not st.must_pass()
    st.draw("player")
    assert not st.must_draw() and st.must_pass()


def test_invariant_detects_duplicate_tile(build_state):
    st = build_state(player=[(0, 1)], opponent=[(3, 4)])
    st.opponent_hand.append((0, 1))
    with pytest.raises(InvariantError):
        st.check_invariants()


def test_invariant_detects_missing_tile(build_state):
    st = build_state(player=[(0, 1)], opponent=[(3, 4)])
    st.draw_pile.pop()
    with pytest.raises(InvariantError):
        st.check_invariants()


def test_finish_is_terminal(build_state):
    st = build_state(player=[(0, 1)], opponent=[(3, 4)])
    st.finish("blocked")
    assert st.is_over()
    with pytest.raises(ValueError):
        st.finish("player_won")
    with pytest.raises(ValueError):
        build_state(player=[], opponent=[]).finish("player_turn")


def test_snapshot_hides_opponent_tiles(build_state):
    st = build_state(player=[(0, 1), (4, 5)], opponent=[(3, 4)], board=[((1, 6), "right")])
    snap = st.snapshot(include_events=True)
    assert snap["player_hand"] == ["0-1", "4-5"]
    assert snap["opponent_hand_size"] == 1
    assert snap["draw_pile_size"] == len(ALL_TILES) - 4
    assert snap["ends"] == {"left": 1, "right": 6}
    assert snap["playable"]["0-1"] == {"left": True, "right": False}
    assert snap["playable"]["4-5"] == {"left": False, "right": False}
    assert "3-4" not in str(snap["board"])
    assert snap["events"] == []
    assert "score" not in snap
