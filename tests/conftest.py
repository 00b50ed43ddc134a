import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engine import ALL_TILES, Board, GameState, resolve_orientation


# Ends 6/6 with all seven 6-tiles on the board: nothing in any hand can be played.
LOCKED_BOARD = [
    ((6, 6), "right"),
    ((0, 6), "right"),
    ((0, 1), "right"),
    ((1, 6), "right"),
    ((2, 6), "left"),
    ((2, 3), "left"),
    ((3, 6), "left"),
    ((4, 6), "right"),
    ((4, 5), "right"),
    ((5, 6), "right"),
]


def _build_state(player, opponent, board=(), pile=None, rest="pile", status="player_turn"):
    b = Board()
    for tile, side in board:
        b.insert(resolve_orientation(tile, side, b))

    player = list(player)
    opponent = list(opponent)
    pile = list(pile or [])
    used = set(player) | set(opponent) | set(pile) | set(b.tiles())
    leftover = [t for t in ALL_TILES if t not in used]
    if rest == "pile":
        pile += leftover
    elif rest == "player":
        player += leftover
    elif rest == "opponent":
        opponent += leftover
    else:
        raise ValueError(rest)

    st = GameState(player_hand=player, opponent_hand=opponent, draw_pile=pile, board=b, status=status)
    st.check_invariants()
    return st


@pytest.fixture
def build_state():
    return _build_state


@pytest.fixture
def locked_board():
    return list(LOCKED_BOARD)
