# FILE: ai.py | version: 2026-10-19.v1
# Opponent move selection for the linear board.
# (deterministic first-playable scan; left wins ties so replays are reproducible)

from __future__ import annotations

from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

import numpy as np

from engine import ALL_TILES, SIDES, Board, Side, Tile, playable_ends, tile_pip_count

TILE_TO_IDX: Dict[Tile, int] = {t: i for i, t in enumerate(ALL_TILES)}
ACTION_SIZE = len(ALL_TILES) * len(SIDES)  # 56


class Move(NamedTuple):
    tile: Tile
    side: Side


Policy = Callable[[Sequence[Tile], Board], Optional[Move]]


def encode_action(tile: Tile, side: Side) -> int:
    return TILE_TO_IDX[tile] * len(SIDES) + SIDES.index(side)


def legal_mask(hand: Sequence[Tile], board: Board) -> np.ndarray:
    """int8 mask over every (tile, side) action; 1 where `hand` can play it now."""
    mask = np.zeros((ACTION_SIZE,), dtype=np.int8)
    for t in hand:
        ends = playable_ends(t, board)
        for side in ends.sides():
            mask[encode_action(t, side)] = 1
    return mask


def legal_moves(hand: Sequence[Tile], board: Board) -> List[Move]:
    """Legal moves in hand order, left before right for each tile."""
    mask = legal_mask(hand, board)
    return [Move(t, side) for t in hand for side in SIDES if mask[encode_action(t, side)]]


def select_move(hand: Sequence[Tile], board: Board) -> Optional[Move]:
    """
    Default opponent policy: the first tile in hand order that fits either end,
    played on the left when both ends accept it. No look-ahead.
    """
    moves = legal_moves(hand, board)
    return moves[0] if moves else None


def select_heaviest(hand: Sequence[Tile], board: Board) -> Optional[Move]:
    """Alternative policy: shed the highest pip count first (ties keep hand order)."""
    moves = legal_moves(hand, board)
    if not moves:
        return None
    best = moves[0]
    for m in moves[1:]:
        if tile_pip_count(m.tile) > tile_pip_count(best.tile):
            best = m
    return best


POLICIES: Dict[str, Policy] = {
    "first": select_move,
    "heaviest": select_heaviest,
}


def get_policy(name: str) -> Policy:
    try:
        return POLICIES[name]
    except KeyError:
        raise ValueError(f"Unknown policy: {name!r} (choose from {sorted(POLICIES)})") from None
