# FILE: engine.py | version: 2026-10-19.v1
# (linear two-ended board; one commit path for every play; 28-tile conservation checked after each transition)

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, NamedTuple, Optional, Sequence, Tuple

Tile = Tuple[int, int]
Side = Literal["left", "right"]
Actor = Literal["player", "opponent"]
Status = Literal["player_turn", "opponent_turn", "player_won", "opponent_won", "blocked"]

SIDES: Tuple[Side, Side] = ("left", "right")
TERMINAL_STATUSES: Tuple[Status, ...] = ("player_won", "opponent_won", "blocked")
MAX_PIP = 6
HAND_SIZE = 7

log = logging.getLogger("domino.engine")


# =============================================================================
# Errors
# =============================================================================

class InvalidMove(ValueError):
    """A human action the rules reject. Recoverable: state is left untouched."""

    def __init__(self, reason: str, code: str = "invalid_move"):
        super().__init__(reason)
        self.code = code


class EmptyDraw(ValueError):
    """Draw attempted on an exhausted pile."""

    code = "empty_draw"


class IllegalPlacement(RuntimeError):
    """Orientation requested for a tile that does not match the target end.

    Only reachable when a caller skipped `playable_ends`; this is a bug, not a game event.
    """


class InvariantError(RuntimeError):
    pass


# =============================================================================
# Tiles
# =============================================================================

def now_ts() -> str:
    return datetime.now().isoformat(timespec="seconds")


def norm_tile(a: int, b: int) -> Tile:
    a, b = int(a), int(b)
    if not (0 <= a <= MAX_PIP and 0 <= b <= MAX_PIP):
        raise ValueError(f"Tile out of range: {a}-{b}")
    if a > b:
        a, b = b, a
    return (a, b)


def parse_tile(s: str) -> Tile:
    s = (s or "").strip().replace("[", "").replace("]", "").replace(" ", "")
    s = s.replace("|", "-").replace(",", "-")
    if "-" in s:
        a, b = s.split("-", 1)
        return norm_tile(int(a), int(b))
    if len(s) == 2 and s.isdigit():
        return norm_tile(int(s[0]), int(s[1]))
    raise ValueError(f"Cannot parse tile: {s}")


def tile_str(t: Tile) -> str:
    return f"{t[0]}-{t[1]}"


def tile_is_double(t: Tile) -> bool:
    return t[0] == t[1]


def tile_has(t: Tile, v: int) -> bool:
    return t[0] == v or t[1] == v


def tile_pip_count(t: Tile) -> int:
    return t[0] + t[1]


def other_value(t: Tile, v: int) -> int:
    if t[0] == v:
        return t[1]
    if t[1] == v:
        return t[0]
    raise ValueError(f"{tile_str(t)} does not contain {v}")


def create_set() -> List[Tile]:
    """The 28 unique tiles in canonical order: (0,0), (0,1) ... (6,6)."""
    out: List[Tile] = []
    for i in range(MAX_PIP + 1):
        for j in range(i, MAX_PIP + 1):
            out.append((i, j))
    return out


ALL_TILES: List[Tile] = create_set()
ALL_SET = frozenset(ALL_TILES)


def shuffle(tiles: Sequence[Tile], rng: Optional[random.Random] = None) -> List[Tile]:
    """
    Unbiased Fisher-Yates over a copy of `tiles`.

    `rng` only needs `randrange`; pass a seeded random.Random for reproducible deals.
    """
    rng = rng if rng is not None else random.Random()
    out = list(tiles)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randrange(i + 1)
        out[i], out[j] = out[j], out[i]
    return out


def deal(tiles: Sequence[Tile], hand_size: int = HAND_SIZE) -> Tuple[List[Tile], List[Tile], List[Tile]]:
    """Split a shuffled sequence into (player hand, opponent hand, draw pile)."""
    hand_size = int(hand_size)
    if hand_size <= 0 or 2 * hand_size > len(tiles):
        raise ValueError(f"Cannot deal {hand_size} tiles per side from {len(tiles)}")
    player = list(tiles[:hand_size])
    opponent = list(tiles[hand_size:2 * hand_size])
    pile = list(tiles[2 * hand_size:])
    return player, opponent, pile


# =============================================================================
# Board + matching / orientation
# =============================================================================

class PlayableEnds(NamedTuple):
    left: bool
    right: bool

    def either(self) -> bool:
        return self.left or self.right

    def sides(self) -> List[Side]:
        return [s for s, ok in zip(SIDES, (self.left, self.right)) if ok]

    def to_dict(self) -> Dict[str, bool]:
        return {"left": self.left, "right": self.right}


@dataclass(frozen=True)
class Placement:
    tile: Tile
    side: Side
    left: int
    right: int
    position: int

    def is_double(self) -> bool:
        return tile_is_double(self.tile)

    def inward(self) -> int:
        # face touching the rest of the board
        return self.right if self.side == "left" else self.left

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tile": tile_str(self.tile),
            "side": self.side,
            "left": self.left,
            "right": self.right,
            "position": self.position,
            "is_double": self.is_double(),
        }


@dataclass
class Board:
    """
    Linear domino line. Exposed ends are always the left face of the first
    placement and the right face of the last one.
    """

    placements: List[Placement] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.placements)

    def is_empty(self) -> bool:
        return not self.placements

    @property
    def left_end(self) -> Optional[int]:
        return self.placements[0].left if self.placements else None

    @property
    def right_end(self) -> Optional[int]:
        return self.placements[-1].right if self.placements else None

    def ends(self) -> Tuple[Optional[int], Optional[int]]:
        return (self.left_end, self.right_end)

    def end_for(self, side: Side) -> Optional[int]:
        return self.left_end if side == "left" else self.right_end

    def open_end_values(self) -> List[int]:
        return [v for v in self.ends() if v is not None]

    def tiles(self) -> List[Tile]:
        return [p.tile for p in self.placements]

    def insert(self, placement: Placement) -> None:
        if self.placements:
            target = self.end_for(placement.side)
            if placement.inward() != target:
                raise IllegalPlacement(
                    f"{tile_str(placement.tile)} faces {placement.inward()} inward, {placement.side} end is {target}"
                )
        if placement.side == "left":
            self.placements.insert(0, placement)
        else:
            self.placements.append(placement)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "placements": [p.to_dict() for p in self.placements],
            "ends": {"left": self.left_end, "right": self.right_end},
            "is_empty": self.is_empty(),
        }


def playable_ends(tile: Tile, board: Board) -> PlayableEnds:
    if board.is_empty():
        return PlayableEnds(True, True)
    return PlayableEnds(tile_has(tile, board.left_end), tile_has(tile, board.right_end))


def resolve_orientation(tile: Tile, side: Side, board: Board) -> Placement:
    """
    Orient `tile` for attachment on `side`.

    The face equal to the target end goes inward and the other face becomes the
    new exposed end. An empty board takes the tile as-drawn: (a, b) -> ends (a, b).
    """
    if side not in SIDES:
        raise IllegalPlacement(f"Unknown side: {side!r}")

    if board.is_empty():
        return Placement(tile=tile, side=side, left=tile[0], right=tile[1], position=0)

    end = board.end_for(side)
    try:
        outward = other_value(tile, end)
    except ValueError:
        raise IllegalPlacement(f"{tile_str(tile)} cannot go on {side}({end})") from None

    if side == "left":
        return Placement(tile=tile, side=side, left=outward, right=end, position=board.placements[0].position - 1)
    return Placement(tile=tile, side=side, left=end, right=outward, position=board.placements[-1].position + 1)


# =============================================================================
# Events
# =============================================================================

@dataclass
class GameEvent:
    type: Literal["game_start", "play", "draw", "pass", "game_end"]
    ts: str = field(default_factory=now_ts)
    ply: int = 0
    actor: Optional[Actor] = None
    tile: Optional[str] = None
    side: Optional[Side] = None
    ends: List[int] = field(default_factory=list)
    outcome: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "ts": self.ts,
            "ply": self.ply,
            "actor": self.actor,
            "tile": self.tile,
            "side": self.side,
            "ends": list(self.ends),
            "outcome": self.outcome,
        }


# =============================================================================
# Game state (hands / pile / board store)
# =============================================================================

@dataclass
class GameState:
    """
    Owns the four tile zones. Every zone mutation goes through `commit`, `draw`,
    `record_pass` or `finish` so the conservation invariant is checked in one place.
    """

    player_hand: List[Tile] = field(default_factory=list)
    opponent_hand: List[Tile] = field(default_factory=list)
    draw_pile: List[Tile] = field(default_factory=list)
    board: Board = field(default_factory=Board)
    status: Status = "player_turn"
    events: List[GameEvent] = field(default_factory=list)

    @classmethod
    def deal_new(cls, rng: Optional[random.Random] = None, hand_size: int = HAND_SIZE) -> "GameState":
        player, opponent, pile = deal(shuffle(create_set(), rng), hand_size)
        st = cls(player_hand=player, opponent_hand=opponent, draw_pile=pile)
        st.check_invariants()
        st.events.append(GameEvent(type="game_start", ply=0))
        log.info("new game dealt: %d/%d tiles in hand, %d in pile", len(player), len(opponent), len(pile))
        return st

    def ply(self) -> int:
        return len(self.events)

    def hand(self, actor: Actor) -> List[Tile]:
        if actor == "player":
            return self.player_hand
        if actor == "opponent":
            return self.opponent_hand
        raise ValueError(f"Unknown actor: {actor!r}")

    def is_over(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def playable(self, actor: Actor) -> List[Tuple[Tile, PlayableEnds]]:
        return [(t, playable_ends(t, self.board)) for t in self.hand(actor)]

    def has_playable(self, actor: Actor) -> bool:
        return any(ends.either() for _t, ends in self.playable(actor))

    def must_draw(self) -> bool:
        if self.status != "player_turn":
            return False
        return not self.has_playable("player") and len(self.draw_pile) > 0

    def must_pass(self) -> bool:
        if self.status != "player_turn":
            return False
        return not self.has_playable("player") and not self.draw_pile

    # ---- validation ----

    def validate_play(self, actor: Actor, tile: Tile, side: str) -> None:
        if side not in SIDES:
            raise InvalidMove(f"Side must be left/right, got {side!r}", code="bad_side")
        if tile not in self.hand(actor):
            raise InvalidMove(f"{actor} does not hold {tile_str(tile)}", code="not_in_hand")
        ends = playable_ends(tile, self.board)
        if not getattr(ends, side):
            end = self.board.end_for(side)  # type: ignore[arg-type]
            raise InvalidMove(f"{tile_str(tile)} cannot go on {side}({end})")

    # ---- transitions ----

    def commit(self, actor: Actor, tile: Tile, side: Side) -> Placement:
        hand = self.hand(actor)
        if tile not in hand:
            raise IllegalPlacement(f"{actor} does not hold {tile_str(tile)}")

        # resolve first: a mismatch raises before anything moves
        placement = resolve_orientation(tile, side, self.board)
        self.board.insert(placement)
        hand.remove(tile)

        self.events.append(GameEvent(
            type="play",
            ply=self.ply(),
            actor=actor,
            tile=tile_str(tile),
            side=side,
            ends=self.board.open_end_values(),
        ))
        log.debug("%s played %s on %s -> ends=%s", actor, tile_str(tile), side, self.board.ends())
        self.check_invariants()
        return placement

    def draw(self, actor: Actor) -> Tile:
        if not self.draw_pile:
            raise EmptyDraw("Draw pile is empty")
        tile = self.draw_pile.pop(0)
        self.hand(actor).append(tile)

        self.events.append(GameEvent(
            type="draw",
            ply=self.ply(),
            actor=actor,
            tile=tile_str(tile) if actor == "player" else None,
            ends=self.board.open_end_values(),
        ))
        log.debug("%s drew (pile left=%d)", actor, len(self.draw_pile))
        self.check_invariants()
        return tile

    def record_pass(self, actor: Actor) -> GameEvent:
        ev = GameEvent(type="pass", ply=self.ply(), actor=actor, ends=self.board.open_end_values())
        self.events.append(ev)
        return ev

    def finish(self, outcome: Status) -> GameEvent:
        if outcome not in TERMINAL_STATUSES:
            raise ValueError(f"Not a terminal status: {outcome}")
        if self.is_over():
            raise ValueError(f"Game already finished ({self.status})")
        self.status = outcome
        ev = GameEvent(type="game_end", ply=self.ply(), ends=self.board.open_end_values(), outcome=outcome)
        self.events.append(ev)
        log.info("game over: %s", outcome)
        return ev

    # ---- invariants ----

    def check_invariants(self) -> None:
        zones = list(self.player_hand) + list(self.opponent_hand) + list(self.draw_pile) + self.board.tiles()
        if len(zones) != len(ALL_TILES) or set(zones) != ALL_SET:
            raise InvariantError(
                f"Invariant broken: player({len(self.player_hand)}) + opponent({len(self.opponent_hand)})"
                f" + pile({len(self.draw_pile)}) + board({len(self.board)}) is not the 28-tile set"
            )
        ps = self.board.placements
        for prev, nxt in zip(ps, ps[1:]):
            if prev.right != nxt.left:
                raise InvariantError(f"Board broken between {tile_str(prev.tile)} and {tile_str(nxt.tile)}")

    # ---- serialization ----

    def snapshot(self, include_events: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "status": self.status,
            "player_hand": [tile_str(t) for t in self.player_hand],
            "opponent_hand_size": len(self.opponent_hand),
            "draw_pile_size": len(self.draw_pile),
            "board": self.board.snapshot(),
            "ends": {"left": self.board.left_end, "right": self.board.right_end},
            "playable": {tile_str(t): ends.to_dict() for t, ends in self.playable("player")},
            "must_draw": self.must_draw(),
            "must_pass": self.must_pass(),
        }
        if include_events:
            d["events"] = [e.to_dict() for e in self.events]
        return d
