# FILE: game.py | version: 2026-10-19.v1
# Turn controller: player input -> commit -> automatic opponent turn (draw-and-retry) -> terminal detection.

from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import ai
from engine import (
    HAND_SIZE, EmptyDraw, GameEvent, GameState, InvalidMove, Status, Tile,
    norm_tile, parse_tile,
)

log = logging.getLogger("domino.game")

OutcomeListener = Callable[[Status], None]

SEED_ENV = os.environ.get("DOMINO_SEED", "").strip()
DEFAULT_SEED: Optional[int] = int(SEED_ENV) if SEED_ENV else None
DEFAULT_POLICY = os.environ.get("DOMINO_POLICY", "first").strip() or "first"


@dataclass
class ActionResult:
    ok: bool
    code: str = "ok"
    reason: str = ""
    events: List[GameEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "code": self.code,
            "reason": self.reason,
            "events": [e.to_dict() for e in self.events],
        }


def _coerce_tile(tile: Union[Tile, str]) -> Tile:
    if isinstance(tile, str):
        return parse_tile(tile)
    return norm_tile(tile[0], tile[1])


class DominoGame:
    """
    One human side against the scripted opponent.

    The opponent's turn runs to completion inside the call that handed it the
    turn, so every public method returns with the game parked in `player_turn`
    or in a terminal status.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        policy: Optional[ai.Policy] = None,
        on_game_over: Optional[OutcomeListener] = None,
        hand_size: int = HAND_SIZE,
        state: Optional[GameState] = None,
    ):
        self.rng = rng if rng is not None else random.Random(DEFAULT_SEED)
        self.policy = policy or ai.get_policy(DEFAULT_POLICY)
        self.on_game_over = on_game_over
        self.hand_size = int(hand_size)
        self.state = state if state is not None else GameState.deal_new(self.rng, self.hand_size)

    @property
    def status(self) -> Status:
        return self.state.status

    def snapshot(self, include_events: bool = False) -> Dict[str, Any]:
        return self.state.snapshot(include_events=include_events)

    # ---- presentation-facing actions ----

    def request_new_game(self) -> ActionResult:
        self.state = GameState.deal_new(self.rng, self.hand_size)
        return ActionResult(True, events=list(self.state.events))

    def attempt_play(self, tile: Union[Tile, str], side: str) -> ActionResult:
        st = self.state
        rejected = self._check_turn()
        if rejected is not None:
            return rejected

        try:
            t = _coerce_tile(tile)
        except (ValueError, TypeError, IndexError) as e:
            return self._reject("bad_tile", f"Invalid tile: {e}")

        try:
            st.validate_play("player", t, side)
        except InvalidMove as e:
            return self._reject(e.code, str(e))

        start = st.ply()
        st.commit("player", t, side)  # type: ignore[arg-type]
        if not st.player_hand:
            self._finish("player_won")
        else:
            st.status = "opponent_turn"
            self._run_opponent_turn()
        return ActionResult(True, events=st.events[start:])

    def request_draw(self) -> ActionResult:
        st = self.state
        rejected = self._check_turn()
        if rejected is not None:
            return rejected
        if st.has_playable("player"):
            return self._reject("has_playable_tile", "Draw not allowed: you already have a legal move")

        start = st.ply()
        try:
            st.draw("player")
        except EmptyDraw as e:
            return self._reject(e.code, str(e))
        return ActionResult(True, events=st.events[start:])

    def request_pass(self) -> ActionResult:
        st = self.state
        rejected = self._check_turn()
        if rejected is not None:
            return rejected
        if not st.must_pass():
            return self._reject("pass_not_allowed", "Pass not allowed: you still have a legal move or the pile is not empty")

        start = st.ply()
        st.record_pass("player")
        st.status = "opponent_turn"
        self._run_opponent_turn()
        return ActionResult(True, events=st.events[start:])

    # ---- internals ----

    def _check_turn(self) -> Optional[ActionResult]:
        st = self.state
        if st.is_over():
            return self._reject("game_over", f"Game is over ({st.status}). Start a new game to continue.")
        if st.status != "player_turn":
            return self._reject("not_your_turn", f"Not your turn (status={st.status})")
        return None

    def _reject(self, code: str, reason: str) -> ActionResult:
        log.debug("rejected [%s]: %s", code, reason)
        return ActionResult(False, code=code, reason=reason)

    def _run_opponent_turn(self) -> None:
        st = self.state
        # at most one draw per pile tile, plus the final evaluation
        for _ in range(len(st.draw_pile) + 1):
            move = self.policy(list(st.opponent_hand), st.board)
            if move is not None:
                st.commit("opponent", move.tile, move.side)
                if not st.opponent_hand:
                    self._finish("opponent_won")
                else:
                    st.status = "player_turn"
                return
            try:
                st.draw("opponent")
            except EmptyDraw:
                break

        st.record_pass("opponent")
        self._finish("blocked")

    def _finish(self, outcome: Status) -> None:
        self.state.finish(outcome)
        if self.on_game_over is not None:
            self.on_game_over(outcome)
