from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List

from engine import GameState, Status


@dataclass
class ScoreTally:
    """
    Cumulative results across games. Survives `request_new_game`; tile state does not.
    Pass an instance as `on_game_over` to DominoGame.
    """

    player_wins: int = 0
    opponent_wins: int = 0
    blocked: int = 0

    def record(self, outcome: Status) -> None:
        if outcome == "player_won":
            self.player_wins += 1
        elif outcome == "opponent_won":
            self.opponent_wins += 1
        elif outcome == "blocked":
            self.blocked += 1
        else:
            raise ValueError(f"Not a terminal outcome: {outcome}")

    __call__ = record

    def games(self) -> int:
        return self.player_wins + self.opponent_wins + self.blocked

    def to_dict(self) -> Dict[str, Any]:
        return {
            "player_wins": self.player_wins,
            "opponent_wins": self.opponent_wins,
            "blocked": self.blocked,
            "games": self.games(),
        }


def export_log_text(state: GameState) -> str:
    d = state.snapshot(include_events=True)
    lines: List[str] = []
    lines.append("=== Domino Log ===")
    lines.append(f"status: {d['status']}")
    lines.append(f"player_hand={len(d['player_hand'])} opponent_hand={d['opponent_hand_size']} pile={d['draw_pile_size']}")
    lines.append(f"ends: {d['ends']}")
    lines.append("")
    lines.append("=== Events ===")
    for i, ev in enumerate(d["events"], start=1):
        lines.append(f"{i:02d}. {ev}")
    lines.append("")
    lines.append("=== Snapshot (JSON) ===")
    lines.append(json.dumps(d, ensure_ascii=False, indent=2))
    return "\n".join(lines)
