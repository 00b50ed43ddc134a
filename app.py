# FILE: app.py | version: 2026-10-19.v1
# (JSON adapter for a presentation layer; no game logic here, every route delegates to game.DominoGame)

from __future__ import annotations

import logging
import os
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request

from game import ActionResult, DominoGame
from storage import ScoreTally, export_log_text

app = Flask(__name__)
log = logging.getLogger("domino.app")

SESSION_MAX = int(os.environ.get("DOMINO_SESSION_MAX", "200"))
SESSION_TTL = int(os.environ.get("DOMINO_SESSION_TTL", str(6 * 3600)))
LOG_LEVEL = os.environ.get("DOMINO_LOG_LEVEL", "INFO").strip().upper() or "INFO"


@dataclass
class Session:
    tally: ScoreTally = field(default_factory=ScoreTally)
    game: Optional[DominoGame] = None

    def new_game(self) -> DominoGame:
        if self.game is None:
            self.game = DominoGame(on_game_over=self.tally.record)
        else:
            self.game.request_new_game()
        return self.game


# =============================================================================
# Sessions (LRU + TTL) + per-session locks
# =============================================================================

class SessionStore:
    """Thread-safe session store with TTL+LRU and per-session locks."""

    def __init__(self, max_size: int = 200, ttl_seconds: int = 6 * 3600):
        self.max_size = int(max_size)
        self.ttl_seconds = int(ttl_seconds)
        self._lock = threading.Lock()
        self._data: "OrderedDict[str, Session]" = OrderedDict()
        self._ts: Dict[str, float] = {}
        self._locks: Dict[str, threading.Lock] = {}

    def _drop(self, key: str) -> None:
        self._data.pop(key, None)
        self._ts.pop(key, None)
        self._locks.pop(key, None)

    def lock_for(self, key: str) -> threading.Lock:
        with self._lock:
            return self._locks.setdefault(key, threading.Lock())

    def get(self, key: str) -> Optional[Session]:
        now = time.time()
        with self._lock:
            sess = self._data.get(key)
            if sess is None:
                return None
            if now - self._ts.get(key, 0.0) > self.ttl_seconds:
                self._drop(key)
                return None
            self._data.move_to_end(key)
            self._ts[key] = now
            return sess

    def get_or_create(self, key: str) -> Session:
        sess = self.get(key)
        if sess is not None:
            return sess
        now = time.time()
        with self._lock:
            while len(self._data) >= self.max_size:
                oldest_key, _ = self._data.popitem(last=False)
                self._ts.pop(oldest_key, None)
                self._locks.pop(oldest_key, None)
            sess = self._data.setdefault(key, Session())
            self._ts[key] = now
            self._locks.setdefault(key, threading.Lock())
            return sess

    def cleanup(self) -> int:
        now = time.time()
        with self._lock:
            stale = [k for k in self._data if now - self._ts.get(k, 0.0) > self.ttl_seconds]
            for k in stale:
                self._drop(k)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


SESSIONS = SessionStore(max_size=SESSION_MAX, ttl_seconds=SESSION_TTL)
SESSION_CLEANUP_INTERVAL = 900
_LAST_SESSION_CLEANUP = time.time()


def cleanup_old_sessions() -> None:
    global _LAST_SESSION_CLEANUP
    now = time.time()
    if now - _LAST_SESSION_CLEANUP < SESSION_CLEANUP_INTERVAL:
        return
    removed = SESSIONS.cleanup()
    if removed:
        log.info("expired %d idle sessions", removed)
    _LAST_SESSION_CLEANUP = now


# =============================================================================
# Helpers
# =============================================================================

def ok(payload: Dict[str, Any] | None = None):
    return jsonify({"ok": True, **(payload or {})})


def err(msg: str, code: int = 400, **extra: Any):
    return jsonify({"ok": False, "error": msg, **extra}), code


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def sid() -> str:
    return str(json_body().get("session_id") or request.args.get("session_id") or "default")


def _state_payload(session_id: str, sess: Session) -> Dict[str, Any]:
    return {
        "session_id": session_id,
        "state": sess.game.snapshot(),  # type: ignore[union-attr]
        "score": sess.tally.to_dict(),
    }


def _result_response(session_id: str, sess: Session, res: ActionResult):
    if not res.ok:
        log.warning("session=%s rejected %s: %s", session_id, res.code, res.reason)
        return err(res.reason, 400, rejected=res.code, **_state_payload(session_id, sess))
    return ok({"result": res.to_dict(), **_state_payload(session_id, sess)})


def _active(session_id: str) -> Optional[Session]:
    sess = SESSIONS.get(session_id)
    if sess is None or sess.game is None:
        return None
    return sess


# =============================================================================
# Routes
# =============================================================================

@app.post("/api/new_game")
def api_new_game():
    session_id = sid()
    sess = SESSIONS.get_or_create(session_id)
    with SESSIONS.lock_for(session_id):
        sess.new_game()
        return ok(_state_payload(session_id, sess))


@app.get("/api/state")
def api_state():
    session_id = sid()
    sess = _active(session_id)
    if sess is None:
        return err("no active session", 404)
    with SESSIONS.lock_for(session_id):
        return ok(_state_payload(session_id, sess))


@app.post("/api/play")
def api_play():
    data = json_body()
    session_id = sid()
    sess = _active(session_id)
    if sess is None:
        return err("no active session", 404)

    tile = str(data.get("tile", "") or "")
    side = str(data.get("side", "") or "")
    if not tile:
        return err("tile required, e.g. '3-5'")

    with SESSIONS.lock_for(session_id):
        res = sess.game.attempt_play(tile, side)  # type: ignore[union-attr]
        return _result_response(session_id, sess, res)


@app.post("/api/draw")
def api_draw():
    session_id = sid()
    sess = _active(session_id)
    if sess is None:
        return err("no active session", 404)
    with SESSIONS.lock_for(session_id):
        res = sess.game.request_draw()  # type: ignore[union-attr]
        return _result_response(session_id, sess, res)


@app.post("/api/pass")
def api_pass():
    session_id = sid()
    sess = _active(session_id)
    if sess is None:
        return err("no active session", 404)
    with SESSIONS.lock_for(session_id):
        res = sess.game.request_pass()  # type: ignore[union-attr]
        return _result_response(session_id, sess, res)


@app.get("/api/score")
def api_score():
    session_id = sid()
    sess = SESSIONS.get(session_id)
    if sess is None:
        return err("no active session", 404)
    return ok({"session_id": session_id, "score": sess.tally.to_dict()})


@app.get("/api/export_log")
def api_export_log():
    session_id = sid()
    sess = _active(session_id)
    if sess is None:
        return err("no active session", 404)
    with SESSIONS.lock_for(session_id):
        text = export_log_text(sess.game.state)  # type: ignore[union-attr]
    return app.response_class(text, mimetype="text/plain; charset=utf-8")


@app.before_request
def before_request():
    cleanup_old_sessions()


if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", "5000"))
    app.run(host="127.0.0.1", port=port, debug=False, threaded=True)
