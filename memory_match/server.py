from __future__ import annotations

import logging
import time
import uuid
from threading import RLock
from typing import Callable, Dict, Optional

from flask import Flask, jsonify, request

from . import commands
from .clock import Clock, ThreadingClock
from .config import DIFFICULTIES, get_config

logger = logging.getLogger(__name__)


class UnknownGame(Exception):
    pass


class GameRegistry:
    """
    Live games of one app, keyed by id.

    A game nobody has looked up for idle_ttl_s seconds is closed and dropped,
    which stops its tick timer.
    """

    def __init__(
        self,
        clock_factory: Callable[[], Clock],
        idle_ttl_s: float,
        now: Callable[[], float] = time.monotonic,
    ):
        self._clock_factory = clock_factory
        self._idle_ttl_s = idle_ttl_s
        self._now = now
        self._games: Dict[str, commands.GameHandle] = {}
        self._last_seen: Dict[str, float] = {}
        self._lock = RLock()

    def create(self, difficulty: Optional[str], pairs: Optional[int], seed: Optional[int]):
        self.evict_idle()
        handle = commands.new_game(self._clock_factory(), difficulty=difficulty, pairs=pairs, seed=seed)
        game_id = uuid.uuid4().hex
        with self._lock:
            self._games[game_id] = handle
            self._last_seen[game_id] = self._now()
        return game_id, handle

    def get(self, game_id: str) -> Optional[commands.GameHandle]:
        self.evict_idle()
        with self._lock:
            handle = self._games.get(game_id)
            if handle is not None:
                self._last_seen[game_id] = self._now()
            return handle

    def discard(self, game_id: str) -> bool:
        with self._lock:
            handle = self._games.pop(game_id, None)
            self._last_seen.pop(game_id, None)
        if handle is None:
            return False
        handle.engine.close()
        return True

    def evict_idle(self) -> int:
        cutoff = self._now() - self._idle_ttl_s
        with self._lock:
            stale = [gid for gid, seen in self._last_seen.items() if seen < cutoff]
        for game_id in stale:
            if self.discard(game_id):
                logger.info("evicted idle game %s", game_id)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._games)


def _error(message: str, code: int):
    return jsonify({"status": "error", "message": message}), code


def _body() -> Dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    return data


def _optional_str(data: Dict, key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _optional_int(data: Dict, key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return value


def create_app(
    clock_factory: Callable[[], Clock] = ThreadingClock,
    idle_ttl_s: Optional[float] = None,
    now: Callable[[], float] = time.monotonic,
) -> Flask:
    app = Flask(__name__)
    if idle_ttl_s is None:
        idle_ttl_s = get_config().idle_ttl_s
    games = GameRegistry(clock_factory, idle_ttl_s, now)
    app.config["GAMES"] = games

    def lookup(game_id: str) -> commands.GameHandle:
        handle = games.get(game_id)
        if handle is None:
            raise UnknownGame(f"no game {game_id}")
        return handle

    @app.errorhandler(UnknownGame)
    def not_found(e):
        return _error(str(e), 404)

    @app.errorhandler(ValueError)
    def bad_request(e):
        return _error(str(e), 400)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok", "games": len(games)})

    @app.get("/difficulties")
    def difficulties():
        return jsonify({
            "status": "ok",
            "difficulties": [{"name": d.name, "pairs": d.pairs, "columns": d.columns} for d in DIFFICULTIES.values()],
        })

    @app.post("/games")
    def api_new():
        data = _body()
        game_id, handle = games.create(
            difficulty=_optional_str(data, "difficulty"),
            pairs=_optional_int(data, "pairs"),
            seed=_optional_int(data, "seed"),
        )
        logger.info("created game %s (%s)", game_id, handle.difficulty or f"{data.get('pairs')} pairs")
        return jsonify({"status": "ok", "game_id": game_id, "state": commands.look(handle)}), 201

    @app.get("/games/<game_id>")
    def api_look(game_id: str):
        return jsonify({"status": "ok", "state": commands.look(lookup(game_id))})

    @app.post("/games/<game_id>/flip")
    def api_flip(game_id: str):
        handle = lookup(game_id)
        data = _body()
        card = _optional_int(data, "card")
        if card is None:
            raise ValueError("card is required")
        return jsonify(commands.pick(handle, card))

    @app.post("/games/<game_id>/reset")
    def api_reset(game_id: str):
        handle = lookup(game_id)
        data = _body()
        return jsonify(commands.reset(handle, difficulty=_optional_str(data, "difficulty"), seed=_optional_int(data, "seed")))

    @app.get("/games/<game_id>/events")
    def api_events(game_id: str):
        handle = lookup(game_id)
        since = request.args.get("since", default=0, type=int)
        return jsonify(commands.events_since(handle, since))

    @app.delete("/games/<game_id>")
    def api_discard(game_id: str):
        if not games.discard(game_id):
            return _error(f"no game {game_id}", 404)
        return jsonify({"status": "ok"})

    return app


app = create_app()


if __name__ == "__main__":
    cfg = get_config()
    logging.basicConfig(
        level=logging.DEBUG if cfg.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host=cfg.host, port=cfg.port, debug=cfg.debug)
