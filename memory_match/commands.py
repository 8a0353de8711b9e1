from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional

from . import config as presets
from .board import CardView
from .clock import Clock
from .engine import GameConfig, GameEngine, GameResult, Renderer
from .randomness import SeededRandom


class EventLog(Renderer):
    """Renderer that records notifications for a browser to poll."""

    def __init__(self, limit: int = presets.EVENT_LOG_LIMIT) -> None:
        self._lock = Lock()
        # oldest events fall off; pollers that lag further behind resync via look()
        self._events: deque = deque(maxlen=limit)
        self._seq = 0

    def _record(self, type_: str, **payload) -> None:
        with self._lock:
            self._seq += 1
            self._events.append({"seq": self._seq, "type": type_, **payload})

    def since(self, seq: int) -> List[Dict]:
        with self._lock:
            return [e for e in self._events if e["seq"] > seq]

    @property
    def last_seq(self) -> int:
        with self._lock:
            return self._seq

    def on_layout(self, cards: List[CardView]) -> None:
        self._record("layout", cards=[c.to_dict() for c in cards])

    def on_reveal(self, card_id: int, symbol: str) -> None:
        self._record("reveal", card=card_id, symbol=symbol)

    def on_hide(self, card_id: int) -> None:
        self._record("hide", card=card_id)

    def on_matched(self, card_id: int) -> None:
        self._record("matched", card=card_id)

    def on_move_count_changed(self, moves: int) -> None:
        self._record("moves", moves=moves)

    def on_time_changed(self, seconds: int) -> None:
        self._record("time", seconds=seconds)

    def on_pairs_changed(self, matched: int, total: int) -> None:
        self._record("pairs", matched=matched, total=total)

    def on_mismatch(self, card_id1: int, card_id2: int) -> None:
        self._record("mismatch", cards=[card_id1, card_id2])

    def on_complete(self, result: GameResult) -> None:
        self._record("complete", **result.to_dict())


@dataclass
class GameHandle:
    engine: GameEngine
    events: EventLog
    clock: Clock
    difficulty: Optional[str] = None
    columns: Optional[int] = None


def new_game(
    clock: Clock,
    difficulty: Optional[str] = None,
    pairs: Optional[int] = None,
    seed: Optional[int] = None,
) -> GameHandle:
    """Build an engine for a preset (or an explicit pair count) and start it."""
    if pairs is not None and difficulty is not None:
        raise ValueError("give either difficulty or pairs, not both")
    columns = None
    if pairs is None:
        name = difficulty or presets.get_config().default_difficulty
        config = GameConfig.for_difficulty(name)
        difficulty = name
        columns = presets.DIFFICULTIES[name].columns
    else:
        config = GameConfig(pairs=pairs)

    events = EventLog()
    engine = GameEngine(clock, events)
    engine.start_session(config, SeededRandom(seed))
    return GameHandle(engine=engine, events=events, clock=clock, difficulty=difficulty, columns=columns)


def look(handle: GameHandle) -> Dict:
    state = handle.engine.snapshot()
    state["difficulty"] = handle.difficulty
    state["columns"] = handle.columns
    state["last_event"] = handle.events.last_seq
    return state


def pick(handle: GameHandle, card: int) -> Dict:
    """Flip one card. Rejected flips are reported in "status", not raised."""
    status = handle.engine.flip(card)
    return {"status": status.value, "card": card, "state": look(handle)}


def reset(handle: GameHandle, difficulty: Optional[str] = None, seed: Optional[int] = None) -> Dict:
    """Start over, on the same configuration unless a new difficulty is given."""
    if difficulty is None:
        handle.engine.reset()
    else:
        config = GameConfig.for_difficulty(difficulty)
        handle.engine.start_session(config, SeededRandom(seed))
        handle.difficulty = difficulty
        handle.columns = presets.DIFFICULTIES[difficulty].columns
    return {"status": "ok", "state": look(handle)}


def events_since(handle: GameHandle, seq: int) -> Dict:
    if seq < 0:
        raise ValueError("since must not be negative")
    return {"status": "ok", "events": handle.events.since(seq)}
