from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple

from . import config as presets
from .board import Board, CardState, CardView
from .clock import Clock
from .randomness import RandomSource, SeededRandom

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    pass


class Phase(Enum):
    IDLE = "idle"
    RUNNING = "running"
    RESOLVING = "resolving"
    COMPLETE = "complete"


class FlipStatus(Enum):
    ACCEPTED = "accepted"
    LOCKED = "locked"
    INVALID_CARD = "invalid_card"
    GAME_OVER = "game_over"


class Rating(Enum):
    PERFECT = (3, "Perfect!")
    GREAT = (2, "Great!")
    GOOD = (1, "Good!")
    KEEP_PRACTICING = (0, "Keep Practicing!")

    @property
    def stars(self) -> int:
        return self.value[0]

    @property
    def label(self) -> str:
        return self.value[1]


# (upper bound on moves / optimal moves, tier), checked in order
RATING_THRESHOLDS: Tuple[Tuple[float, Rating], ...] = (
    (1.5, Rating.PERFECT),
    (2.0, Rating.GREAT),
    (2.5, Rating.GOOD),
)


def rate(moves: int, pairs_total: int) -> Rating:
    ratio = moves / (pairs_total * 2)
    for bound, rating in RATING_THRESHOLDS:
        if ratio <= bound:
            return rating
    return Rating.KEEP_PRACTICING


@dataclass(frozen=True)
class GameConfig:
    pairs: int
    alphabet: Tuple[str, ...] = presets.DEFAULT_SYMBOLS
    match_settle_ms: float = presets.MATCH_SETTLE_MS
    mismatch_cue_ms: float = presets.MISMATCH_CUE_MS
    mismatch_hide_ms: float = presets.MISMATCH_HIDE_MS

    @classmethod
    def for_difficulty(cls, name: str, **overrides) -> "GameConfig":
        if not isinstance(name, str):
            raise ConfigError("difficulty must be a string")
        try:
            difficulty = presets.DIFFICULTIES[name]
        except KeyError:
            raise ConfigError(f"unknown difficulty {name!r}") from None
        return cls(pairs=difficulty.pairs, **overrides)

    def symbols(self) -> List[str]:
        """The alphabet with duplicates removed, first occurrence kept."""
        return list(dict.fromkeys(self.alphabet))

    def validate(self) -> None:
        if not isinstance(self.pairs, int) or isinstance(self.pairs, bool):
            raise ConfigError("pairs must be an integer")
        if self.pairs < presets.MIN_PAIRS:
            raise ConfigError(f"pairs must be at least {presets.MIN_PAIRS}")
        if self.pairs > len(self.symbols()):
            raise ConfigError(f"{self.pairs} pairs need at least {self.pairs} distinct symbols")
        for delay in (self.match_settle_ms, self.mismatch_cue_ms, self.mismatch_hide_ms):
            if delay < 0:
                raise ConfigError("settle delays must not be negative")


@dataclass(frozen=True)
class GameResult:
    elapsed_seconds: int
    moves: int
    rating: Rating

    def to_dict(self) -> Dict:
        return {
            "elapsed_seconds": self.elapsed_seconds,
            "moves": self.moves,
            "rating": self.rating.name.lower(),
            "stars": self.rating.stars,
            "label": self.rating.label,
        }


class Renderer:
    """Presentation-side notifications. Every hook defaults to a no-op."""

    def on_layout(self, cards: List[CardView]) -> None:
        pass

    def on_reveal(self, card_id: int, symbol: str) -> None:
        pass

    def on_hide(self, card_id: int) -> None:
        pass

    def on_matched(self, card_id: int) -> None:
        pass

    def on_move_count_changed(self, moves: int) -> None:
        pass

    def on_time_changed(self, seconds: int) -> None:
        pass

    def on_pairs_changed(self, matched: int, total: int) -> None:
        pass

    def on_mismatch(self, card_id1: int, card_id2: int) -> None:
        pass

    def on_complete(self, result: GameResult) -> None:
        pass


@dataclass
class Session:
    board: Board
    pairs_total: int
    generation: int
    pairs_matched: int = 0
    moves: int = 0
    elapsed_seconds: int = 0
    phase: Phase = Phase.IDLE
    pending: List[int] = field(default_factory=list)
    result: Optional[GameResult] = None


class GameEngine:
    """
    Turn-resolution state machine for one player.

        Idle --flip--> Running --2nd flip--> Resolving --settle--> Running | Complete

    Every public method and every deferred callback runs under one RLock, so
    the engine is safe with a clock that fires on other threads. Deferred
    callbacks capture the session generation and do nothing once a newer
    session (or close()) has superseded theirs.
    """

    def __init__(self, clock: Clock, renderer: Optional[Renderer] = None):
        self._clock = clock
        self._renderer = renderer if renderer is not None else Renderer()
        self._lock = RLock()
        self._generation = 0
        self._session: Optional[Session] = None
        self._config: Optional[GameConfig] = None
        self._random: Optional[RandomSource] = None
        self._tick_token: Optional[object] = None
        self._settle_token: Optional[object] = None

    # ----- commands -----

    def start_session(self, config: GameConfig, random_source: Optional[RandomSource] = None) -> None:
        config.validate()
        source = random_source if random_source is not None else SeededRandom()
        with self._lock:
            self._cancel_timers()
            board = Board.deal(config.symbols(), config.pairs, source)
            self._generation += 1
            self._config = config
            self._random = source
            self._session = Session(board=board, pairs_total=config.pairs, generation=self._generation)
            logger.info("session %d started with %d pairs", self._generation, config.pairs)

            self._renderer.on_layout(board.views())
            self._renderer.on_move_count_changed(0)
            self._renderer.on_time_changed(0)
            self._renderer.on_pairs_changed(0, config.pairs)
            self._check_rep()

    def reset(self) -> None:
        with self._lock:
            if self._config is None:
                raise ConfigError("reset() before any session was started")
            self.start_session(self._config, self._random)

    def close(self) -> None:
        """Cancel every timer and drop the session; callbacks already in flight become no-ops."""
        with self._lock:
            self._cancel_timers()
            self._generation += 1
            self._session = None

    def flip(self, card_id: int) -> FlipStatus:
        with self._lock:
            session = self._session
            if session is None:
                return FlipStatus.INVALID_CARD
            if session.phase is Phase.COMPLETE:
                return FlipStatus.GAME_OVER
            if session.phase is Phase.RESOLVING:
                return FlipStatus.LOCKED
            if not session.board.contains(card_id) or session.board.peek(card_id).state is not CardState.HIDDEN:
                return FlipStatus.INVALID_CARD

            if session.phase is Phase.IDLE:
                session.phase = Phase.RUNNING
                self._tick_token = self._clock.every_second(self._deferred(self._tick))

            symbol = session.board.flip_up(card_id)
            session.pending.append(card_id)
            assert len(session.pending) <= 2, "more than two cards pending"
            self._renderer.on_reveal(card_id, symbol)

            if len(session.pending) == 2:
                session.moves += 1
                self._renderer.on_move_count_changed(session.moves)
                session.phase = Phase.RESOLVING
                self._evaluate(session)

            self._check_rep()
            return FlipStatus.ACCEPTED

    # ----- queries -----

    @property
    def phase(self) -> Optional[Phase]:
        with self._lock:
            return self._session.phase if self._session else None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    def snapshot(self) -> Dict:
        with self._lock:
            s = self._session
            if s is None:
                return {"phase": None}
            return {
                "phase": s.phase.value,
                "moves": s.moves,
                "elapsed_seconds": s.elapsed_seconds,
                "pairs_matched": s.pairs_matched,
                "pairs_total": s.pairs_total,
                "pending": list(s.pending),
                "cards": [v.to_dict() for v in s.board.views()],
                "result": s.result.to_dict() if s.result else None,
            }

    # ----- resolution -----

    def _evaluate(self, session: Session) -> None:
        assert self._config is not None
        a, b = session.pending
        if session.board.peek(a).symbol == session.board.peek(b).symbol:
            self._settle_token = self._clock.after(self._config.match_settle_ms, self._deferred(self._settle_match))
        else:
            self._settle_token = self._clock.after(self._config.mismatch_cue_ms, self._deferred(self._cue_mismatch))

    def _settle_match(self, session: Session) -> None:
        assert session.phase is Phase.RESOLVING
        self._settle_token = None
        a, b = session.pending
        session.board.mark_matched(a, b)
        session.pending.clear()
        session.pairs_matched += 1
        self._renderer.on_matched(a)
        self._renderer.on_matched(b)
        self._renderer.on_pairs_changed(session.pairs_matched, session.pairs_total)

        if session.pairs_matched == session.pairs_total:
            session.phase = Phase.COMPLETE
            self._stop_ticking()
            session.result = GameResult(
                elapsed_seconds=session.elapsed_seconds,
                moves=session.moves,
                rating=rate(session.moves, session.pairs_total),
            )
            logger.info("session %d complete in %d moves", session.generation, session.moves)
            self._renderer.on_complete(session.result)
        else:
            session.phase = Phase.RUNNING

    def _cue_mismatch(self, session: Session) -> None:
        assert self._config is not None
        a, b = session.pending
        self._renderer.on_mismatch(a, b)
        self._settle_token = self._clock.after(self._config.mismatch_hide_ms, self._deferred(self._settle_mismatch))

    def _settle_mismatch(self, session: Session) -> None:
        assert session.phase is Phase.RESOLVING
        self._settle_token = None
        a, b = session.pending
        session.board.flip_down(a)
        session.board.flip_down(b)
        session.pending.clear()
        session.phase = Phase.RUNNING
        self._renderer.on_hide(a)
        self._renderer.on_hide(b)

    def _tick(self, session: Session) -> None:
        if session.phase in (Phase.RUNNING, Phase.RESOLVING):
            session.elapsed_seconds += 1
            self._renderer.on_time_changed(session.elapsed_seconds)

    # ----- timers -----

    def _deferred(self, action: Callable[[Session], None]) -> Callable[[], None]:
        generation = self._generation

        def fire() -> None:
            with self._lock:
                session = self._session
                if session is None or generation != self._generation:
                    logger.debug("dropping %s from stale session %d", action.__name__, generation)
                    return
                action(session)
                self._check_rep()

        return fire

    def _stop_ticking(self) -> None:
        if self._tick_token is not None:
            self._clock.cancel(self._tick_token)
            self._tick_token = None

    def _cancel_timers(self) -> None:
        self._stop_ticking()
        if self._settle_token is not None:
            self._clock.cancel(self._settle_token)
            self._settle_token = None

    def _check_rep(self) -> None:
        s = self._session
        if s is None:
            return
        assert len(s.pending) <= 2
        assert 0 <= s.pairs_matched <= s.pairs_total
        assert s.board.count(CardState.MATCHED) == 2 * s.pairs_matched
        assert s.board.count(CardState.REVEALED) == len(s.pending)
        assert (s.phase is Phase.RESOLVING) == (len(s.pending) == 2)
        assert (s.phase is Phase.COMPLETE) == (s.pairs_matched == s.pairs_total)
