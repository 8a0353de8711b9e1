"""Memory-matching game: headless engine plus a small JSON service."""

from .board import Board, Card, CardState, CardView
from .clock import ManualClock, ThreadingClock
from .engine import (
    ConfigError,
    FlipStatus,
    GameConfig,
    GameEngine,
    GameResult,
    Phase,
    Rating,
    Renderer,
    rate,
)
from .randomness import SeededRandom

__all__ = [
    "Board",
    "Card",
    "CardState",
    "CardView",
    "ConfigError",
    "FlipStatus",
    "GameConfig",
    "GameEngine",
    "GameResult",
    "ManualClock",
    "Phase",
    "Rating",
    "Renderer",
    "SeededRandom",
    "ThreadingClock",
    "rate",
]
