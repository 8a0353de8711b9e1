"""Game presets and service configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Tuple

MIN_PAIRS = 2

# settle delays (ms) before a resolved pair is finalised
MATCH_SETTLE_MS = 300
MISMATCH_CUE_MS = 800
MISMATCH_HIDE_MS = 500

# notifications kept per game for polling
EVENT_LOG_LIMIT = 500

DEFAULT_SYMBOLS: Tuple[str, ...] = (
    "🎮", "🎯", "🎨", "🎭", "🎪", "🎬",
    "🎵", "🎸", "🎹", "🎺", "🎻", "🥁",
    "⚽", "🏀", "🏈", "🎾", "🏐", "🎱",
    "🌟", "🌙", "☀️", "🌈", "❄️", "🔥",
    "🦋", "🐬", "🦊", "🐼", "🦄", "🐲",
)


@dataclass(frozen=True)
class Difficulty:
    name: str
    pairs: int
    columns: int


DIFFICULTIES: Dict[str, Difficulty] = {
    "easy": Difficulty("easy", pairs=6, columns=4),
    "medium": Difficulty("medium", pairs=8, columns=4),
    "hard": Difficulty("hard", pairs=12, columns=6),
}


@lru_cache
def get_config():
    return type("Config", (), {
        "host": os.environ.get("MEMORY_MATCH_HOST", "127.0.0.1"),
        "port": int(os.environ.get("MEMORY_MATCH_PORT", "5000")),
        "debug": os.environ.get("MEMORY_MATCH_DEBUG", "0").lower() in ("1", "true", "yes"),
        "default_difficulty": os.environ.get("MEMORY_MATCH_DIFFICULTY", "medium"),
        "idle_ttl_s": float(os.environ.get("MEMORY_MATCH_IDLE_TTL", "1800")),
    })()
