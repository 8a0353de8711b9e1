# Concurrent simulation: several simulated players, each on its own engine.
# Uses a ManualClock per game so settle delays and the timer run in virtual time.

from __future__ import annotations

import argparse
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from .board import CardState
from .clock import ManualClock
from .engine import FlipStatus, GameConfig, GameEngine, GameResult, Phase, Renderer
from .randomness import SeededRandom


@dataclass
class Stats:
    total_flips: int = 0
    accepted_flips: int = 0
    locked_flips: int = 0
    moves: int = 0
    elapsed_seconds: int = 0
    result: Optional[GameResult] = None


class PlayerMemory(Renderer):
    """What a player remembers from the cards they have seen face up."""

    def __init__(self, recall: float, rng: random.Random):
        self.recall = recall
        self._rng = rng
        self.seen: Dict[int, str] = {}

    def on_reveal(self, card_id: int, symbol: str) -> None:
        if self._rng.random() < self.recall:
            self.seen[card_id] = symbol

    def on_matched(self, card_id: int) -> None:
        self.seen.pop(card_id, None)

    def known_pair(self, hidden: List[int]) -> Optional[List[int]]:
        by_symbol: Dict[str, List[int]] = {}
        for card_id in hidden:
            if card_id in self.seen:
                by_symbol.setdefault(self.seen[card_id], []).append(card_id)
        for ids in by_symbol.values():
            if len(ids) == 2:
                return ids
        return None

    def partner_of(self, card_id: int, symbol: str, hidden: List[int]) -> Optional[int]:
        for other in hidden:
            if other != card_id and self.seen.get(other) == symbol:
                return other
        return None


class SimulatedPlayer:
    def __init__(
        self,
        config: GameConfig,
        seed: int,
        recall: float = 0.8,
        impatience: float = 0.1,
        think_ms: float = 700.0,
    ):
        self.rng = random.Random(seed)
        self.clock = ManualClock()
        self.memory = PlayerMemory(recall, self.rng)
        self.engine = GameEngine(self.clock, self.memory)
        self.engine.start_session(config, SeededRandom(seed))
        self.config = config
        self.impatience = impatience
        self.think_ms = think_ms
        self.stats = Stats()

    def hidden_cards(self) -> List[int]:
        session = self.engine.session
        return [c.id for c in session.board.cards() if c.state is CardState.HIDDEN]

    def flip(self, card_id: int) -> FlipStatus:
        status = self.engine.flip(card_id)
        self.stats.total_flips += 1
        if status is FlipStatus.ACCEPTED:
            self.stats.accepted_flips += 1
        elif status is FlipStatus.LOCKED:
            self.stats.locked_flips += 1
        return status

    def _unknown(self, hidden: List[int], exclude: int = -1) -> int:
        unknown = [c for c in hidden if c not in self.memory.seen and c != exclude]
        pool = unknown or [c for c in hidden if c != exclude]
        return self.rng.choice(pool)

    def take_turn(self) -> None:
        """Flip two cards, then wait out the settle delays."""
        hidden = self.hidden_cards()
        pair = self.memory.known_pair(hidden)
        if pair is not None:
            first, second = pair
            self.flip(first)
        else:
            first = self._unknown(hidden)
            self.flip(first)
            symbol = self.engine.session.board.peek(first).symbol
            second = self.memory.partner_of(first, symbol, hidden)
            if second is None:
                second = self._unknown(hidden, exclude=first)
        self.clock.advance(self.rng.uniform(0, self.think_ms))
        self.flip(second)

        still_hidden = self.hidden_cards()
        if still_hidden and self.rng.random() < self.impatience:
            # clicking while the pair is still on screen
            self.flip(self._unknown(still_hidden))

        settle = self.config.match_settle_ms + self.config.mismatch_cue_ms + self.config.mismatch_hide_ms
        self.clock.advance(settle)
        self.clock.advance(self.rng.uniform(0, self.think_ms))

    def finished(self) -> bool:
        return self.engine.phase is Phase.COMPLETE

    def summary(self) -> Stats:
        session = self.engine.session
        self.stats.moves = session.moves
        self.stats.elapsed_seconds = session.elapsed_seconds
        self.stats.result = session.result
        return self.stats


def play_game(config: GameConfig, seed: int = 0, recall: float = 0.8, max_turns: int = 10_000) -> Stats:
    player = SimulatedPlayer(config, seed, recall=recall)
    for _ in range(max_turns):
        if player.finished():
            break
        player.take_turn()
    return player.summary()


# ----- concurrent run -----

async def simulation_main(players: int = 4, difficulty: str = "medium", seed: int = 0, recall: float = 0.8) -> List[Stats]:
    print("MEMORY MATCH - CONCURRENT SIMULATION")
    config = GameConfig.for_difficulty(difficulty)
    print(f"\n{players} players, {difficulty} ({config.pairs} pairs), recall {recall:.0%}\n")

    colors = ["\x1b[31m", "\x1b[32m", "\x1b[33m", "\x1b[34m"]  # red/green/yellow/blue
    reset = "\x1b[0m"

    async def player(player_number: int) -> Stats:
        color = colors[player_number % len(colors)]
        name = f"player{player_number}"
        sim = SimulatedPlayer(config, seed + player_number, recall=recall)
        print(f"{color}[{name}] Starting...{reset}")

        turn = 0
        while not sim.finished():
            turn += 1
            before = sim.engine.session.pairs_matched
            sim.take_turn()
            if sim.engine.session.pairs_matched > before:
                print(f"{color}[{name}] Turn {turn}: MATCH ({sim.engine.session.pairs_matched}/{config.pairs}){reset}")
            # let the other players run
            await asyncio.sleep(0)

        stats = sim.summary()
        print(f"{color}[{name}] Finished in {stats.moves} moves, {stats.elapsed_seconds}s, {stats.result.rating.label}{reset}")
        return stats

    results = await asyncio.gather(*(player(i) for i in range(players)))

    print("\nSIMULATION COMPLETE")
    print(f"Total flips attempted: {sum(s.total_flips for s in results)}")
    print(f"Flips rejected while resolving: {sum(s.locked_flips for s in results)}")
    print(f"Average moves: {sum(s.moves for s in results) / len(results):.1f}")
    return list(results)


def main() -> None:
    ap = argparse.ArgumentParser(description="Simulate memory-match players")
    ap.add_argument("--players", type=int, default=4)
    ap.add_argument("--difficulty", default="medium")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--recall", type=float, default=0.8)
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args()
    logging.basicConfig(level=logging.DEBUG if a.verbose else logging.WARNING)
    asyncio.run(simulation_main(a.players, a.difficulty, a.seed, a.recall))


if __name__ == "__main__":
    main()
