from __future__ import annotations

import argparse
import random
import time
from typing import Callable, Dict, List, Optional

import requests


class GameClient:
    """Thin JSON client for the memory-match server."""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, **kwargs) -> Dict:
        r = getattr(self.session, method)(f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        r.raise_for_status()
        return r.json()

    def new_game(self, difficulty: Optional[str] = None, seed: Optional[int] = None) -> Dict:
        body = {}
        if difficulty is not None:
            body["difficulty"] = difficulty
        if seed is not None:
            body["seed"] = seed
        return self._call("post", "/games", json=body)

    def state(self, game_id: str) -> Dict:
        return self._call("get", f"/games/{game_id}")["state"]

    def flip(self, game_id: str, card: int) -> Dict:
        return self._call("post", f"/games/{game_id}/flip", json={"card": card})

    def reset(self, game_id: str) -> Dict:
        return self._call("post", f"/games/{game_id}/reset", json={})

    def events(self, game_id: str, since: int = 0) -> List[Dict]:
        return self._call("get", f"/games/{game_id}/events", params={"since": since})["events"]

    def discard(self, game_id: str) -> Dict:
        return self._call("delete", f"/games/{game_id}")


def autoplay(
    client: GameClient,
    game_id: str,
    wait: Callable[[], None],
    rng: Optional[random.Random] = None,
    max_flips: int = 10_000,
) -> Dict:
    """Play a game to completion with perfect memory. `wait` lets the server settle."""
    rng = rng or random.Random()
    seen: Dict[int, str] = {}

    def remember(state: Dict) -> None:
        for card in state["cards"]:
            if card["symbol"] is not None:
                seen[card["id"]] = card["symbol"]

    state = client.state(game_id)
    remember(state)

    for _ in range(max_flips):
        if state["phase"] == "complete":
            break
        if state["phase"] == "resolving":
            wait()
            state = client.state(game_id)
            continue

        hidden = [c["id"] for c in state["cards"] if c["state"] == "hidden"]
        pending = state["pending"]
        target = None
        if pending:
            symbol = seen.get(pending[0])
            if symbol is not None:
                target = next((c for c in hidden if seen.get(c) == symbol), None)
        else:
            by_symbol: Dict[str, List[int]] = {}
            for c in hidden:
                if c in seen:
                    by_symbol.setdefault(seen[c], []).append(c)
            target = next((ids[0] for ids in by_symbol.values() if len(ids) == 2), None)
        if target is None:
            unknown = [c for c in hidden if c not in seen]
            target = rng.choice(unknown or hidden)

        reply = client.flip(game_id, target)
        state = reply["state"]
        remember(state)
    return state


def main() -> None:
    ap = argparse.ArgumentParser(description="Play a memory-match game against a running server")
    ap.add_argument("--url", default="http://127.0.0.1:5000")
    ap.add_argument("--difficulty", default="medium")
    ap.add_argument("--seed", type=int)
    ap.add_argument("--poll", type=float, default=0.2, help="seconds between polls while a pair settles")
    a = ap.parse_args()

    client = GameClient(a.url)
    game = client.new_game(a.difficulty, a.seed)
    game_id = game["game_id"]
    print(f"Game {game_id}: {game['state']['pairs_total']} pairs")

    final = autoplay(client, game_id, wait=lambda: time.sleep(a.poll))
    result = final["result"]
    print(f"Done: {result['moves']} moves, {result['elapsed_seconds']}s, {result['label']}")
    client.discard(game_id)


if __name__ == "__main__":
    main()
