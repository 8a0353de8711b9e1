from __future__ import annotations

import random
from typing import List, MutableSequence, Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class RandomSource(Protocol):
    def uniform(self) -> float:
        """Return a float in [0, 1)."""
        ...


class SeededRandom:
    """RandomSource backed by random.Random. seed=None draws from the OS."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def uniform(self) -> float:
        return self._rng.random()


def _index_below(source: RandomSource, n: int) -> int:
    # min() keeps a misbehaving source that returns 1.0 inside the range
    return min(int(source.uniform() * n), n - 1)


def shuffle(items: MutableSequence[T], source: RandomSource) -> None:
    """
    In-place Fisher-Yates shuffle.

    for i = n-1 down to 1: j = floor(u * (i+1)); swap(items[i], items[j])

    Every permutation is equally likely given a uniform source. Consumes
    exactly len(items) - 1 draws.
    """
    for i in range(len(items) - 1, 0, -1):
        j = _index_below(source, i + 1)
        items[i], items[j] = items[j], items[i]


def sample(population: Sequence[T], k: int, source: RandomSource) -> List[T]:
    """
    Choose k distinct elements uniformly (partial Fisher-Yates, front to back).
    Consumes exactly k draws.
    """
    if k > len(population):
        raise ValueError("sample larger than population")
    pool = list(population)
    for i in range(k):
        j = i + _index_below(source, len(pool) - i)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]
