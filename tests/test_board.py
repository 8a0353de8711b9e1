import itertools
from collections import Counter

import pytest

from memory_match.board import Board, CardState, CardView
from memory_match.randomness import SeededRandom, sample, shuffle


def test_flip_and_match():
    b = Board(["A", "A", "B", "B"])

    v1 = b.flip_up(0)
    v2 = b.flip_up(1)
    assert v1 == "A" and v2 == "A"

    b.mark_matched(0, 1)
    assert b.peek(0).state is CardState.MATCHED
    assert b.peek(1).state is CardState.MATCHED
    assert b.count(CardState.MATCHED) == 2


def test_cannot_flip_matched():
    b = Board(["X", "X"])
    b.flip_up(0)
    b.flip_up(1)
    b.mark_matched(0, 1)
    with pytest.raises(ValueError):
        b.flip_up(0)
    with pytest.raises(ValueError):
        b.flip_down(0)


def test_cannot_flip_revealed_twice():
    b = Board(["X", "X"])
    b.flip_up(0)
    with pytest.raises(ValueError):
        b.flip_up(0)


def test_mark_matched_needs_equal_revealed_symbols():
    b = Board(["A", "B", "A", "B"])
    b.flip_up(0)
    b.flip_up(1)
    with pytest.raises(ValueError):
        b.mark_matched(0, 1)
    with pytest.raises(ValueError):
        b.mark_matched(0, 2)


def test_invalid_ids():
    b = Board(["A", "A"])
    assert not b.contains(2)
    assert not b.contains(-1)
    assert not b.contains(True)
    with pytest.raises(ValueError):
        b.peek(5)


def test_rep_rejects_unpaired_symbols():
    with pytest.raises(AssertionError):
        Board(["A", "A", "A", "B"])
    with pytest.raises(ValueError):
        Board(["A"])


def test_views_hide_symbols_of_hidden_cards():
    b = Board(["A", "B", "A", "B"])
    b.flip_up(2)
    views = b.views()
    assert views[0] == CardView(id=0, state=CardState.HIDDEN, symbol=None)
    assert views[2].symbol == "A"
    assert all(v.symbol is None for v in views if v.state is CardState.HIDDEN)


def test_deal_uses_each_chosen_symbol_exactly_twice():
    alphabet = [chr(ord("a") + i) for i in range(20)]
    for seed in range(25):
        b = Board.deal(alphabet, 7, SeededRandom(seed))
        counts = Counter(c.symbol for c in b.cards())
        assert len(b) == 14
        assert len(counts) == 7
        assert set(counts.values()) == {2}
        assert [c.id for c in b.cards()] == list(range(14))


def test_sample_is_distinct():
    picked = sample(list("abcdef"), 6, SeededRandom(3))
    assert sorted(picked) == list("abcdef")
    with pytest.raises(ValueError):
        sample(list("abc"), 4, SeededRandom(3))


def test_shuffle_permutations_are_uniform():
    trials = 6000
    source = SeededRandom(12345)
    counts = Counter()
    for _ in range(trials):
        items = [0, 1, 2]
        shuffle(items, source)
        counts[tuple(items)] += 1

    assert set(counts) == set(itertools.permutations([0, 1, 2]))
    expected = trials / 6
    for n in counts.values():
        assert abs(n - expected) < 0.15 * expected


def test_deal_positions_are_uniform():
    # every position should hold each symbol about half of the time
    trials = 4000
    source = SeededRandom(777)
    a_at = Counter()
    for _ in range(trials):
        b = Board.deal(["A", "B"], 2, source)
        for c in b.cards():
            if c.symbol == "A":
                a_at[c.id] += 1
    for position in range(4):
        assert abs(a_at[position] - trials / 2) < 0.08 * trials


class _Stuck:
    def uniform(self):
        return 0.9999999999


def test_shuffle_with_high_draws_is_identity():
    items = list("abcd")
    shuffle(items, _Stuck())
    assert items == list("abcd")
