from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence

from .randomness import RandomSource, sample, shuffle


class CardState(Enum):
    HIDDEN = "hidden"
    REVEALED = "revealed"
    MATCHED = "matched"


@dataclass(frozen=True)
class Card:
    id: int
    symbol: str
    state: CardState = CardState.HIDDEN


@dataclass(frozen=True)
class CardView:
    """What the presentation layer may see. symbol is None while hidden."""

    id: int
    state: CardState
    symbol: Optional[str] = None

    @classmethod
    def of(cls, card: Card) -> "CardView":
        symbol = None if card.state is CardState.HIDDEN else card.symbol
        return cls(id=card.id, state=card.state, symbol=symbol)

    def to_dict(self) -> Dict:
        return {"id": self.id, "state": self.state.value, "symbol": self.symbol}


class Board:
    """
    Mutable Board ADT.

    Rep:
      - cards[i].id == i for every position
      - every symbol occurs exactly twice
      - state changes only through flip_up / flip_down / mark_matched
    Safety:
      - not synchronised; the owning engine serialises access
    """

    def __init__(self, symbols: Sequence[str]):
        if len(symbols) == 0 or len(symbols) % 2 != 0:
            raise ValueError("a board needs a positive, even number of cards")
        self._cards: List[Card] = [Card(id=i, symbol=s) for i, s in enumerate(symbols)]
        self._check_rep()

    @classmethod
    def deal(cls, alphabet: Sequence[str], pairs: int, source: RandomSource) -> "Board":
        """Pick `pairs` distinct symbols, double them and shuffle the deck."""
        chosen = sample(alphabet, pairs, source)
        deck = chosen + chosen
        shuffle(deck, source)
        return cls(deck)

    def _check_rep(self) -> None:
        for i, card in enumerate(self._cards):
            assert card.id == i
            assert isinstance(card.symbol, str)
        for symbol, n in Counter(c.symbol for c in self._cards).items():
            assert n == 2, f"symbol {symbol!r} occurs {n} times"

    def __len__(self) -> int:
        return len(self._cards)

    def contains(self, card_id: int) -> bool:
        return isinstance(card_id, int) and not isinstance(card_id, bool) and 0 <= card_id < len(self._cards)

    def peek(self, card_id: int) -> Card:
        self._validate_id(card_id)
        return self._cards[card_id]

    def cards(self) -> List[Card]:
        return list(self._cards)

    def views(self) -> List[CardView]:
        return [CardView.of(c) for c in self._cards]

    def count(self, state: CardState) -> int:
        return sum(1 for c in self._cards if c.state is state)

    def flip_up(self, card_id: int) -> str:
        """Reveal a hidden card and return its symbol."""
        self._validate_id(card_id)
        card = self._cards[card_id]
        if card.state is CardState.MATCHED:
            raise ValueError("cannot flip a matched card")
        if card.state is CardState.REVEALED:
            raise ValueError("already face up")
        self._cards[card_id] = Card(id=card_id, symbol=card.symbol, state=CardState.REVEALED)
        return card.symbol

    def flip_down(self, card_id: int) -> None:
        self._validate_id(card_id)
        card = self._cards[card_id]
        if card.state is CardState.MATCHED:
            raise ValueError("cannot flip down a matched card")
        if card.state is CardState.HIDDEN:
            return
        self._cards[card_id] = Card(id=card_id, symbol=card.symbol, state=CardState.HIDDEN)

    def mark_matched(self, id1: int, id2: int) -> None:
        """Mark two revealed cards with the same symbol as permanently matched."""
        self._validate_id(id1)
        self._validate_id(id2)
        if id1 == id2:
            raise ValueError("a card cannot match itself")
        c1 = self._cards[id1]
        c2 = self._cards[id2]
        if c1.state is not CardState.REVEALED or c2.state is not CardState.REVEALED:
            raise ValueError("both must be face up to match")
        if c1.symbol != c2.symbol:
            raise ValueError("symbols do not match")

        self._cards[id1] = Card(id=id1, symbol=c1.symbol, state=CardState.MATCHED)
        self._cards[id2] = Card(id=id2, symbol=c2.symbol, state=CardState.MATCHED)

    def _validate_id(self, card_id: int) -> None:
        if not self.contains(card_id):
            raise ValueError("invalid card id")
