from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .errors import DeckExhausted

RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
SUITS = ("hearts", "diamonds", "clubs", "spades")

_SYSTEM_RNG = random.SystemRandom()


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def token(self) -> str:
        return f"{self.rank}_{self.suit}"


def parse_token(token: str) -> Card:
    rank, sep, suit = token.partition("_")
    if not sep:
        raise ValueError(f"Invalid card token: {token}")
    return Card(rank, suit)


def ordered_deck() -> List[str]:
    return [Card(rank, suit).token for suit in SUITS for rank in RANKS]


def new_shuffled_deck(rng: Optional[random.Random] = None) -> List[str]:
    """Return a fresh 52-card deck in uniformly random order (Fisher-Yates)."""
    rng = rng or _SYSTEM_RNG
    deck = ordered_deck()
    for i in range(len(deck) - 1, 0, -1):
        j = rng.randint(0, i)
        deck[i], deck[j] = deck[j], deck[i]
    return deck


# The top of the deck is the end of the list.


def draw(deck: List[str]) -> Tuple[str, List[str]]:
    if not deck:
        raise DeckExhausted()
    remaining = list(deck)
    card = remaining.pop()
    return card, remaining


def burn(deck: List[str]) -> List[str]:
    _, remaining = draw(deck)
    return remaining


def draw_many(deck: List[str], count: int) -> Tuple[List[str], List[str]]:
    if len(deck) < count:
        raise DeckExhausted()
    cards: List[str] = []
    for _ in range(count):
        card, deck = draw(deck)
        cards.append(card)
    return cards, deck
