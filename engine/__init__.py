"""Table-poker rules: deck, seating, betting, streets and settlement.

Everything here works on plain dataclasses; storage, identity and transport
live in the ``tables`` and ``host`` packages.
"""

from .cards import Card, RANKS, SUITS, burn, draw, new_shuffled_deck, parse_token
from .models import (
    ActionType,
    EngineConfig,
    PlayerProfile,
    Seat,
    SeatStatus,
    Street,
    Table,
    TableStatus,
)
from .settlement import Settlement
from .showdown import STRATEGIES, WinnerStrategy, best_hand, split_among_active

__all__ = [
    "Card",
    "RANKS",
    "SUITS",
    "burn",
    "draw",
    "new_shuffled_deck",
    "parse_token",
    "ActionType",
    "EngineConfig",
    "PlayerProfile",
    "Seat",
    "SeatStatus",
    "Street",
    "Table",
    "TableStatus",
    "Settlement",
    "STRATEGIES",
    "WinnerStrategy",
    "best_hand",
    "split_among_active",
]
