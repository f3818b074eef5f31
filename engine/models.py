from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class TableStatus(str, Enum):
    WAITING = "waiting"
    PLAYING = "playing"
    FINISHED = "finished"


class Street(str, Enum):
    PRE_FLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"
    SETTLED = "settled"


class SeatStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FOLDED = "folded"
    ALL_IN = "allin"


class ActionType(str, Enum):
    FOLD = "FOLD"
    CHECK = "CHECK"
    CALL = "CALL"
    RAISE = "RAISE"


@dataclass
class EngineConfig:
    starting_balance: int = 1_000
    recent_table_limit: int = 20
    min_players: int = 2
    max_players: int = 6
    conflict_retries: int = 2


@dataclass
class PlayerProfile:
    identity: str
    alias: str
    balance: int
    games_played: int = 0
    games_won: int = 0
    created_at: int = 0


@dataclass
class Seat:
    identity: str
    seat_index: int
    hole_cards: List[str] = field(default_factory=list)
    bet: int = 0
    committed: int = 0
    status: SeatStatus = SeatStatus.WAITING
    ready: bool = False
    has_acted: bool = False

    @property
    def is_active(self) -> bool:
        return self.status == SeatStatus.ACTIVE

    def reset_for_hand(self) -> None:
        self.hole_cards.clear()
        self.bet = 0
        self.committed = 0
        self.status = SeatStatus.ACTIVE
        self.has_acted = False

    def reset_for_round(self) -> None:
        self.committed = 0
        self.has_acted = False


@dataclass
class Table:
    # One consistency boundary: the table and all of its seats are read and
    # written together.
    table_id: str
    name: str
    host: str
    max_players: int
    min_bet: int
    status: TableStatus = TableStatus.WAITING
    pot: int = 0
    current_bet: int = 0
    current_player_index: int = 0
    dealer_index: int = 0
    community: List[str] = field(default_factory=list)
    deck: List[str] = field(default_factory=list)
    street: Street = Street.PRE_FLOP
    created_at: int = 0
    last_action: int = 0
    seats: List[Seat] = field(default_factory=list)
    next_seat_index: int = 0
    winners: List[int] = field(default_factory=list)
    payouts: Dict[str, int] = field(default_factory=dict)

    def ordered_seats(self) -> List[Seat]:
        return sorted(self.seats, key=lambda seat: seat.seat_index)

    def seat_for(self, identity: str) -> Optional[Seat]:
        for seat in self.seats:
            if seat.identity == identity:
                return seat
        return None

    def active_seats(self) -> List[Seat]:
        return [seat for seat in self.ordered_seats() if seat.is_active]

    def current_seat(self) -> Optional[Seat]:
        if self.status != TableStatus.PLAYING:
            return None
        ordered = self.ordered_seats()
        if not 0 <= self.current_player_index < len(ordered):
            return None
        return ordered[self.current_player_index]
