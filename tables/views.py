from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Optional

from engine import betting
from engine.models import PlayerProfile, Table

# Read models handed to callers. They are built field by field from the
# aggregate: there is no deck field, and hole cards are copied only for the
# viewer's own seat.

HIDDEN_CARD = "hidden"
UNKNOWN_ALIAS = "Unknown Pirate"


@dataclass
class SeatView:
    seat_index: int
    identity: str
    alias: str
    balance: int
    status: str
    ready: bool
    bet: int
    committed: int
    hole_cards: List[str]
    is_host: bool
    is_turn: bool


@dataclass
class TableView:
    table_id: str
    name: str
    status: str
    street: str
    host: str
    max_players: int
    min_bet: int
    pot: int
    current_bet: int
    current_player_index: int
    dealer_index: int
    community: List[str]
    created_at: int
    last_action: int
    seats: List[SeatView] = field(default_factory=list)
    winners: List[int] = field(default_factory=list)
    payouts: Dict[str, int] = field(default_factory=dict)
    you: Optional[int] = None
    legal_actions: List[str] = field(default_factory=list)
    to_call: Optional[int] = None

    def as_payload(self) -> Dict[str, object]:
        payload = asdict(self)
        payload["deck"] = []
        return payload


@dataclass
class TableSummary:
    table_id: str
    name: str
    status: str
    host: str
    seats_taken: int
    max_players: int
    min_bet: int
    created_at: int

    def as_payload(self) -> Dict[str, object]:
        return asdict(self)


def table_view(
    table: Table,
    viewer: Optional[str],
    profiles: Mapping[str, Optional[PlayerProfile]],
) -> TableView:
    current = table.current_seat()
    seats: List[SeatView] = []
    for seat in table.ordered_seats():
        profile = profiles.get(seat.identity)
        if seat.identity == viewer:
            cards = list(seat.hole_cards)
        else:
            cards = [HIDDEN_CARD for _ in seat.hole_cards]
        seats.append(
            SeatView(
                seat_index=seat.seat_index,
                identity=seat.identity,
                alias=profile.alias if profile else UNKNOWN_ALIAS,
                balance=profile.balance if profile else 0,
                status=seat.status.value,
                ready=seat.ready,
                bet=seat.bet,
                committed=seat.committed,
                hole_cards=cards,
                is_host=seat.identity == table.host,
                is_turn=current is seat,
            )
        )

    view = TableView(
        table_id=table.table_id,
        name=table.name,
        status=table.status.value,
        street=table.street.value,
        host=table.host,
        max_players=table.max_players,
        min_bet=table.min_bet,
        pot=table.pot,
        current_bet=table.current_bet,
        current_player_index=table.current_player_index,
        dealer_index=table.dealer_index,
        community=list(table.community),
        created_at=table.created_at,
        last_action=table.last_action,
        seats=seats,
        winners=list(table.winners),
        payouts=dict(table.payouts),
    )

    own = table.seat_for(viewer) if viewer else None
    if own is not None:
        view.you = own.seat_index
        if current is own:
            view.legal_actions = [action.value for action in betting.legal_actions(table, own)]
            view.to_call = betting.to_call(table, own)
    return view


def table_summary(table: Table) -> TableSummary:
    return TableSummary(
        table_id=table.table_id,
        name=table.name,
        status=table.status.value,
        host=table.host,
        seats_taken=len(table.seats),
        max_players=table.max_players,
        min_bet=table.min_bet,
        created_at=table.created_at,
    )
