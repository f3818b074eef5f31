from __future__ import annotations

import random
from typing import List, Optional, Tuple

from . import betting
from .cards import burn, draw, draw_many, new_shuffled_deck
from .models import Seat, Street, Table, TableStatus
from .settlement import Settlement, settle
from .showdown import WinnerStrategy, split_among_active

# Street sequencer: preflop -> flop -> turn -> river -> showdown -> settled.
# Transitions only happen from advance_turn, never straight from an action.

_NEXT_STREET = {
    Street.PRE_FLOP: (Street.FLOP, 3),
    Street.FLOP: (Street.TURN, 1),
    Street.TURN: (Street.RIVER, 1),
}


def blind_positions(table: Table) -> Tuple[int, int]:
    count = len(table.seats)
    return (table.dealer_index + 1) % count, (table.dealer_index + 2) % count


def start_hand(table: Table, now: int, rng: Optional[random.Random] = None) -> List[str]:
    """Deal a new hand and post blinds. Returns the identities owing a buy-in."""
    ordered = table.ordered_seats()
    count = len(ordered)

    deck = new_shuffled_deck(rng)
    for seat in ordered:
        seat.reset_for_hand()
        for _ in range(2):
            card, deck = draw(deck)
            seat.hole_cards.append(card)

    table.deck = deck
    table.community = []
    table.pot = 0
    table.winners = []
    table.payouts = {}

    sb_pos, bb_pos = blind_positions(table)
    small_blind = table.min_bet // 2
    big_blind = table.min_bet
    _post_blind(table, ordered[sb_pos], small_blind)
    _post_blind(table, ordered[bb_pos], big_blind)

    table.current_bet = big_blind
    table.current_player_index = (bb_pos + 1) % count
    table.street = Street.PRE_FLOP
    table.status = TableStatus.PLAYING
    table.last_action = now
    return [seat.identity for seat in ordered]


def _post_blind(table: Table, seat: Seat, amount: int) -> None:
    # Blinds are forced bets; the seat still gets to act on its own turn.
    seat.bet += amount
    seat.committed += amount
    table.pot += amount


def next_active_position(table: Table, start: int) -> int:
    ordered = table.ordered_seats()
    count = len(ordered)
    for step in range(count):
        position = (start + step) % count
        if ordered[position].is_active:
            return position
    return start % count


def advance_turn(
    table: Table,
    now: int,
    strategy: WinnerStrategy = split_among_active,
) -> Optional[Settlement]:
    """Move play forward after an accepted action.

    Returns the settlement when the hand ended, otherwise None.
    """
    active = table.active_seats()
    if len(active) <= 1:
        # Uncontested: skip any remaining streets.
        return settle(table, active, now)

    if betting.round_complete(table):
        return transition_street(table, now, strategy)

    table.current_player_index = next_active_position(table, table.current_player_index + 1)
    return None


def transition_street(
    table: Table,
    now: int,
    strategy: WinnerStrategy = split_among_active,
) -> Optional[Settlement]:
    for seat in table.seats:
        seat.reset_for_round()

    if table.street == Street.RIVER:
        table.street = Street.SHOWDOWN
        winners = strategy(table.active_seats(), list(table.community))
        return settle(table, winners, now)

    if table.street not in _NEXT_STREET:
        raise RuntimeError(f"No street follows {table.street.value}")

    next_street, reveal = _NEXT_STREET[table.street]
    deck = burn(table.deck)
    cards, deck = draw_many(deck, reveal)
    table.deck = deck
    table.community = list(table.community) + cards
    table.street = next_street
    table.current_bet = 0
    table.current_player_index = next_active_position(table, table.dealer_index + 1)
    return None
