from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence

from .errors import InsufficientFunds
from .models import PlayerProfile, Seat, Street, Table, TableStatus

LOGGER = logging.getLogger("poker_engine")


@dataclass
class Settlement:
    table_id: str
    pot: int
    prize: int
    winners: List[int] = field(default_factory=list)
    payouts: Dict[str, int] = field(default_factory=dict)


def settle(table: Table, winners: Sequence[Seat], now: int) -> Settlement:
    """Finish the table and record what each winner is owed.

    Each winner gets an equal share of the pot plus their buy-in back. The
    integer-division remainder stays unpaid.
    """
    prize = table.pot // len(winners) if winners else 0
    payouts = {seat.identity: prize + table.min_bet for seat in winners}
    if not winners:
        LOGGER.warning("Table %s settled with no active seats; pot %s unpaid", table.table_id, table.pot)

    table.status = TableStatus.FINISHED
    table.street = Street.SETTLED
    table.winners = [seat.seat_index for seat in winners]
    table.payouts = dict(payouts)
    table.last_action = now
    return Settlement(
        table_id=table.table_id,
        pot=table.pot,
        prize=prize,
        winners=list(table.winners),
        payouts=payouts,
    )


def apply_settlement(settlement: Settlement, profiles: Mapping[str, PlayerProfile]) -> None:
    for identity, amount in settlement.payouts.items():
        profile = profiles.get(identity)
        if profile is None:
            LOGGER.warning("No profile for winner %s on table %s", identity, settlement.table_id)
            continue
        profile.balance += amount
        profile.games_won += 1


def apply_buy_in(identities: Sequence[str], profiles: Mapping[str, PlayerProfile], min_bet: int) -> None:
    # Validate every seat first so a short balance leaves all profiles untouched.
    for identity in identities:
        profile = profiles.get(identity)
        if profile is None or profile.balance < min_bet:
            raise InsufficientFunds()
    for identity in identities:
        profile = profiles[identity]
        profile.balance -= min_bet
        profile.games_played += 1
