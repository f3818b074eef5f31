from __future__ import annotations

from typing import List

from .errors import CannotAct, GameNotPlaying, InvalidAmount, MustCallOrFold, NothingToCall, NotYourTurn
from .models import ActionType, Seat, SeatStatus, Table, TableStatus

# Round-local betting rules. Nothing here advances the turn; the street
# sequencer decides what happens after an accepted action.


def to_call(table: Table, seat: Seat) -> int:
    return max(table.current_bet - seat.committed, 0)


def acting_seat(table: Table, identity: str) -> Seat:
    """Return the caller's seat if it holds the turn."""
    if table.status != TableStatus.PLAYING:
        raise GameNotPlaying()
    seat = table.current_seat()
    if seat is None or seat.identity != identity:
        raise NotYourTurn()
    return seat


def legal_actions(table: Table, seat: Seat) -> List[ActionType]:
    if table.status != TableStatus.PLAYING or not seat.is_active:
        return []
    legal = [ActionType.FOLD]
    if to_call(table, seat) == 0:
        legal.append(ActionType.CHECK)
    else:
        legal.append(ActionType.CALL)
    # Bets are table chips, not balance-backed, so a raise is always open.
    legal.append(ActionType.RAISE)
    return legal


def call_or_raise(table: Table, seat: Seat, raise_amount: int) -> int:
    """Match the current bet plus ``raise_amount``; return the chips added."""
    if isinstance(raise_amount, bool) or not isinstance(raise_amount, int) or raise_amount < 0:
        raise InvalidAmount()
    if not seat.is_active:
        raise CannotAct()
    owed = to_call(table, seat)
    if owed == 0 and raise_amount == 0:
        raise NothingToCall()

    contribution = owed + raise_amount
    seat.bet += contribution
    seat.committed += contribution
    table.pot += contribution
    seat.has_acted = True

    if raise_amount > 0:
        table.current_bet = seat.committed
        # A raise reopens the action for everyone else still in the hand.
        for other in table.seats:
            if other is not seat and other.is_active:
                other.has_acted = False
    return contribution


def check(table: Table, seat: Seat) -> None:
    if not seat.is_active:
        raise CannotAct()
    if seat.committed < table.current_bet:
        raise MustCallOrFold()
    seat.has_acted = True


def fold(table: Table, seat: Seat) -> None:
    seat.status = SeatStatus.FOLDED
    seat.has_acted = True


def round_complete(table: Table) -> bool:
    active = table.active_seats()
    return all(seat.has_acted and seat.committed == table.current_bet for seat in active)
