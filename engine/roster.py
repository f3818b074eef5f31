from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import betting, streets
from .errors import (
    AlreadySeated,
    InsufficientFunds,
    InsufficientPlayers,
    NotAllReady,
    NotHost,
    NotSeated,
    TableFull,
    TableNotWaiting,
)
from .models import PlayerProfile, Seat, SeatStatus, Table, TableStatus
from .settlement import Settlement
from .showdown import WinnerStrategy, split_among_active


@dataclass
class LeaveOutcome:
    folded: bool = False
    table_empty: bool = False
    new_host: Optional[str] = None
    settlement: Optional[Settlement] = None


def join(table: Table, profile: PlayerProfile) -> Seat:
    if table.status != TableStatus.WAITING:
        raise TableNotWaiting()
    if len(table.seats) >= table.max_players:
        raise TableFull()
    if table.seat_for(profile.identity) is not None:
        raise AlreadySeated()
    if profile.balance < table.min_bet:
        raise InsufficientFunds()

    # Indices follow join order and are never handed out twice.
    seat = Seat(identity=profile.identity, seat_index=table.next_seat_index)
    table.next_seat_index += 1
    table.seats.append(seat)
    return seat


def leave(
    table: Table,
    identity: str,
    now: int,
    strategy: WinnerStrategy = split_among_active,
) -> LeaveOutcome:
    seat = table.seat_for(identity)
    if seat is None:
        raise NotSeated()

    if table.status == TableStatus.PLAYING:
        return _fold_out(table, seat, now, strategy)

    table.seats.remove(seat)
    outcome = LeaveOutcome(table_empty=not table.seats)
    if table.status == TableStatus.WAITING and table.host == identity and table.seats:
        table.host = table.ordered_seats()[0].identity
        outcome.new_host = table.host
    return outcome


def _fold_out(table: Table, seat: Seat, now: int, strategy: WinnerStrategy) -> LeaveOutcome:
    held_turn = table.current_seat() is seat
    if seat.is_active:
        betting.fold(table, seat)
    else:
        seat.status = SeatStatus.FOLDED
    table.last_action = now

    outcome = LeaveOutcome(folded=True)
    if held_turn or len(table.active_seats()) <= 1:
        outcome.settlement = streets.advance_turn(table, now, strategy)
    elif betting.round_complete(table):
        # The leaver was the only seat the round was still waiting on.
        outcome.settlement = streets.transition_street(table, now, strategy)
    return outcome


def set_ready(table: Table, identity: str, ready: bool) -> Seat:
    seat = table.seat_for(identity)
    if seat is None:
        raise NotSeated()
    if table.status != TableStatus.WAITING:
        raise TableNotWaiting()
    seat.ready = bool(ready)
    return seat


def check_can_start(table: Table, identity: str, min_players: int = 2) -> None:
    if table.host != identity:
        raise NotHost()
    if table.status != TableStatus.WAITING:
        raise TableNotWaiting()
    if len(table.seats) < min_players:
        raise InsufficientPlayers()
    if not all(seat.ready or seat.identity == table.host for seat in table.seats):
        raise NotAllReady()
