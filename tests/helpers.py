from __future__ import annotations

import random
from typing import List, Optional, Tuple

from engine.models import ActionType, EngineConfig, Table, TableStatus
from engine.showdown import WinnerStrategy, split_among_active
from tables.session import TableSession


class FakeClock:
    """Monotonic clock that ticks one second per read."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1
        return self.now


def create_session(
    *,
    seed: int = 42,
    starting_balance: int = 1_000,
    strategy: WinnerStrategy = split_among_active,
    table_limit: int = 20,
) -> TableSession:
    return TableSession(
        config=EngineConfig(starting_balance=starting_balance, recent_table_limit=table_limit),
        strategy=strategy,
        rng=random.Random(seed),
        clock=FakeClock(),
    )


def seat_players(
    session: TableSession,
    players: int = 3,
    *,
    min_bet: int = 20,
    max_players: int = 6,
    ready: bool = True,
    prefix: str = "player",
) -> Tuple[str, List[str]]:
    """Create a table hosted by the first identity and seat the rest."""
    identities = [f"{prefix}{idx}" for idx in range(players)]
    view = session.create_table(identities[0], "Test Table", min_bet, max_players)
    for identity in identities[1:]:
        session.join(identity, view.table_id)
        if ready:
            session.set_ready(identity, view.table_id, True)
    return view.table_id, identities


def start_table(
    players: int = 3,
    *,
    min_bet: int = 20,
    seed: int = 42,
    strategy: WinnerStrategy = split_among_active,
) -> Tuple[TableSession, str, List[str]]:
    session = create_session(seed=seed, strategy=strategy)
    table_id, identities = seat_players(session, players, min_bet=min_bet)
    session.start(identities[0], table_id)
    return session, table_id, identities


def raw_table(session: TableSession, table_id: str) -> Optional[Table]:
    """Read the stored aggregate, private fields included."""
    with session.store.transaction() as txn:
        return txn.get_table(table_id)


def current_actor(session: TableSession, table_id: str) -> str:
    table = raw_table(session, table_id)
    assert table is not None
    seat = table.current_seat()
    assert seat is not None
    return seat.identity


def act_passively(session: TableSession, table_id: str) -> str:
    """Check when possible, otherwise call. Returns the identity that acted."""
    identity = current_actor(session, table_id)
    view = session.get_table(identity, table_id)
    if ActionType.CHECK.value in view.legal_actions:
        session.check(identity, table_id)
    else:
        session.bet(identity, table_id, 0)
    return identity


def play_to_end(session: TableSession, table_id: str, limit: int = 200) -> None:
    for _ in range(limit):
        table = raw_table(session, table_id)
        assert table is not None
        if table.status != TableStatus.PLAYING:
            return
        act_passively(session, table_id)
    raise AssertionError("hand did not finish")
