from __future__ import annotations

import contextlib
import logging
import random
import time
from typing import Callable, Dict, Iterator, List, Optional

from engine import betting, roster, streets
from engine.errors import Conflict, InvalidArgument, TableNotFound, Unauthenticated
from engine.models import EngineConfig, PlayerProfile, Seat, Table, TableStatus
from engine.settlement import Settlement, apply_buy_in, apply_settlement
from engine.showdown import WinnerStrategy, split_among_active

from . import profiles
from .store import MemoryStore, Transaction
from .views import TableSummary, TableView, table_summary, table_view

LOGGER = logging.getLogger("poker_tables")

# TableSession is the player-facing surface. Each call is one store
# transaction: load the aggregate, validate, mutate, write back. Any error
# raised before commit leaves the store untouched.


class TableSession:
    def __init__(
        self,
        store: Optional[MemoryStore] = None,
        config: Optional[EngineConfig] = None,
        strategy: WinnerStrategy = split_among_active,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store or MemoryStore()
        self.config = config or EngineConfig()
        self.strategy = strategy
        self.rng = rng
        self.clock = clock

    # Profiles --------------------------------------------------------

    def profile(self, identity: Optional[str]) -> PlayerProfile:
        caller = _require_identity(identity)
        with self._transaction("profile") as txn:
            return profiles.get_or_create(txn, caller, self.config, self._now(), self.rng)

    def set_alias(self, identity: Optional[str], alias: str) -> PlayerProfile:
        caller = _require_identity(identity)
        with self._transaction("set_alias") as txn:
            profile = profiles.get_or_create(txn, caller, self.config, self._now(), self.rng)
            return profiles.rename(txn, profile, alias)

    def adjust_balance(self, identity: str, delta: int) -> PlayerProfile:
        """Operator-only currency adjustment; not reachable from players."""
        caller = _require_identity(identity)
        with self._transaction("adjust_balance") as txn:
            profile = profiles.get_or_create(txn, caller, self.config, self._now(), self.rng)
            profiles.adjust_balance(txn, profile, delta)
        LOGGER.info("Balance of %s adjusted by %s", caller, delta)
        return profile

    # Queries ---------------------------------------------------------

    def list_tables(self, limit: Optional[int] = None) -> List[TableSummary]:
        cap = self.config.recent_table_limit
        count = cap if limit is None else max(0, min(int(limit), cap))
        with self._transaction("list_tables") as txn:
            return [table_summary(table) for table in txn.recent_tables(count)]

    def get_table(self, identity: Optional[str], table_id: str) -> TableView:
        with self._transaction("get_table", table_id) as txn:
            table = _load_table(txn, table_id)
            return self._view(txn, table, identity)

    def current_table(self, identity: Optional[str]) -> Optional[TableView]:
        if not identity:
            return None
        with self._transaction("current_table") as txn:
            live = [table for table in txn.tables_for_identity(identity) if table.status != TableStatus.FINISHED]
            if not live:
                return None
            latest = max(live, key=lambda table: table.created_at)
            return self._view(txn, latest, identity)

    # Lobby -----------------------------------------------------------

    def create_table(
        self,
        identity: Optional[str],
        name: str,
        min_bet: int,
        max_players: int = 6,
    ) -> TableView:
        caller = _require_identity(identity)
        table_name = name.strip() if isinstance(name, str) else ""
        if not table_name:
            raise InvalidArgument("Table name required")
        if isinstance(min_bet, bool) or not isinstance(min_bet, int) or min_bet <= 0:
            raise InvalidArgument("Minimum bet must be a positive integer")
        if isinstance(max_players, bool) or not isinstance(max_players, int):
            raise InvalidArgument("Seat count must be an integer")
        # Out-of-range capacities are clamped, not rejected.
        capacity = min(max(max_players, self.config.min_players), self.config.max_players)

        with self._transaction("create_table") as txn:
            now = self._now()
            profile = profiles.get_or_create(txn, caller, self.config, now, self.rng)
            table = Table(
                table_id="",
                name=table_name,
                host=caller,
                max_players=capacity,
                min_bet=min_bet,
                created_at=now,
                last_action=now,
            )
            # The host goes through the same checks as anyone joining.
            roster.join(table, profile)
            txn.insert_table(table)
            view = self._view(txn, table, caller)
        LOGGER.info("Table %s (%s) created by %s: seats=%s min_bet=%s", view.table_id, table_name, caller, capacity, min_bet)
        return view

    def join(self, identity: Optional[str], table_id: str) -> TableView:
        caller = _require_identity(identity)
        with self._transaction("join", table_id) as txn:
            table = _load_table(txn, table_id)
            profile = profiles.get_or_create(txn, caller, self.config, self._now(), self.rng)
            seat = roster.join(table, profile)
            txn.put_table(table)
            view = self._view(txn, table, caller)
        LOGGER.info("Seat %s at %s claimed by %s", seat.seat_index, table_id, caller)
        return view

    def leave(self, identity: Optional[str], table_id: str) -> Optional[TableView]:
        """Leave a table. Returns None when the table was deleted."""
        caller = _require_identity(identity)
        with self._transaction("leave", table_id) as txn:
            table = _load_table(txn, table_id)
            outcome = roster.leave(table, caller, self._now(), self.strategy)
            if outcome.table_empty:
                txn.delete_table(table_id)
                view = None
            else:
                self._credit_winners(txn, outcome.settlement)
                txn.put_table(table)
                view = self._view(txn, table, caller)
        LOGGER.info("%s left %s%s", caller, table_id, " (folded)" if outcome.folded else "")
        if outcome.table_empty:
            LOGGER.info("Table %s deleted; no seats remain", table_id)
        if outcome.new_host:
            LOGGER.info("Host of %s passed to %s", table_id, outcome.new_host)
        return view

    def set_ready(self, identity: Optional[str], table_id: str, ready: bool = True) -> TableView:
        caller = _require_identity(identity)
        with self._transaction("set_ready", table_id) as txn:
            table = _load_table(txn, table_id)
            roster.set_ready(table, caller, ready)
            txn.put_table(table)
            return self._view(txn, table, caller)

    def start(self, identity: Optional[str], table_id: str) -> TableView:
        caller = _require_identity(identity)
        with self._transaction("start", table_id) as txn:
            table = _load_table(txn, table_id)
            roster.check_can_start(table, caller, self.config.min_players)
            buy_ins = streets.start_hand(table, self._now(), self.rng)
            players = _load_profiles(txn, buy_ins)
            apply_buy_in(buy_ins, players, table.min_bet)
            for profile in players.values():
                txn.put_player(profile)
            txn.put_table(table)
            view = self._view(txn, table, caller)
        LOGGER.info(
            "Table %s started with %s seats; pot=%s first_to_act=%s",
            table_id,
            len(view.seats),
            view.pot,
            view.current_player_index,
        )
        return view

    # Betting ---------------------------------------------------------

    def bet(self, identity: Optional[str], table_id: str, raise_amount: int = 0) -> TableView:
        """Call the outstanding bet and raise by ``raise_amount`` on top."""
        return self._act("bet", identity, table_id, lambda table, seat: betting.call_or_raise(table, seat, raise_amount))

    def check(self, identity: Optional[str], table_id: str) -> TableView:
        return self._act("check", identity, table_id, betting.check)

    def fold(self, identity: Optional[str], table_id: str) -> TableView:
        return self._act("fold", identity, table_id, betting.fold)

    def _act(
        self,
        op: str,
        identity: Optional[str],
        table_id: str,
        apply: Callable[[Table, Seat], object],
    ) -> TableView:
        caller = _require_identity(identity)
        with self._transaction(op, table_id) as txn:
            table = _load_table(txn, table_id)
            seat = betting.acting_seat(table, caller)
            apply(table, seat)
            now = self._now()
            table.last_action = now
            settlement = streets.advance_turn(table, now, self.strategy)
            self._credit_winners(txn, settlement)
            txn.put_table(table)
            view = self._view(txn, table, caller)
        LOGGER.debug(
            "Applied %s table=%s seat=%s pot=%s street=%s",
            op,
            table_id,
            seat.seat_index,
            view.pot,
            view.street,
        )
        return view

    # Helpers ---------------------------------------------------------

    def _credit_winners(self, txn: Transaction, settlement: Optional[Settlement]) -> None:
        if settlement is None:
            return
        players = _load_profiles(txn, list(settlement.payouts))
        apply_settlement(settlement, players)
        for profile in players.values():
            txn.put_player(profile)
        LOGGER.info(
            "Table %s settled: pot=%s winners=%s prize=%s",
            settlement.table_id,
            settlement.pot,
            settlement.winners,
            settlement.prize,
        )

    def _view(self, txn: Transaction, table: Table, viewer: Optional[str]) -> TableView:
        players = {seat.identity: txn.get_player(seat.identity) for seat in table.seats}
        return table_view(table, viewer, players)

    def _now(self) -> int:
        return int(self.clock() * 1000)

    @contextlib.contextmanager
    def _transaction(self, op: str, table_id: Optional[str] = None) -> Iterator[Transaction]:
        try:
            with self.store.transaction() as txn:
                yield txn
        except Conflict:
            LOGGER.warning("Rejected %s on %s: concurrent update", op, table_id)
            raise


def _require_identity(identity: Optional[str]) -> str:
    if not identity:
        raise Unauthenticated()
    return identity


def _load_table(txn: Transaction, table_id: str) -> Table:
    table = txn.get_table(table_id)
    if table is None:
        raise TableNotFound()
    return table


def _load_profiles(txn: Transaction, identities: List[str]) -> Dict[str, PlayerProfile]:
    players: Dict[str, PlayerProfile] = {}
    for identity in identities:
        profile = txn.get_player(identity)
        if profile is not None:
            players[identity] = profile
    return players
