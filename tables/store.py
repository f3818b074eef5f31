from __future__ import annotations

import contextlib
import copy
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Set, Tuple

from engine.errors import Conflict
from engine.models import PlayerProfile, Table

LOGGER = logging.getLogger("poker_store")

# MemoryStore is a small optimistic key-value store. A transaction works on
# private copies and only touches shared state at commit, which validates
# every version it read. Two transactions on different tables never read the
# same record, so they never conflict.

TABLES = "tables"
PLAYERS = "players"

Key = Tuple[str, str]


@dataclass
class _Record:
    value: Any
    version: int


class MemoryStore:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[Key, _Record] = {}
        self._tables_by_identity: Dict[str, Set[str]] = {}
        self._table_ids = itertools.count(1)

    def begin(self) -> "Transaction":
        return Transaction(self)

    @contextlib.contextmanager
    def transaction(self) -> Iterator["Transaction"]:
        """Run a block atomically; an exception discards every write."""
        txn = self.begin()
        yield txn
        txn.commit()

    # Internal helpers used by Transaction ---------------------------------

    def _read(self, key: Key) -> Tuple[Any, int]:
        with self._lock:
            record = self._records.get(key)
            if record is None:
                return None, 0
            return copy.deepcopy(record.value), record.version

    def _recent_table_ids(self, limit: int) -> List[str]:
        with self._lock:
            tables = [record.value for key, record in self._records.items() if key[0] == TABLES]
        tables.sort(key=lambda table: (table.created_at, _id_order(table.table_id)), reverse=True)
        return [table.table_id for table in tables[:limit]]

    def _table_ids_for(self, identity: str) -> List[str]:
        with self._lock:
            return sorted(self._tables_by_identity.get(identity, set()), key=_id_order)

    def _new_table_id(self) -> str:
        with self._lock:
            return f"T-{next(self._table_ids)}"

    def _commit(self, reads: Dict[Key, int], writes: Dict[Key, Optional[Any]]) -> None:
        with self._lock:
            for key, version in reads.items():
                record = self._records.get(key)
                current = record.version if record else 0
                if current != version:
                    LOGGER.debug("Version mismatch on %s/%s: read %s, now %s", key[0], key[1], version, current)
                    raise Conflict()
            for key, value in writes.items():
                previous = self._records.get(key)
                if key[0] == TABLES:
                    self._reindex(key[1], previous.value if previous else None, value)
                if value is None:
                    self._records.pop(key, None)
                    continue
                version = previous.version + 1 if previous else 1
                self._records[key] = _Record(copy.deepcopy(value), version)

    def _reindex(self, table_id: str, old: Optional[Table], new: Optional[Table]) -> None:
        before = {seat.identity for seat in old.seats} if old else set()
        after = {seat.identity for seat in new.seats} if new else set()
        for identity in before - after:
            table_ids = self._tables_by_identity.get(identity)
            if table_ids is not None:
                table_ids.discard(table_id)
                if not table_ids:
                    del self._tables_by_identity[identity]
        for identity in after - before:
            self._tables_by_identity.setdefault(identity, set()).add(table_id)


def _id_order(table_id: str) -> int:
    _, _, number = table_id.partition("-")
    return int(number) if number.isdigit() else 0


class Transaction:
    """Reads see a snapshot plus this transaction's own writes."""

    def __init__(self, store: MemoryStore) -> None:
        self._store = store
        self._reads: Dict[Key, int] = {}
        self._writes: Dict[Key, Optional[Any]] = {}
        self._cache: Dict[Key, Any] = {}
        self._done = False

    def _get(self, key: Key) -> Any:
        if key in self._writes:
            return self._writes[key]
        if key not in self._cache:
            value, version = self._store._read(key)
            self._reads[key] = version
            self._cache[key] = value
        return self._cache[key]

    # Tables ---------------------------------------------------------------

    def get_table(self, table_id: str) -> Optional[Table]:
        return self._get((TABLES, table_id))

    def insert_table(self, table: Table) -> str:
        table.table_id = self._store._new_table_id()
        self._writes[(TABLES, table.table_id)] = table
        return table.table_id

    def put_table(self, table: Table) -> None:
        self._writes[(TABLES, table.table_id)] = table

    def delete_table(self, table_id: str) -> None:
        self._writes[(TABLES, table_id)] = None

    def recent_tables(self, limit: int) -> List[Table]:
        tables = []
        for table_id in self._store._recent_table_ids(limit):
            table = self.get_table(table_id)
            if table is not None:
                tables.append(table)
        return tables

    def tables_for_identity(self, identity: str) -> List[Table]:
        table_ids = set(self._store._table_ids_for(identity))
        table_ids.update(key[1] for key in self._writes if key[0] == TABLES)
        tables = []
        for table_id in sorted(table_ids, key=_id_order):
            table = self.get_table(table_id)
            if table is not None and table.seat_for(identity) is not None:
                tables.append(table)
        return tables

    # Players --------------------------------------------------------------

    def get_player(self, identity: str) -> Optional[PlayerProfile]:
        return self._get((PLAYERS, identity))

    def put_player(self, profile: PlayerProfile) -> None:
        self._writes[(PLAYERS, profile.identity)] = profile

    # Lifecycle ------------------------------------------------------------

    def commit(self) -> None:
        if self._done:
            raise RuntimeError("Transaction already finished")
        self._done = True
        if self._writes:
            self._store._commit(self._reads, self._writes)
