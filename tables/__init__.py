"""Table lobby: transactional storage, player profiles and the session API."""

from .session import TableSession
from .store import MemoryStore, Transaction
from .views import HIDDEN_CARD, SeatView, TableSummary, TableView

__all__ = [
    "TableSession",
    "MemoryStore",
    "Transaction",
    "HIDDEN_CARD",
    "SeatView",
    "TableSummary",
    "TableView",
]
