from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from .evaluator import HandScore, evaluate_tokens
from .models import Seat

WinnerStrategy = Callable[[Sequence[Seat], Sequence[str]], List[Seat]]


def split_among_active(active_seats: Sequence[Seat], community: Sequence[str]) -> List[Seat]:
    """Every seat still in the hand at the river shares the pot.

    No hands are ranked. This is the table's house rule; swap in
    :func:`best_hand` to play real showdowns.
    """
    return list(active_seats)


def best_hand(active_seats: Sequence[Seat], community: Sequence[str]) -> List[Seat]:
    """Seats holding the strongest five-card hand; ties share."""
    if not active_seats:
        return []
    scores: Dict[int, HandScore] = {
        seat.seat_index: evaluate_tokens(list(seat.hole_cards) + list(community))
        for seat in active_seats
    }
    top = max(scores.values())
    return [seat for seat in active_seats if scores[seat.seat_index] == top]


STRATEGIES: Dict[str, WinnerStrategy] = {
    "split": split_among_active,
    "best_hand": best_hand,
}
