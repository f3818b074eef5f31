from __future__ import annotations

import itertools
from typing import Iterable, List, Optional, Sequence, Tuple

from .cards import RANKS, Card, parse_token

RANK_VALUE = {rank: idx for idx, rank in enumerate(RANKS, start=2)}

HandScore = Tuple[int, List[int]]

CATEGORY_NAMES = (
    "high_card",
    "pair",
    "two_pair",
    "three_of_a_kind",
    "straight",
    "flush",
    "full_house",
    "four_of_a_kind",
    "straight_flush",
)


def evaluate_tokens(tokens: Sequence[str]) -> HandScore:
    return evaluate_best([parse_token(token) for token in tokens])


def evaluate_best(cards: Sequence[Card]) -> HandScore:
    """Return a comparable strength for the best 5 of up to 7 cards. Higher is better."""
    if len(cards) < 5:
        raise ValueError("At least 5 cards are required")
    best: Optional[HandScore] = None
    for combo in itertools.combinations(cards, 5):
        score = _evaluate_five(combo)
        if best is None or score > best:
            best = score
    assert best is not None
    return best


def describe(score: HandScore) -> str:
    return CATEGORY_NAMES[score[0]]


def _evaluate_five(cards: Sequence[Card]) -> HandScore:
    values = sorted((RANK_VALUE[card.rank] for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    straight_high = _straight_high(values)

    counts: dict = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    # Groups ordered by size, then by rank.
    groups = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = [count for _, count in groups]
    ranked = [value for value, _ in groups]

    if straight_high and is_flush:
        return (8, [straight_high])
    if shape[0] == 4:
        return (7, ranked)
    if shape[:2] == [3, 2]:
        return (6, ranked)
    if is_flush:
        return (5, values)
    if straight_high:
        return (4, [straight_high])
    if shape[0] == 3:
        return (3, ranked)
    if shape[:2] == [2, 2]:
        return (2, ranked)
    if shape[0] == 2:
        return (1, ranked)
    return (0, values)


def _straight_high(values: Iterable[int]) -> Optional[int]:
    distinct = set(values)
    if len(distinct) != 5:
        return None
    high, low = max(distinct), min(distinct)
    if high - low == 4:
        return high
    if distinct == {14, 2, 3, 4, 5}:  # wheel
        return 5
    return None
