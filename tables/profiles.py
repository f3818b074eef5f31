from __future__ import annotations

import random
from typing import Optional

from engine.errors import InsufficientFunds, InvalidArgument, InvalidAmount
from engine.models import EngineConfig, PlayerProfile

from .store import Transaction

ALIAS_ADJECTIVES = (
    "Salty", "Barnacle", "Scurvy", "One-Eyed", "Blackbeard", "Pegleg",
    "Ironhook", "Rum-Soaked", "Storm", "Ghost", "Crimson", "Shadow",
)
ALIAS_NOUNS = (
    "Jack", "Bill", "Bones", "Morgan", "Cutlass", "Drake",
    "Sparrow", "Flint", "Silver", "Hook", "Kidd", "Rackham",
)
MAX_ALIAS_LENGTH = 32


def generate_alias(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return f"{rng.choice(ALIAS_ADJECTIVES)} {rng.choice(ALIAS_NOUNS)}"


def get_or_create(
    txn: Transaction,
    identity: str,
    config: EngineConfig,
    now: int,
    rng: Optional[random.Random] = None,
) -> PlayerProfile:
    profile = txn.get_player(identity)
    if profile is None:
        profile = PlayerProfile(
            identity=identity,
            alias=generate_alias(rng),
            balance=config.starting_balance,
            created_at=now,
        )
        txn.put_player(profile)
    return profile


def rename(txn: Transaction, profile: PlayerProfile, alias: str) -> PlayerProfile:
    cleaned = alias.strip() if isinstance(alias, str) else ""
    if not cleaned:
        raise InvalidArgument("Alias required")
    if len(cleaned) > MAX_ALIAS_LENGTH:
        raise InvalidArgument(f"Alias longer than {MAX_ALIAS_LENGTH} characters")
    profile.alias = cleaned
    txn.put_player(profile)
    return profile


def adjust_balance(txn: Transaction, profile: PlayerProfile, delta: int) -> PlayerProfile:
    """Administrative credit or debit; the balance never goes below zero."""
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise InvalidAmount("Adjustment must be an integer")
    if profile.balance + delta < 0:
        raise InsufficientFunds()
    profile.balance += delta
    txn.put_player(profile)
    return profile
