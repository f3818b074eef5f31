import random

import pytest

from engine.cards import Card, burn, draw, draw_many, new_shuffled_deck, ordered_deck, parse_token
from engine.errors import DeckExhausted, ResourceExhausted


def test_ordered_deck_has_52_unique_tokens():
    deck = ordered_deck()
    assert len(deck) == 52
    assert len(set(deck)) == 52
    assert "10_hearts" in deck
    assert "A_spades" in deck


def test_shuffle_is_a_permutation_and_seedable():
    first = new_shuffled_deck(random.Random(5))
    second = new_shuffled_deck(random.Random(5))
    assert first == second
    assert sorted(first) == sorted(ordered_deck())
    assert first != ordered_deck()


def test_unseeded_shuffles_differ():
    decks = {tuple(new_shuffled_deck()) for _ in range(5)}
    assert len(decks) > 1


def test_draw_takes_from_the_end_without_mutating_input():
    deck = ["2_hearts", "3_hearts", "4_hearts"]
    card, remaining = draw(deck)
    assert card == "4_hearts"
    assert remaining == ["2_hearts", "3_hearts"]
    assert deck == ["2_hearts", "3_hearts", "4_hearts"]


def test_burn_discards_top_card():
    assert burn(["2_hearts", "3_hearts"]) == ["2_hearts"]


def test_draw_many_keeps_draw_order():
    cards, remaining = draw_many(["2_hearts", "3_hearts", "4_hearts", "5_hearts"], 3)
    assert cards == ["5_hearts", "4_hearts", "3_hearts"]
    assert remaining == ["2_hearts"]


def test_exhausted_deck_raises():
    with pytest.raises(DeckExhausted):
        draw([])
    with pytest.raises(ResourceExhausted, match="Not enough cards"):
        burn([])
    with pytest.raises(DeckExhausted):
        draw_many(["2_hearts"], 2)


def test_parse_token_round_trips_ten():
    card = parse_token("10_clubs")
    assert card == Card("10", "clubs")
    assert card.token == "10_clubs"


def test_invalid_tokens_rejected():
    with pytest.raises(ValueError, match="Invalid card token"):
        parse_token("Ah")
    with pytest.raises(ValueError, match="Invalid rank"):
        Card("1", "hearts")
    with pytest.raises(ValueError, match="Invalid suit"):
        Card("A", "stars")
