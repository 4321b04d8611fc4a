"""Pytest fixtures for baccarat engine tests."""

from random import Random

import pytest
from hypothesis import strategies as st

from core.cards import Card, Rank, Shoe, Suit
from core.game import BaccaratTable
from core.shoe import create_shoe


def cards(*labels: str) -> list[Card]:
    """Build cards from labels like '9H', '10S', 'KD'."""
    return [Card.from_string(label) for label in labels]


def stacked_shoe(*labels: str, filler: int = 20, reserve_cards: int = 6) -> Shoe:
    """
    A shoe that deals ``labels`` first, in order.

    ``filler`` ten-value cards sit underneath so the cut card is not reached.
    """
    dealt_first = cards(*labels)
    underneath = [Card(Rank.TEN, Suit.CLUBS)] * filler
    return Shoe(
        underneath + list(reversed(dealt_first)),
        num_decks=1,
        reserve_cards=reserve_cards,
    )


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def shoe(rng):
    """A shuffled 8-deck shoe."""
    return create_shoe(8, rng=rng)


@pytest.fixture
def table(rng):
    """A new table with a prepared 8-deck shoe."""
    return BaccaratTable(num_decks=8, rng=rng)


# Hypothesis strategies for property-based testing
@st.composite
def card_strategy(draw):
    """Generate a random card."""
    rank = draw(st.sampled_from(list(Rank)))
    suit = draw(st.sampled_from(list(Suit)))
    return Card(rank, suit)


def hand_strategy(min_cards=1, max_cards=3):
    """Generate a random list of cards."""
    return st.lists(card_strategy(), min_size=min_cards, max_size=max_cards)
