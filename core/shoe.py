"""Shoe lifecycle: building, shuffling and burning a fresh shoe."""

import logging
from random import Random

from core.cards import Shoe

logger = logging.getLogger(__name__)

DEFAULT_NUM_DECKS = 8
DEFAULT_RESERVE_CARDS = 15


def create_shoe(
    num_decks: int = DEFAULT_NUM_DECKS,
    rng: Random | None = None,
    reserve_cards: int = DEFAULT_RESERVE_CARDS,
) -> Shoe:
    """
    Build a shuffled shoe of ``num_decks`` standard decks.

    Args:
        num_decks: Number of 52-card decks
        rng: Random number generator for reproducible shuffles
        reserve_cards: Cards left behind the cut card

    Returns:
        A shoe holding exactly ``52 * num_decks`` cards
    """
    shoe = Shoe.ordered(num_decks=num_decks, reserve_cards=reserve_cards)
    shoe.shuffle(rng)
    return shoe


def burn_cards(shoe: Shoe) -> Shoe:
    """
    Burn cards from the top of the shoe.

    The first card out is the cut card; its burn value (A=1, 2-9 face value,
    10/J/Q/K=10) is the number of further cards discarded. An empty shoe is
    returned untouched.
    """
    if not shoe.cards_remaining:
        return shoe

    cut_card = shoe.draw()
    burned = shoe.discard(cut_card.rank.burn_value)
    logger.info("Burned %d cards based on cut card %s", len(burned), cut_card)
    return shoe


def prepare_shoe(
    num_decks: int = DEFAULT_NUM_DECKS,
    rng: Random | None = None,
    reserve_cards: int = DEFAULT_RESERVE_CARDS,
) -> Shoe:
    """Create, shuffle and burn a shoe ready for the first hand of a session."""
    shoe = burn_cards(create_shoe(num_decks, rng=rng, reserve_cards=reserve_cards))
    logger.info(
        "Prepared %d-deck shoe with %d cards remaining",
        num_decks,
        shoe.cards_remaining,
    )
    return shoe
