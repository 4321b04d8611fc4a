"""Tests for Card and Shoe classes."""

import pytest
from collections import Counter
from random import Random

from core.cards import Card, Shoe, Rank, Suit, full_deck
from core.errors import ShoeExhausted


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        """Test creating a card."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES

    def test_card_immutability(self):
        """Test that cards are immutable."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_card_point_values(self):
        """Test baccarat point values."""
        assert Card(Rank.ACE, Suit.HEARTS).value == 1
        assert Card(Rank.TWO, Suit.HEARTS).value == 2
        assert Card(Rank.NINE, Suit.HEARTS).value == 9
        assert Card(Rank.TEN, Suit.HEARTS).value == 0
        assert Card(Rank.JACK, Suit.HEARTS).value == 0
        assert Card(Rank.QUEEN, Suit.HEARTS).value == 0
        assert Card(Rank.KING, Suit.HEARTS).value == 0

    def test_every_value_in_range(self):
        """Test that every card is worth 0-9."""
        assert all(0 <= card.value <= 9 for card in full_deck())

    def test_burn_values(self):
        """Test cut-card burn counts."""
        assert Rank.ACE.burn_value == 1
        assert Rank.SEVEN.burn_value == 7
        assert Rank.TEN.burn_value == 10
        assert Rank.KING.burn_value == 10

    def test_card_from_string(self):
        """Test creating cards from strings."""
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("TD") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("kc") == Card(Rank.KING, Suit.CLUBS)

    def test_card_from_string_with_symbols(self):
        """Test creating cards from strings with suit symbols."""
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("K♥") == Card(Rank.KING, Suit.HEARTS)

    @pytest.mark.parametrize("label", ["", "A", "1S", "11H", "AX"])
    def test_card_from_string_invalid(self, label):
        """Test that malformed labels are rejected."""
        with pytest.raises(ValueError):
            Card.from_string(label)

    def test_card_str(self):
        """Test string representation."""
        assert str(Card(Rank.TEN, Suit.HEARTS)) == "10♥"

    def test_card_hash(self):
        """Test that cards can be used in sets/dicts."""
        cards = {Card(Rank.ACE, Suit.SPADES), Card(Rank.ACE, Suit.SPADES)}
        assert len(cards) == 1


class TestShoe:
    """Tests for the Shoe class."""

    @pytest.mark.parametrize("num_decks", [1, 6, 8])
    def test_ordered_shoe_composition(self, num_decks):
        """Test that an n-deck shoe holds n copies of each card."""
        shoe = Shoe.ordered(num_decks=num_decks)
        assert len(shoe) == 52 * num_decks
        counts = Counter(shoe)
        assert len(counts) == 52
        assert set(counts.values()) == {num_decks}

    def test_shoe_invalid_decks_raises(self):
        """Test that invalid deck count raises error."""
        with pytest.raises(ValueError):
            Shoe.ordered(num_decks=0)

    def test_shoe_reserve_must_cover_a_hand(self):
        """Test that the reserve cannot be smaller than a worst-case hand."""
        with pytest.raises(ValueError):
            Shoe.ordered(num_decks=1, reserve_cards=5)

    def test_shuffle_keeps_cards(self):
        """Test shuffling keeps the same multiset of cards."""
        shoe = Shoe.ordered(num_decks=2)
        before = list(shoe)
        shoe.shuffle(Random(42))
        assert Counter(before) == Counter(shoe)
        assert before != list(shoe)

    def test_draw_takes_from_top(self):
        """Test that draw removes the last card of the list."""
        cards = [Card(Rank.TWO, Suit.CLUBS), Card(Rank.NINE, Suit.HEARTS)]
        shoe = Shoe(cards, num_decks=1, reserve_cards=6)
        assert shoe.draw() == Card(Rank.NINE, Suit.HEARTS)
        assert len(shoe) == 1

    def test_draw_empty_raises(self):
        """Test that drawing from an empty shoe signals exhaustion."""
        shoe = Shoe([], num_decks=1, reserve_cards=6)
        with pytest.raises(ShoeExhausted):
            shoe.draw()

    def test_discard_stops_at_empty(self):
        """Test discarding more cards than remain."""
        shoe = Shoe(full_deck()[:3], num_decks=1, reserve_cards=6)
        assert len(shoe.discard(10)) == 3
        assert len(shoe) == 0

    def test_needs_shuffle_at_reserve(self):
        """Test cut card detection."""
        shoe = Shoe(full_deck()[:16], num_decks=1, reserve_cards=15)
        assert not shoe.needs_shuffle
        shoe.draw()
        assert not shoe.needs_shuffle
        shoe.draw()
        assert shoe.needs_shuffle
        with pytest.raises(ShoeExhausted) as exc_info:
            shoe.ensure_can_deal()
        assert exc_info.value.cards_remaining == 14

    def test_snapshot_is_independent(self):
        """Test that a snapshot is unaffected by later draws."""
        shoe = Shoe.ordered(num_decks=1)
        snapshot = shoe.snapshot()
        shoe.draw()
        assert isinstance(snapshot, tuple)
        assert len(snapshot) == 52
        assert len(shoe) == 51

    def test_cards_dealt_and_penetration(self):
        """Test dealt-card tracking."""
        shoe = Shoe.ordered(num_decks=1)
        for _ in range(13):
            shoe.draw()
        assert shoe.cards_dealt == 13
        assert shoe.penetration == pytest.approx(0.25)
