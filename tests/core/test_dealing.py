"""Tests for dealing a live hand."""

import pytest

from conftest import stacked_shoe
from core.dealing import deal_one_hand
from core.errors import ShoeExhausted
from core.hand import Winner


class TestDealOneHand:
    """Tests for deal_one_hand."""

    def test_alternating_deal_order(self):
        """Test that cards go out player, banker, player, banker."""
        shoe = stacked_shoe("9H", "2D", "KS", "3C")
        result, _ = deal_one_hand(shoe)
        assert [str(c) for c in result.player_cards] == ["9♥", "K♠"]
        assert [str(c) for c in result.banker_cards] == ["2♦", "3♣"]
        assert result.winner == Winner.PLAYER
        assert result.is_natural

    def test_natural_uses_four_cards(self):
        shoe = stacked_shoe("9H", "2D", "KS", "3C")
        _, shoe = deal_one_hand(shoe)
        assert shoe.cards_remaining == 20

    def test_player_third_card_comes_next(self):
        """Test that the fifth card is the player's third card."""
        # Player A+2=3 draws a 6; banker 3+3=6 draws on a 6
        shoe = stacked_shoe("AH", "3S", "2D", "3C", "6H", "2S")
        result, shoe = deal_one_hand(shoe)
        assert len(result.player_cards) == 3
        assert len(result.banker_cards) == 3
        assert str(result.player_cards[2]) == "6♥"
        assert str(result.banker_cards[2]) == "2♠"
        assert result.player_score == 9
        assert result.banker_score == 8
        assert result.winner == Winner.PLAYER
        assert shoe.cards_remaining == 20

    def test_banker_draws_fifth_card_when_player_stands(self):
        shoe = stacked_shoe("3H", "2S", "3D", "3C", "4H")
        result, shoe = deal_one_hand(shoe)
        assert len(result.player_cards) == 2
        assert str(result.banker_cards[2]) == "4♥"
        assert result.banker_score == 9
        assert shoe.cards_remaining == 20

    def test_exhausted_shoe_deals_nothing(self):
        """Test that no card leaves a shoe past its cut card."""
        shoe = stacked_shoe("9H", "2D", "KS", "3C", filler=0, reserve_cards=6)
        with pytest.raises(ShoeExhausted) as exc_info:
            deal_one_hand(shoe)
        assert exc_info.value.cards_remaining == 4
        assert shoe.cards_remaining == 4

    def test_deal_consumes_live_shoe(self, shoe):
        before = shoe.cards_remaining
        result, after = deal_one_hand(shoe)
        assert after is shoe
        used = len(result.player_cards) + len(result.banker_cards)
        assert shoe.cards_remaining == before - used
