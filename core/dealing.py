"""Dealing a single live hand from the shoe."""

from core.cards import Card, Shoe
from core.hand import GameResult, Side, resolve_hand


def deal_one_hand(shoe: Shoe) -> tuple[GameResult, Shoe]:
    """
    Deal one coup from the top of the shoe.

    Cards go out player, banker, player, banker; third cards are drawn from
    the same shoe as the rules require.

    Args:
        shoe: The live shoe; consumed in place

    Returns:
        The result and the shoe after all draws

    Raises:
        ShoeExhausted: if the cut card has been reached (nothing is dealt)
    """
    shoe.ensure_can_deal()

    p1, b1, p2, b2 = (shoe.draw() for _ in range(4))

    def draw_third(side: Side) -> Card:
        return shoe.draw()

    result = resolve_hand((p1, p2), (b1, b2), draw_third)
    return result, shoe
