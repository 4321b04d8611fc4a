"""Hand scoring and third-card rules for baccarat."""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from core.cards import Card
from core.errors import InvalidManualHand


class Winner(str, Enum):
    """Outcome of a hand, using the scoreboard symbols."""

    PLAYER = "P"
    BANKER = "B"
    TIE = "T"

    def __str__(self) -> str:
        return self.value


class Side(Enum):
    """The two hands dealt each coup."""

    PLAYER = "player"
    BANKER = "banker"


# Called with the side about to draw; returns that side's third card.
DrawCard = Callable[[Side], Card]


@dataclass(frozen=True)
class GameResult:
    """Immutable result of one resolved hand."""

    player_cards: tuple[Card, ...]
    banker_cards: tuple[Card, ...]
    player_score: int
    banker_score: int
    winner: Winner
    is_natural: bool

    def __str__(self) -> str:
        player = " ".join(str(c) for c in self.player_cards)
        banker = " ".join(str(c) for c in self.banker_cards)
        natural = " natural" if self.is_natural else ""
        return (
            f"P[{player}]={self.player_score} B[{banker}]={self.banker_score} "
            f"-> {self.winner}{natural}"
        )


def score(cards: Sequence[Card]) -> int:
    """Return the hand total: sum of point values modulo 10."""
    return sum(card.value for card in cards) % 10


def is_natural_score(value: int) -> bool:
    """Check if a two-card total is a natural (8 or 9)."""
    return value >= 8


def player_should_draw(player_score: int) -> bool:
    """Player draws on 0-5 and stands on 6-7 (naturals already excluded)."""
    return player_score <= 5


def banker_should_draw(banker_score: int, player_third_value: int | None) -> bool:
    """
    Apply the banker's tableau.

    Args:
        banker_score: Banker's two-card total
        player_third_value: Point value of the player's third card, or None
            if the player stood

    Returns:
        True if the banker takes a third card
    """
    if banker_score >= 7:
        return False
    if banker_score <= 2:
        return True

    if player_third_value is None:
        return banker_score <= 5

    p3 = player_third_value
    if banker_score == 3:
        return p3 != 8
    if banker_score == 4:
        return 2 <= p3 <= 7
    if banker_score == 5:
        return 4 <= p3 <= 7
    # banker_score == 6
    return p3 in (6, 7)


def decide_winner(player_score: int, banker_score: int) -> Winner:
    """Compare final totals."""
    if player_score > banker_score:
        return Winner.PLAYER
    if banker_score > player_score:
        return Winner.BANKER
    return Winner.TIE


def resolve_hand(
    player_cards: Sequence[Card],
    banker_cards: Sequence[Card],
    draw: DrawCard,
) -> GameResult:
    """
    Play out a hand from its two initial cards per side.

    Args:
        player_cards: The player's first two cards
        banker_cards: The banker's first two cards
        draw: Supplies third cards; called at most once per side, player first

    Returns:
        The finalized result
    """
    player = list(player_cards)
    banker = list(banker_cards)

    player_score = score(player)
    banker_score = score(banker)
    is_natural = is_natural_score(player_score) or is_natural_score(banker_score)

    if not is_natural:
        player_third_value = None
        if player_should_draw(player_score):
            third = draw(Side.PLAYER)
            player.append(third)
            player_third_value = third.value
            player_score = score(player)

        if banker_should_draw(banker_score, player_third_value):
            banker.append(draw(Side.BANKER))
            banker_score = score(banker)

    return GameResult(
        player_cards=tuple(player),
        banker_cards=tuple(banker),
        player_score=player_score,
        banker_score=banker_score,
        winner=decide_winner(player_score, banker_score),
        is_natural=is_natural,
    )


def validate_manual_hand(
    player_cards: Sequence[Card],
    banker_cards: Sequence[Card],
) -> GameResult:
    """
    Check a hand entered by hand (or by card recognition) against the rules.

    The two initial cards of each side are replayed through ``resolve_hand``;
    any third card must be exactly the one the rules call for.

    Raises:
        InvalidManualHand: if a side has the wrong number of cards, a required
            third card is missing, or a third card was given that the rules
            do not allow
    """
    for side, cards in ((Side.PLAYER, player_cards), (Side.BANKER, banker_cards)):
        if not 2 <= len(cards) <= 3:
            raise InvalidManualHand(
                f"{side.value} must have 2 or 3 cards, got {len(cards)}"
            )

    supplied = {
        Side.PLAYER: player_cards[2] if len(player_cards) == 3 else None,
        Side.BANKER: banker_cards[2] if len(banker_cards) == 3 else None,
    }

    def take_supplied(side: Side) -> Card:
        card = supplied[side]
        if card is None:
            raise InvalidManualHand(f"{side.value} must draw a third card")
        return card

    result = resolve_hand(player_cards[:2], banker_cards[:2], take_supplied)

    if len(result.player_cards) != len(player_cards):
        raise InvalidManualHand("player may not draw a third card")
    if len(result.banker_cards) != len(banker_cards):
        raise InvalidManualHand("banker may not draw a third card")

    return result
