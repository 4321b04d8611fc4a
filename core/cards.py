"""Card and Shoe classes - immutable card representations."""

from dataclasses import dataclass
from enum import Enum
from random import Random
from typing import Iterator

from core.errors import ShoeExhausted

# Worst case for a single hand: two cards each plus both third cards.
MAX_CARDS_PER_HAND = 6


class Suit(Enum):
    """Card suits."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    def __str__(self) -> str:
        symbols = {
            Suit.CLUBS: "♣",
            Suit.DIAMONDS: "♦",
            Suit.HEARTS: "♥",
            Suit.SPADES: "♠",
        }
        return symbols[self]


class Rank(Enum):
    """Card ranks, valued by their face label."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    def __str__(self) -> str:
        return self.value

    @property
    def is_ten_value(self) -> bool:
        """Check if this rank is a ten or a face card."""
        return self in (Rank.TEN, Rank.JACK, Rank.QUEEN, Rank.KING)

    @property
    def point_value(self) -> int:
        """Return the baccarat point value (Ace = 1, tens and faces = 0)."""
        if self == Rank.ACE:
            return 1
        if self.is_ten_value:
            return 0
        return int(self.value)

    @property
    def burn_value(self) -> int:
        """Return the number of cards burned when this rank is the cut card."""
        if self.is_ten_value:
            return 10
        if self == Rank.ACE:
            return 1
        return int(self.value)


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the baccarat point value."""
        return self.rank.point_value

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Create a card from a string like 'A♠', '10H', 'kd'."""
        s = s.strip().upper()
        if len(s) < 2:
            raise ValueError(f"Invalid card string: {s}")

        rank_str = s[:-1]
        suit_str = s[-1]

        rank_map = {rank.value: rank for rank in Rank}
        rank_map["T"] = Rank.TEN

        suit_map = {
            "C": Suit.CLUBS,
            "♣": Suit.CLUBS,
            "D": Suit.DIAMONDS,
            "♦": Suit.DIAMONDS,
            "H": Suit.HEARTS,
            "♥": Suit.HEARTS,
            "S": Suit.SPADES,
            "♠": Suit.SPADES,
        }

        if rank_str not in rank_map:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in suit_map:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(rank_map[rank_str], suit_map[suit_str])


def full_deck() -> list[Card]:
    """Return one of each of the 52 distinct cards, in suit-major order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Shoe:
    """
    A multi-deck baccarat shoe.

    Cards are dealt from the end of the internal list. The shoe is never
    refilled in place: once fewer than ``reserve_cards`` remain the cut card
    has been reached and the owner must prepare a new shoe.
    """

    def __init__(
        self,
        cards: list[Card],
        num_decks: int = 8,
        reserve_cards: int = 15,
    ) -> None:
        """
        Initialize a shoe from an ordered list of undealt cards.

        Args:
            cards: Undealt cards; the last element is the next card out
            num_decks: Number of decks the shoe was built from
            reserve_cards: Cards left behind the cut card
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if reserve_cards < MAX_CARDS_PER_HAND:
            raise ValueError(
                f"Reserve must cover a full hand ({MAX_CARDS_PER_HAND} cards)"
            )

        self._cards = list(cards)
        self._num_decks = num_decks
        self._reserve_cards = reserve_cards

    @classmethod
    def ordered(cls, num_decks: int = 8, reserve_cards: int = 15) -> "Shoe":
        """Build an unshuffled shoe with one of each card per deck."""
        cards = [card for _ in range(num_decks) for card in full_deck()]
        return cls(cards, num_decks=num_decks, reserve_cards=reserve_cards)

    def shuffle(self, rng: Random | None = None) -> None:
        """Shuffle the undealt cards uniformly (Fisher-Yates)."""
        (rng or Random()).shuffle(self._cards)

    def draw(self) -> Card:
        """Draw a card from the shoe."""
        if not self._cards:
            raise ShoeExhausted(0)
        return self._cards.pop()

    def discard(self, count: int) -> list[Card]:
        """Remove up to ``count`` cards from the top without dealing them."""
        count = min(count, len(self._cards))
        return [self._cards.pop() for _ in range(count)]

    def snapshot(self) -> tuple[Card, ...]:
        """Return an immutable copy of the undealt cards."""
        return tuple(self._cards)

    def ensure_can_deal(self) -> None:
        """Raise ``ShoeExhausted`` if the cut card has been reached."""
        if self.needs_shuffle:
            raise ShoeExhausted(len(self._cards))

    @property
    def needs_shuffle(self) -> bool:
        """Check if the cut card has been reached."""
        return len(self._cards) < self._reserve_cards

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def cards_dealt(self) -> int:
        """Return the number of cards removed (dealt or burned)."""
        return self.total_cards - len(self._cards)

    @property
    def total_cards(self) -> int:
        """Return the total number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        """Return the number of decks in the shoe."""
        return self._num_decks

    @property
    def reserve_cards(self) -> int:
        """Return the configured cut-card reserve."""
        return self._reserve_cards

    @property
    def penetration(self) -> float:
        """Return the fraction of the shoe already used."""
        return self.cards_dealt / self.total_cards

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
