"""Core baccarat engine - 100% UI-agnostic."""

from core.cards import Card, Shoe, Rank, Suit
from core.dealing import deal_one_hand
from core.errors import BaccaratError, InvalidManualHand, ShoeExhausted
from core.hand import GameResult, Side, Winner, resolve_hand, score
from core.history import ResultHistory
from core.roadmap import RoadMap, generate_road_map
from core.shoe import burn_cards, create_shoe, prepare_shoe

__all__ = [
    "Card",
    "Shoe",
    "Rank",
    "Suit",
    "deal_one_hand",
    "BaccaratError",
    "InvalidManualHand",
    "ShoeExhausted",
    "GameResult",
    "Side",
    "Winner",
    "resolve_hand",
    "score",
    "ResultHistory",
    "RoadMap",
    "generate_road_map",
    "burn_cards",
    "create_shoe",
    "prepare_shoe",
]
