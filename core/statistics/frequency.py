"""Simple outcome frequencies over a session's history."""

from dataclasses import dataclass
from typing import Iterable

from core.hand import Winner


@dataclass(frozen=True)
class OutcomeFrequencies:
    """Hand counts per outcome with one-decimal percentages."""

    player: int
    banker: int
    tie: int

    @property
    def total(self) -> int:
        return self.player + self.banker + self.tie

    def percent(self, winner: Winner) -> float:
        """Share of hands won by ``winner``, as a percentage."""
        if self.total == 0:
            return 0.0
        count = {
            Winner.PLAYER: self.player,
            Winner.BANKER: self.banker,
            Winner.TIE: self.tie,
        }[winner]
        return round(count / self.total * 100, 1)

    @classmethod
    def from_history(cls, history: Iterable[Winner | str]) -> "OutcomeFrequencies":
        results = [Winner(r) for r in history]
        return cls(
            player=results.count(Winner.PLAYER),
            banker=results.count(Winner.BANKER),
            tie=results.count(Winner.TIE),
        )
