"""Outcome history for a table session."""

from collections import Counter
from typing import Iterable, Iterator

from core.hand import Winner


class ResultHistory:
    """Append-only record of hand winners, oldest first."""

    def __init__(self, results: Iterable[Winner | str] = ()) -> None:
        self._results: list[Winner] = [Winner(r) for r in results]

    def append(self, winner: Winner | str) -> None:
        """Record the winner of a new hand."""
        self._results.append(Winner(winner))

    def undo(self) -> Winner | None:
        """Remove and return the most recent entry, if any."""
        if not self._results:
            return None
        return self._results.pop()

    def clear(self) -> None:
        """Forget every recorded hand."""
        self._results.clear()

    def copy(self) -> "ResultHistory":
        """Return an independent copy."""
        return ResultHistory(self._results)

    def without_ties(self) -> list[Winner]:
        """Return the history with ties removed."""
        return [r for r in self._results if r != Winner.TIE]

    def counts(self) -> Counter:
        """Return the number of hands won by each side."""
        counts = Counter({winner: 0 for winner in Winner})
        counts.update(self._results)
        return counts

    @property
    def last(self) -> Winner | None:
        """Return the most recent winner."""
        return self._results[-1] if self._results else None

    def to_list(self) -> list[str]:
        """Return the history as scoreboard symbols."""
        return [r.value for r in self._results]

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[Winner]:
        return iter(self._results)

    def __getitem__(self, index: int) -> Winner:
        return self._results[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ResultHistory):
            return self._results == other._results
        return NotImplemented

    def __repr__(self) -> str:
        return f"ResultHistory({''.join(self.to_list())!r})"
