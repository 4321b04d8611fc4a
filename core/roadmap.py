"""Big Road placement and the three derived roads."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Collection, Iterable

from core.hand import Winner

GRID_ROWS = 6

BIG_EYE_BOY_GAP = 1
SMALL_ROAD_GAP = 2
COCKROACH_PIG_GAP = 3


class RoadColor(str, Enum):
    """Derived road marks."""

    RED = "red"
    BLUE = "blue"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RoadCell:
    """A placed Big Road entry; ties are counted on the cell they follow."""

    col: int
    row: int
    winner: Winner
    ties: int = 0


@dataclass(frozen=True)
class RoadMap:
    """Big Road cells in placement order plus the derived colour sequences."""

    cells: tuple[RoadCell, ...] = ()
    big_eye_boy: tuple[RoadColor, ...] = ()
    small_road: tuple[RoadColor, ...] = ()
    cockroach_pig: tuple[RoadColor, ...] = ()
    leading_ties: int = 0

    @property
    def num_columns(self) -> int:
        """Number of Big Road columns in use."""
        return max((cell.col for cell in self.cells), default=-1) + 1

    def grid(self) -> list[list[RoadCell | None]]:
        """Return the Big Road as ``GRID_ROWS`` rows of cells (None = empty)."""
        rows: list[list[RoadCell | None]] = [
            [None] * self.num_columns for _ in range(GRID_ROWS)
        ]
        for cell in self.cells:
            rows[cell.row][cell.col] = cell
        return rows


@dataclass
class _BigRoad:
    """Mutable placement state while scanning a history."""

    cells: list[RoadCell] = field(default_factory=list)
    occupied: set[tuple[int, int]] = field(default_factory=set)
    leading_ties: int = 0

    def place(self, winner: Winner) -> None:
        if not self.cells:
            self._put(0, 0, winner)
            return

        last = self.cells[-1]
        if winner != last.winner:
            self._put(last.col + 1, 0, winner)
            return

        below = (last.col, last.row + 1)
        if last.row + 1 < GRID_ROWS and below not in self.occupied:
            self._put(last.col, last.row + 1, winner)
        else:
            # Dragon tail: turn right and stay on this row.
            self._put(last.col + 1, last.row, winner)

    def add_tie(self) -> None:
        if not self.cells:
            self.leading_ties += 1
            return
        last = self.cells[-1]
        self.cells[-1] = replace(last, ties=last.ties + 1)

    def _put(self, col: int, row: int, winner: Winner) -> None:
        self.cells.append(RoadCell(col=col, row=row, winner=winner))
        self.occupied.add((col, row))


def build_big_road(history: Iterable[Winner | str]) -> tuple[tuple[RoadCell, ...], int]:
    """
    Place each non-tie outcome on the Big Road.

    Returns:
        The placed cells in order, and the number of ties seen before the
        first placed cell (those have no cell to annotate)
    """
    road = _BigRoad()
    for result in history:
        winner = Winner(result)
        if winner == Winner.TIE:
            road.add_tie()
        else:
            road.place(winner)
    return tuple(road.cells), road.leading_ties


def column_depth(occupied: Collection[tuple[int, int]], col: int) -> int:
    """Length of the contiguous run of occupied cells from row 0 of ``col``."""
    if col < 0:
        return 0
    depth = 0
    while depth < GRID_ROWS and (col, depth) in occupied:
        depth += 1
    return depth


def derived_color(
    occupied: Collection[tuple[int, int]],
    col: int,
    row: int,
    gap: int,
) -> RoadColor:
    """
    Colour of the derived-road mark for the Big Road cell at (col, row).

    A new column compares the depth of the previous column with the column
    ``gap`` further left; a continuing column checks whether the cell ``gap``
    columns to the left on the same row is occupied.
    """
    if row == 0:
        same = column_depth(occupied, col - 1) == column_depth(occupied, col - 1 - gap)
    else:
        same = (col - gap, row) in occupied
    return RoadColor.RED if same else RoadColor.BLUE


def derived_road(cells: Iterable[RoadCell], gap: int) -> tuple[RoadColor, ...]:
    """
    Compute one derived road over Big Road cells in placement order.

    Each cell is judged against the grid as it stood when that cell was
    placed. Cells left of column ``gap + 1`` produce no mark.
    """
    occupied: set[tuple[int, int]] = set()
    colors = []
    for cell in cells:
        occupied.add((cell.col, cell.row))
        if cell.col >= gap + 1:
            colors.append(derived_color(occupied, cell.col, cell.row, gap))
    return tuple(colors)


def generate_road_map(history: Iterable[Winner | str]) -> RoadMap:
    """Build the Big Road and the Big Eye Boy, Small Road and Cockroach Pig."""
    cells, leading_ties = build_big_road(history)
    return RoadMap(
        cells=cells,
        big_eye_boy=derived_road(cells, BIG_EYE_BOY_GAP),
        small_road=derived_road(cells, SMALL_ROAD_GAP),
        cockroach_pig=derived_road(cells, COCKROACH_PIG_GAP),
        leading_ties=leading_ties,
    )
