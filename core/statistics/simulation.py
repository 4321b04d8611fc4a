"""Monte-Carlo forecast of the next hand from the exact remaining shoe."""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from random import Random
from typing import Callable, Iterator, Sequence

from core.cards import MAX_CARDS_PER_HAND, Card
from core.hand import (
    GameResult,
    Side,
    Winner,
    banker_should_draw,
    decide_winner,
    player_should_draw,
    resolve_hand,
)

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50_000


@dataclass(frozen=True)
class SimulationStats:
    """
    Aggregate outcome of a finished simulation.

    Probabilities are percentages rounded to two decimals, computed once
    from the final counts.
    """

    p_wins: int
    b_wins: int
    t_wins: int
    total: int
    p_prob: float
    b_prob: float
    t_prob: float
    example_hand: GameResult | None = None

    @classmethod
    def empty(cls) -> "SimulationStats":
        """Stats for a shoe too short to deal a hand."""
        return cls(0, 0, 0, 0, 0.0, 0.0, 0.0, None)

    @property
    def leader(self) -> Winner | None:
        """Return the most frequent outcome, or None if nothing was simulated."""
        if self.total == 0:
            return None
        return _leading_side(self.p_wins, self.b_wins, self.t_wins)


def _leading_side(p_wins: int, b_wins: int, t_wins: int) -> Winner:
    if t_wins > p_wins and t_wins > b_wins:
        return Winner.TIE
    return Winner.PLAYER if p_wins > b_wins else Winner.BANKER


def _percent(count: int, total: int) -> float:
    return round(count / total * 100, 2)


@dataclass
class BatchTally:
    """Win counts accumulated over one or more batches."""

    p_wins: int = 0
    b_wins: int = 0
    t_wins: int = 0
    examples: dict[Winner, GameResult] = field(default_factory=dict)

    @property
    def hands(self) -> int:
        return self.p_wins + self.b_wins + self.t_wins

    def merge(self, other: "BatchTally") -> None:
        """Add another tally's counts; earlier examples are kept."""
        self.p_wins += other.p_wins
        self.b_wins += other.b_wins
        self.t_wins += other.t_wins
        for winner, example in other.examples.items():
            self.examples.setdefault(winner, example)

    def finalize(self) -> SimulationStats:
        """Convert counts to percentages and pick the example hand."""
        total = self.hands
        if total == 0:
            return SimulationStats.empty()
        leader = _leading_side(self.p_wins, self.b_wins, self.t_wins)
        return SimulationStats(
            p_wins=self.p_wins,
            b_wins=self.b_wins,
            t_wins=self.t_wins,
            total=total,
            p_prob=_percent(self.p_wins, total),
            b_prob=_percent(self.b_wins, total),
            t_prob=_percent(self.t_wins, total),
            example_hand=self.examples.get(leader),
        )


def play_sampled_hand(values: Sequence[int], positions: Sequence[int]) -> Winner:
    """
    Play one hand from six pre-sampled shoe positions.

    Positions 0-3 are dealt player, banker, player, banker. Position 4 is the
    first third card (player's, or banker's when the player stands) and
    position 5 the banker's third card after a player draw.
    """
    p_score = (values[positions[0]] + values[positions[2]]) % 10
    b_score = (values[positions[1]] + values[positions[3]]) % 10

    if p_score >= 8 or b_score >= 8:
        return decide_winner(p_score, b_score)

    next_card = 4
    p3 = None
    if player_should_draw(p_score):
        p3 = values[positions[next_card]]
        p_score = (p_score + p3) % 10
        next_card += 1

    if banker_should_draw(b_score, p3):
        b_score = (b_score + values[positions[next_card]]) % 10

    return decide_winner(p_score, b_score)


def rebuild_hand(snapshot: Sequence[Card], positions: Sequence[int]) -> GameResult:
    """Reconstruct the full result of a sampled hand for display."""
    third_cards = iter(snapshot[i] for i in positions[4:])

    def draw(side: Side) -> Card:
        return next(third_cards)

    return resolve_hand(
        (snapshot[positions[0]], snapshot[positions[2]]),
        (snapshot[positions[1]], snapshot[positions[3]]),
        draw,
    )


def run_batch(snapshot: Sequence[Card], size: int, rng: Random) -> BatchTally:
    """
    Simulate ``size`` independent hands against ``snapshot``.

    Cards are drawn without replacement within a hand and with replacement
    across hands; the snapshot itself is never modified.
    """
    values = [card.value for card in snapshot]
    population = range(len(values))
    tally = BatchTally()

    for _ in range(size):
        positions = rng.sample(population, MAX_CARDS_PER_HAND)
        winner = play_sampled_hand(values, positions)
        if winner == Winner.PLAYER:
            tally.p_wins += 1
        elif winner == Winner.BANKER:
            tally.b_wins += 1
        else:
            tally.t_wins += 1
        if winner not in tally.examples:
            tally.examples[winner] = rebuild_hand(snapshot, positions)

    return tally


class SimulationGeneration:
    """
    Per-session counter identifying the live simulation.

    Starting a run advances the counter; any run holding an older value is
    stale and must not publish.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def advance(self) -> int:
        """Invalidate every earlier run and return the new generation."""
        with self._lock:
            self._value += 1
            return self._value

    @property
    def current(self) -> int:
        with self._lock:
            return self._value

    def is_current(self, generation: int) -> bool:
        return self.current == generation


class CancellationToken:
    """Cancels a run explicitly or when a newer generation starts."""

    def __init__(self, generations: SimulationGeneration | None = None) -> None:
        self._generations = generations or SimulationGeneration()
        self.generation = self._generations.advance()
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or not self._generations.is_current(
            self.generation
        )


class SimulationStatus(Enum):
    """Lifecycle of a simulation run."""

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    CANCELLED = auto()


@dataclass(frozen=True)
class SimulationProgress:
    """Progress reported after each batch."""

    generation: int
    completed: int
    total: int

    @property
    def percent(self) -> float:
        return round(self.completed / self.total * 100, 1) if self.total else 100.0


ProgressHandler = Callable[[SimulationProgress], None]


class SimulationRun:
    """
    One cancellable, batched simulation over a frozen shoe snapshot.

    Work is done in fixed-size batches. Control returns to the caller after
    every batch, cancellation is checked before every batch, and stats are
    only published if the run finished while still current.
    """

    def __init__(
        self,
        snapshot: Sequence[Card],
        iterations: int,
        token: CancellationToken | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a run.

        Args:
            snapshot: Undealt cards; copied into an immutable tuple
            iterations: Number of hands to simulate
            token: Cancellation token (a private one is created if omitted)
            batch_size: Hands per batch
            rng: Random number generator for reproducible runs
        """
        if iterations < 1:
            raise ValueError("Simulation needs at least 1 iteration")
        if batch_size < 1:
            raise ValueError("Batch size must be positive")

        self.snapshot = tuple(snapshot)
        self.iterations = iterations
        self.token = token or CancellationToken()
        self.batch_size = batch_size
        self._rng = rng or Random()
        self._tally = BatchTally()
        self._completed = 0
        self.status = SimulationStatus.PENDING
        self.stats: SimulationStats | None = None

    @property
    def generation(self) -> int:
        return self.token.generation

    @property
    def progress(self) -> SimulationProgress:
        return SimulationProgress(self.generation, self._completed, self.iterations)

    def cancel(self) -> None:
        """Request cancellation; takes effect before the next batch."""
        self.token.cancel()

    def batches(self) -> Iterator[SimulationProgress]:
        """Run batch by batch, yielding progress after each one."""
        if self.status is not SimulationStatus.PENDING:
            raise RuntimeError(f"Simulation already {self.status.name.lower()}")
        self.status = SimulationStatus.RUNNING

        if len(self.snapshot) < MAX_CARDS_PER_HAND:
            self._publish(SimulationStats.empty())
            return

        while self._completed < self.iterations:
            if self.token.cancelled:
                self._cancel()
                return
            size = min(self.batch_size, self.iterations - self._completed)
            self._tally.merge(run_batch(self.snapshot, size, self._rng))
            self._completed += size
            logger.debug(
                "Simulation %d: %d/%d hands",
                self.generation,
                self._completed,
                self.iterations,
            )
            yield self.progress

        if self.token.cancelled:
            self._cancel()
            return
        self._publish(self._tally.finalize())

    def run(self, on_progress: ProgressHandler | None = None) -> SimulationStats | None:
        """Run to completion in the calling thread."""
        for progress in self.batches():
            if on_progress is not None:
                on_progress(progress)
        return self.stats

    async def run_async(
        self,
        on_progress: ProgressHandler | None = None,
    ) -> SimulationStats | None:
        """Run cooperatively, suspending between batches."""
        for progress in self.batches():
            if on_progress is not None:
                on_progress(progress)
            await asyncio.sleep(0)
        return self.stats

    def _publish(self, stats: SimulationStats) -> None:
        self.stats = stats
        self.status = SimulationStatus.COMPLETED
        logger.info(
            "Simulation %d finished: P %.2f%% B %.2f%% T %.2f%% over %d hands",
            self.generation,
            stats.p_prob,
            stats.b_prob,
            stats.t_prob,
            stats.total,
        )

    def _cancel(self) -> None:
        self.status = SimulationStatus.CANCELLED
        logger.debug(
            "Simulation %d cancelled after %d hands", self.generation, self._completed
        )


def simulate(
    snapshot: Sequence[Card],
    iterations: int,
    rng: Random | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> SimulationStats:
    """Simulate ``iterations`` next hands from ``snapshot`` and return the stats."""
    run = SimulationRun(snapshot, iterations, batch_size=batch_size, rng=rng)
    stats = run.run()
    if stats is None:
        raise RuntimeError(f"Simulation {run.generation} was cancelled")
    return stats
