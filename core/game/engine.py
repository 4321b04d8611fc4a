"""Baccarat table session with state machine."""

import logging
from dataclasses import dataclass
from random import Random
from typing import Callable, Sequence

from transitions import Machine

from core.cards import Card, Shoe
from core.dealing import deal_one_hand
from core.errors import InvalidManualHand, ShoeExhausted
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.state import TableState
from core.hand import GameResult, validate_manual_hand
from core.history import ResultHistory
from core.roadmap import RoadMap, generate_road_map
from core.shoe import DEFAULT_NUM_DECKS, DEFAULT_RESERVE_CARDS, prepare_shoe
from core.statistics.frequency import OutcomeFrequencies
from core.statistics.simulation import (
    DEFAULT_BATCH_SIZE,
    CancellationToken,
    SimulationGeneration,
    SimulationProgress,
    SimulationRun,
    SimulationStats,
    SimulationStatus,
)
from core.strategy.advisor import Suggestion, suggest_next

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UndoSnapshot:
    """Session state captured before a mutation."""

    history: ResultHistory
    last_result: GameResult | None


class BaccaratTable:
    """
    One table session: live shoe, outcome history and forecast.

    All state is held explicitly on the instance and owned by the caller.
    Communication with presentation layers happens through events and
    return values only.
    """

    # State machine states
    STATES = [s.name.lower() for s in TableState]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "reach_cut_card", "source": "ready", "dest": "shoe_exhausted"},
        {"trigger": "load_shoe", "source": "*", "dest": "ready"},
    ]

    def __init__(
        self,
        num_decks: int = DEFAULT_NUM_DECKS,
        reserve_cards: int = DEFAULT_RESERVE_CARDS,
        rng: Random | None = None,
        shoe: Shoe | None = None,
        history: Sequence[str] = (),
    ) -> None:
        """
        Initialize a new table.

        Args:
            num_decks: Number of decks per shoe
            reserve_cards: Cards behind the cut card
            rng: Random number generator for reproducible sessions
            shoe: An existing shoe to resume with (a fresh one is prepared
                otherwise)
            history: Previously recorded winners to resume with
        """
        self.num_decks = num_decks
        self.reserve_cards = reserve_cards
        self._rng = rng or Random()

        self.shoe = shoe if shoe is not None else self._prepare_shoe()
        self.history = ResultHistory(history)
        self.last_result: GameResult | None = None
        self._undo_stack: list[UndoSnapshot] = []

        self.generations = SimulationGeneration()
        self.simulation: SimulationRun | None = None
        self.forecast: SimulationStats | None = None

        self.events = EventEmitter()

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="shoe_exhausted" if self.shoe.needs_shuffle else "ready",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> TableState:
        """Get current table state as enum."""
        return TableState[self._machine_state.upper()]  # type: ignore

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    def _prepare_shoe(self) -> Shoe:
        return prepare_shoe(
            self.num_decks,
            rng=self._rng,
            reserve_cards=self.reserve_cards,
        )

    def _push_undo(self) -> None:
        self._undo_stack.append(UndoSnapshot(self.history.copy(), self.last_result))

    def _record(self, result: GameResult) -> None:
        self._push_undo()
        self.history.append(result.winner)
        self.last_result = result

    def deal(self) -> GameResult | None:
        """
        Deal the next hand from the live shoe.

        The table moves to SHOE_EXHAUSTED as soon as a hand leaves fewer than
        ``reserve_cards`` in the shoe, emitting CUT_CARD_REACHED. The shoe is
        never reshuffled behind the caller's back; call ``new_shoe`` to
        continue.

        Returns:
            The result, or None if the cut card had already been reached
        """
        if self.state == TableState.SHOE_EXHAUSTED:
            self.events.emit_new(
                EventType.CUT_CARD_REACHED,
                cards_remaining=self.shoe.cards_remaining,
            )
            return None

        try:
            result, self.shoe = deal_one_hand(self.shoe)
        except ShoeExhausted as exc:
            logger.warning("Cut card reached with %d cards left", exc.cards_remaining)
            self.reach_cut_card()
            self.events.emit_new(
                EventType.CUT_CARD_REACHED,
                cards_remaining=exc.cards_remaining,
            )
            return None

        self._record(result)
        self.events.emit_new(
            EventType.HAND_DEALT,
            winner=result.winner.value,
            player_score=result.player_score,
            banker_score=result.banker_score,
            is_natural=result.is_natural,
            cards_remaining=self.shoe.cards_remaining,
        )

        if self.shoe.needs_shuffle:
            logger.warning("Cut card reached with %d cards left", self.shoe.cards_remaining)
            self.reach_cut_card()
            self.events.emit_new(
                EventType.CUT_CARD_REACHED,
                cards_remaining=self.shoe.cards_remaining,
            )
        return result

    def record_manual_hand(
        self,
        player_cards: Sequence[Card],
        banker_cards: Sequence[Card],
    ) -> GameResult:
        """
        Record a hand observed at a real table.

        The hand goes through the same natural and third-card checks as a
        dealt hand. The live shoe is not touched.

        Raises:
            InvalidManualHand: if the cards break the drawing rules; nothing
                is recorded
        """
        try:
            result = validate_manual_hand(player_cards, banker_cards)
        except InvalidManualHand as exc:
            self.events.emit_new(EventType.INVALID_HAND, reason=exc.reason)
            raise

        self._record(result)
        self.events.emit_new(
            EventType.MANUAL_HAND_RECORDED,
            winner=result.winner.value,
            player_score=result.player_score,
            banker_score=result.banker_score,
            is_natural=result.is_natural,
        )
        return result

    def undo(self) -> bool:
        """Restore history and last result to before the latest mutation."""
        if not self._undo_stack:
            return False
        snapshot = self._undo_stack.pop()
        self.history = snapshot.history
        self.last_result = snapshot.last_result
        self.events.emit_new(EventType.HAND_UNDONE, hands=len(self.history))
        return True

    def clear_history(self) -> None:
        """Forget recorded hands (undoable)."""
        self._push_undo()
        self.history = ResultHistory()
        self.last_result = None
        self.events.emit_new(EventType.HISTORY_CLEARED)

    def new_shoe(self, num_decks: int | None = None) -> Shoe:
        """Prepare a fresh shoe and return to READY; history is kept."""
        if num_decks is not None:
            self.num_decks = num_decks
        self.cancel_simulation()
        self.shoe = self._prepare_shoe()
        self.forecast = None
        self.load_shoe()
        self.events.emit_new(
            EventType.SHOE_PREPARED,
            num_decks=self.num_decks,
            cards_remaining=self.shoe.cards_remaining,
        )
        return self.shoe

    def shoe_snapshot(self) -> tuple[Card, ...]:
        """Immutable copy of the undealt cards, for forecasting."""
        return self.shoe.snapshot()

    def road_map(self) -> RoadMap:
        return generate_road_map(self.history)

    def advice(self) -> Suggestion:
        return suggest_next(self.history)

    def frequencies(self) -> OutcomeFrequencies:
        return OutcomeFrequencies.from_history(self.history)

    def start_simulation(
        self,
        iterations: int,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rng: Random | None = None,
    ) -> SimulationRun:
        """
        Create a forecast run over a snapshot of the live shoe.

        Any run already in flight becomes stale and will not publish.
        """
        token = CancellationToken(self.generations)
        run = SimulationRun(
            self.shoe_snapshot(),
            iterations,
            token=token,
            batch_size=batch_size,
            rng=rng or Random(self._rng.getrandbits(64)),
        )
        self.simulation = run
        self.events.emit_new(
            EventType.SIMULATION_STARTED,
            generation=run.generation,
            iterations=iterations,
            cards_remaining=len(run.snapshot),
        )
        return run

    def cancel_simulation(self) -> bool:
        """Cancel the live run, if any."""
        run = self.simulation
        if run is None or run.status not in (
            SimulationStatus.PENDING,
            SimulationStatus.RUNNING,
        ):
            return False
        run.cancel()
        return True

    def _report_progress(self, progress: SimulationProgress) -> None:
        if self.generations.is_current(progress.generation):
            self.events.emit_new(
                EventType.SIMULATION_PROGRESS,
                generation=progress.generation,
                completed=progress.completed,
                total=progress.total,
                percent=progress.percent,
            )

    def _finish_simulation(self, run: SimulationRun) -> SimulationStats | None:
        if run.stats is None or not self.generations.is_current(run.generation):
            self.events.emit_new(EventType.SIMULATION_CANCELLED, generation=run.generation)
            return None
        self.forecast = run.stats
        self.events.emit_new(
            EventType.SIMULATION_COMPLETED,
            generation=run.generation,
            p_prob=run.stats.p_prob,
            b_prob=run.stats.b_prob,
            t_prob=run.stats.t_prob,
            total=run.stats.total,
        )
        return run.stats

    def forecast_next(
        self,
        iterations: int,
        batch_size: int = DEFAULT_BATCH_SIZE,
        rng: Random | None = None,
    ) -> SimulationStats | None:
        """Run a forecast to completion in the calling thread."""
        run = self.start_simulation(iterations, batch_size=batch_size, rng=rng)
        run.run(on_progress=self._report_progress)
        return self._finish_simulation(run)

    async def run_simulation(self, run: SimulationRun) -> SimulationStats | None:
        """
        Drive ``run`` cooperatively and publish its stats if still current.

        Returns:
            The stats, or None if the run was cancelled or superseded
        """
        await run.run_async(on_progress=self._report_progress)
        return self._finish_simulation(run)
