"""Tests for the next-hand Monte-Carlo forecast."""

from random import Random

import pytest

from conftest import cards
from core.hand import Winner, validate_manual_hand
from core.shoe import create_shoe
from core.statistics import (
    CancellationToken,
    SimulationGeneration,
    SimulationRun,
    SimulationStats,
    SimulationStatus,
    simulate,
)
from core.statistics.simulation import (
    BatchTally,
    play_sampled_hand,
    rebuild_hand,
    run_batch,
)


@pytest.fixture
def snapshot():
    """Undealt cards of a fresh 8-deck shoe."""
    return create_shoe(8, rng=Random(5)).snapshot()


class TestPlaySampledHand:
    """Tests for playing a hand from sampled positions."""

    def test_natural(self):
        values = [9, 2, 0, 3, 7, 7]
        assert play_sampled_hand(values, range(6)) == Winner.PLAYER

    def test_player_third_card_is_position_four(self):
        # Player 1+2=3 draws 6 -> 9; banker 3+3=6 draws 2 -> 8
        values = [1, 3, 2, 3, 6, 2]
        assert play_sampled_hand(values, range(6)) == Winner.PLAYER

    def test_banker_takes_position_four_when_player_stands(self):
        # Player 6 stands; banker 5 draws 4 -> 9
        values = [3, 2, 3, 3, 4, 0]
        assert play_sampled_hand(values, range(6)) == Winner.BANKER

    def test_positions_are_indexes(self):
        values = [0, 0, 0, 0, 5, 4]
        # Player 5+0 draws the 4 -> 9; banker 0+0 draws the 0 -> 0
        winner = play_sampled_hand(values, [4, 0, 1, 2, 5, 3])
        assert winner == Winner.PLAYER

    def test_matches_full_resolution(self):
        """Test the fast path against the full hand rules."""
        rng = Random(11)
        snap = create_shoe(1, rng=rng).snapshot()
        values = [card.value for card in snap]

        for _ in range(500):
            positions = rng.sample(range(len(snap)), 6)
            fast = play_sampled_hand(values, positions)
            assert rebuild_hand(snap, positions).winner == fast


class TestBatchTally:
    """Tests for combining batch counts."""

    def test_merge_adds_counts_and_keeps_first_example(self):
        early = validate_manual_hand(cards("9H", "KD"), cards("4S", "2C"))
        late = validate_manual_hand(cards("8H", "KD"), cards("4S", "2C"))
        tie = validate_manual_hand(cards("9H", "KD"), cards("9S", "KC"))
        first = BatchTally(p_wins=3, b_wins=1, examples={Winner.PLAYER: early})
        second = BatchTally(
            p_wins=1, b_wins=2, t_wins=1, examples={Winner.PLAYER: late, Winner.TIE: tie}
        )
        first.merge(second)
        assert (first.p_wins, first.b_wins, first.t_wins) == (4, 3, 1)
        assert first.examples[Winner.PLAYER] is early
        assert first.examples[Winner.TIE] is tie

    def test_finalize_empty(self):
        assert BatchTally().finalize() == SimulationStats.empty()

    def test_finalize_rounds_percentages(self):
        stats = BatchTally(p_wins=1, b_wins=1, t_wins=1).finalize()
        assert stats.p_prob == 33.33
        assert stats.total == 3


class TestSimulate:
    """Tests for complete simulations."""

    def test_fresh_shoe_converges(self, snapshot):
        """Test that a fresh shoe lands near the known baccarat odds."""
        stats = simulate(snapshot, 20_000, rng=Random(42), batch_size=5_000)
        assert stats.total == 20_000
        assert stats.p_prob == pytest.approx(44.6, abs=2.0)
        assert stats.b_prob == pytest.approx(45.8, abs=2.0)
        assert stats.t_prob == pytest.approx(9.5, abs=1.5)

    def test_probabilities_sum_to_100(self, snapshot):
        stats = simulate(snapshot, 3_000, rng=Random(3))
        assert stats.p_prob + stats.b_prob + stats.t_prob == pytest.approx(100, abs=0.02)
        assert stats.p_wins + stats.b_wins + stats.t_wins == stats.total

    def test_example_hand_matches_leader(self, snapshot):
        stats = simulate(snapshot, 2_000, rng=Random(8))
        assert stats.example_hand is not None
        assert stats.example_hand.winner == stats.leader

    def test_reproducible_with_seed(self, snapshot):
        first = simulate(snapshot, 1_000, rng=Random(1), batch_size=300)
        second = simulate(snapshot, 1_000, rng=Random(1), batch_size=300)
        assert first == second

    def test_snapshot_not_mutated(self):
        shoe = create_shoe(8, rng=Random(2))
        before = shoe.snapshot()
        simulate(shoe.snapshot(), 1_000, rng=Random(2))
        assert shoe.snapshot() == before

    def test_short_snapshot_gives_empty_stats(self):
        stats = simulate(cards("9H", "2D", "KS", "3C", "4H"), 100)
        assert stats == SimulationStats.empty()
        assert stats.leader is None

    def test_all_ten_values_always_tie(self):
        """Test a degenerate shoe: 0 v 0, both draw zeros."""
        stats = simulate(cards(*["KH"] * 10), 200, rng=Random(0))
        assert stats.t_wins == 200
        assert stats.t_prob == 100.0
        assert stats.leader == Winner.TIE

    def test_run_without_stats_raises(self, monkeypatch):
        monkeypatch.setattr(SimulationRun, "run", lambda self, on_progress=None: None)
        with pytest.raises(RuntimeError, match="cancelled"):
            simulate(cards(*["KH"] * 10), 10)

    def test_run_batch_counts(self, snapshot):
        tally = run_batch(snapshot, 500, Random(4))
        assert tally.hands == 500


class TestSimulationRun:
    """Tests for batching, progress and cancellation."""

    def test_invalid_arguments(self, snapshot):
        with pytest.raises(ValueError):
            SimulationRun(snapshot, 0)
        with pytest.raises(ValueError):
            SimulationRun(snapshot, 10, batch_size=0)

    def test_progress_after_each_batch(self, snapshot):
        run = SimulationRun(snapshot, 250, batch_size=100, rng=Random(1))
        seen = []
        stats = run.run(on_progress=seen.append)
        assert [p.completed for p in seen] == [100, 200, 250]
        assert seen[-1].percent == 100.0
        assert stats is not None
        assert stats.total == 250
        assert run.status == SimulationStatus.COMPLETED

    def test_cannot_run_twice(self, snapshot):
        run = SimulationRun(snapshot, 10, rng=Random(1))
        run.run()
        with pytest.raises(RuntimeError):
            run.run()

    def test_cancel_before_first_batch(self, snapshot):
        """Test that a cancelled run never publishes stats."""
        run = SimulationRun(snapshot, 1_000, batch_size=100, rng=Random(1))
        run.cancel()
        assert run.run() is None
        assert run.stats is None
        assert run.status == SimulationStatus.CANCELLED
        assert run.progress.completed == 0

    def test_cancel_between_batches(self, snapshot):
        run = SimulationRun(snapshot, 1_000, batch_size=100, rng=Random(1))
        batches = run.batches()
        next(batches)
        run.cancel()
        assert list(batches) == []
        assert run.stats is None
        assert run.progress.completed == 100

    def test_cancel_after_last_batch(self, snapshot):
        """Test that cancelling while the last batch is out still discards it."""
        run = SimulationRun(snapshot, 100, batch_size=100, rng=Random(1))
        batches = run.batches()
        next(batches)
        run.cancel()
        assert list(batches) == []
        assert run.stats is None
        assert run.status == SimulationStatus.CANCELLED

    def test_newer_generation_supersedes(self, snapshot):
        """Test that starting run B makes run A stop and discard its work."""
        generations = SimulationGeneration()
        run_a = SimulationRun(
            snapshot, 1_000, token=CancellationToken(generations), batch_size=100
        )
        batches_a = run_a.batches()
        next(batches_a)

        run_b = SimulationRun(
            snapshot, 300, token=CancellationToken(generations), batch_size=100
        )
        assert run_b.generation == run_a.generation + 1
        assert run_a.token.cancelled
        assert not run_b.token.cancelled

        assert list(batches_a) == []
        assert run_a.stats is None
        assert run_b.run() is not None
        assert run_b.stats.total == 300

    def test_generation_counter(self):
        generations = SimulationGeneration()
        assert generations.current == 0
        assert generations.advance() == 1
        assert generations.is_current(1)
        assert not generations.is_current(0)

    @pytest.mark.asyncio
    async def test_run_async(self, snapshot):
        run = SimulationRun(snapshot, 300, batch_size=100, rng=Random(6))
        seen = []
        stats = await run.run_async(on_progress=seen.append)
        assert len(seen) == 3
        assert stats is not None
        assert stats.total == 300

    def test_short_snapshot_completes_without_batches(self):
        run = SimulationRun(cards("9H", "2D"), 1_000)
        assert list(run.batches()) == []
        assert run.stats == SimulationStats.empty()
        assert run.status == SimulationStatus.COMPLETED
