"""Tests for sharded simulation and summary merging."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from stepgrid.errors import InvalidParameterError
from stepgrid.probability import make_rng
from stepgrid.simulation import (
    SimulationParams,
    SimulationSummary,
    merge_summaries,
    run_simulation,
    run_simulation_sharded,
    split_rounds,
)


def _summary(**overrides) -> SimulationSummary:
    fields = dict(
        grid_size="3",
        house_edge=0.94,
        target_step=3,
        target_clamped=False,
        rounds_requested=10,
        rounds_completed=10,
        stopped_reason="completed",
        start_balance=100.0,
        end_balance=95.0,
        total_wagered=10.0,
        total_returned=5.0,
        rtp=0.5,
        wins=4,
        losses=6,
        win_rate=0.4,
        peak_balance=101.0,
        max_drawdown=0.1,
        longest_losing_streak=3,
        largest_payout=1.41,
    )
    fields.update(overrides)
    return SimulationSummary(**fields)


class TestSplitRounds:
    """split_rounds: even shard sizes."""

    def test_even_split(self):
        assert split_rounds(12, 4) == [3, 3, 3, 3]

    def test_remainder_goes_to_first_shards(self):
        assert split_rounds(10, 3) == [4, 3, 3]

    def test_never_yields_empty_shard(self):
        assert split_rounds(2, 5) == [1, 1]

    def test_total_preserved(self):
        assert sum(split_rounds(1_000_003, 7)) == 1_000_003


class TestMergeSummaries:
    """merge_summaries: sums for counters, max for peak-derived metrics."""

    def test_sums_and_maxes(self):
        a = _summary()
        b = _summary(
            end_balance=130.0,
            total_wagered=20.0,
            total_returned=50.0,
            rounds_requested=20,
            rounds_completed=20,
            wins=12,
            losses=8,
            peak_balance=140.0,
            max_drawdown=0.05,
            longest_losing_streak=2,
            largest_payout=9.0,
        )
        merged = merge_summaries([a, b])

        assert merged.start_balance == 200.0
        assert merged.end_balance == 225.0
        assert merged.total_wagered == 30.0
        assert merged.total_returned == 55.0
        assert merged.rtp == pytest.approx(55 / 30)
        assert merged.wins == 16
        assert merged.losses == 14
        assert merged.win_rate == pytest.approx(16 / 30)
        assert merged.rounds_requested == 30
        assert merged.rounds_completed == 30
        assert merged.peak_balance == 140.0
        assert merged.max_drawdown == 0.1
        assert merged.longest_losing_streak == 3  # max, not sum
        assert merged.largest_payout == 9.0
        assert merged.stopped_reason == "completed"

    def test_stop_reason_propagates(self):
        merged = merge_summaries(
            [_summary(), _summary(stopped_reason="insufficient_balance", rounds_completed=4)]
        )
        assert merged.stopped_reason == "insufficient_balance"

        merged = merge_summaries(
            [_summary(stopped_reason="insufficient_balance"), _summary(stopped_reason="cancelled")]
        )
        assert merged.stopped_reason == "cancelled"

    def test_nothing_wagered(self):
        empty = _summary(
            rounds_completed=0,
            total_wagered=0.0,
            total_returned=0.0,
            wins=0,
            losses=0,
            stopped_reason="insufficient_balance",
        )
        merged = merge_summaries([empty, empty])
        assert merged.rtp == 0.0
        assert merged.win_rate == 0.0

    def test_rejects_empty(self):
        with pytest.raises(ValueError, match="empty"):
            merge_summaries([])

    def test_rejects_mixed_runs(self):
        with pytest.raises(ValueError, match="different"):
            merge_summaries([_summary(), _summary(grid_size="4")])
        with pytest.raises(ValueError, match="different"):
            merge_summaries([_summary(), _summary(target_step=5)])

    def test_single_shard_round_trip(self, grid3, rng):
        summary = run_simulation(500, 200.0, 1.0, grid3, 0.94, 4, rng)
        assert merge_summaries([summary]) == summary


class TestRunSimulationSharded:
    """run_simulation_sharded: independent bankrolls per shard."""

    def _params(self, **overrides) -> SimulationParams:
        fields = dict(
            rounds=4000, start_balance=10_000.0, bet=1.0, grid_size="3", target_step=3, seed=11
        )
        fields.update(overrides)
        return SimulationParams(**fields)

    def test_threaded_shards(self):
        with ThreadPoolExecutor(max_workers=4) as executor:
            result = run_simulation_sharded(self._params(), shards=4, executor=executor)

        assert len(result.shards) == 4
        assert [s.rounds_requested for s in result.shards] == [1000, 1000, 1000, 1000]
        assert result.summary.rounds_completed == 4000
        assert result.summary.start_balance == 40_000.0
        assert result.summary == merge_summaries(result.shards)

    def test_reproducible_with_seed(self):
        with ThreadPoolExecutor(max_workers=2) as executor:
            first = run_simulation_sharded(self._params(), shards=3, executor=executor)
            again = run_simulation_sharded(self._params(), shards=3, executor=executor)
        assert first.summary == again.summary

    def test_shards_use_independent_streams(self):
        with ThreadPoolExecutor(max_workers=2) as executor:
            result = run_simulation_sharded(self._params(), shards=2, executor=executor)
        a, b = result.shards
        assert (a.wins, a.total_returned) != (b.wins, b.total_returned)

    def test_process_pool(self):
        result = run_simulation_sharded(self._params(rounds=2000), shards=2, max_workers=2)

        assert result.summary.rounds_completed == 2000
        assert result.summary.grid_size == "3"
        assert result.summary.wins + result.summary.losses == 2000

    def test_shards_capped_at_rounds(self):
        with ThreadPoolExecutor(max_workers=2) as executor:
            result = run_simulation_sharded(self._params(rounds=3), shards=10, executor=executor)
        assert len(result.shards) == 3

    def test_clamping_carried_into_shards(self):
        with ThreadPoolExecutor(max_workers=2) as executor:
            result = run_simulation_sharded(
                self._params(target_step=50), shards=2, executor=executor
            )
        assert result.summary.target_step == 7
        assert result.summary.target_clamped is True

    def test_rejects_non_positive_shards(self):
        with pytest.raises(InvalidParameterError):
            run_simulation_sharded(self._params(), shards=0)

    def test_sharded_rtp_close_to_single_run(self):
        params = self._params(rounds=200_000, start_balance=1_000_000.0, seed=5)
        with ThreadPoolExecutor(max_workers=4) as executor:
            sharded = run_simulation_sharded(params, shards=4, executor=executor)
        single = run_simulation(
            params.rounds,
            params.start_balance,
            params.bet,
            "3",
            0.94,
            params.target_step,
            make_rng(5),
        )
        # se of RTP at 200k rounds is ~0.0015 for target 3
        assert abs(sharded.summary.rtp - single.rtp) < 0.015
