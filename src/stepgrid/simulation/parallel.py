"""Sharded Monte Carlo runs across worker processes.

Rounds have no cross-round dependency, so a large run splits into shards
that each play their own bankroll with their own random stream. This is the
balance-agnostic variant: every shard starts from ``params.start_balance``,
and peak balance and drawdown stay shard-local. The merged summary therefore
describes N independent bankrolls, not one long balance trajectory.
"""

import logging
from concurrent.futures import Executor, ProcessPoolExecutor, as_completed
from dataclasses import dataclass

from stepgrid.config import get_config
from stepgrid.errors import InvalidParameterError
from stepgrid.probability.grids import GridConfiguration, resolve_grid, validate_house_edge
from stepgrid.probability.rng import spawn_rngs
from stepgrid.simulation.engine import (
    SimulationParams,
    SimulationSummary,
    StopReason,
    run_simulation,
)

logger = logging.getLogger(__name__)

# Rounds between cancellation checks inside a shard (cancel_event may be a manager proxy).
SHARD_CANCEL_CHECK_INTERVAL = 1000


@dataclass
class ShardedResult:
    """Merged summary plus the per-shard summaries it was built from."""

    summary: SimulationSummary
    shards: list[SimulationSummary]


def split_rounds(rounds: int, shards: int) -> list[int]:
    """Split rounds as evenly as possible; never yields an empty shard.

    >>> split_rounds(10, 3)
    [4, 3, 3]
    """
    shards = min(shards, rounds)
    base, remainder = divmod(rounds, shards)
    return [base + 1 if i < remainder else base for i in range(shards)]


def merge_summaries(summaries: list[SimulationSummary]) -> SimulationSummary:
    """Combine shard summaries into one.

    Counters and balances are summed; longest losing streak, largest payout,
    peak balance and max drawdown take the maximum across shards. RTP and win
    rate are recomputed from the summed counters.

    Raises:
        ValueError: If summaries is empty or mixes grids / targets
    """
    if not summaries:
        raise ValueError("Cannot merge an empty list of summaries")

    first = summaries[0]
    for s in summaries[1:]:
        if (s.grid_size, s.house_edge, s.target_step) != (
            first.grid_size,
            first.house_edge,
            first.target_step,
        ):
            raise ValueError(
                "Cannot merge summaries from different grids, house edges or targets"
            )

    total_wagered = sum(s.total_wagered for s in summaries)
    total_returned = sum(s.total_returned for s in summaries)
    wins = sum(s.wins for s in summaries)
    rounds_completed = sum(s.rounds_completed for s in summaries)

    stopped_reason: StopReason = "completed"
    for s in summaries:
        if s.stopped_reason == "cancelled":
            stopped_reason = "cancelled"
            break
        if s.stopped_reason == "insufficient_balance":
            stopped_reason = "insufficient_balance"

    return SimulationSummary(
        grid_size=first.grid_size,
        house_edge=first.house_edge,
        target_step=first.target_step,
        target_clamped=any(s.target_clamped for s in summaries),
        rounds_requested=sum(s.rounds_requested for s in summaries),
        rounds_completed=rounds_completed,
        stopped_reason=stopped_reason,
        start_balance=sum(s.start_balance for s in summaries),
        end_balance=sum(s.end_balance for s in summaries),
        total_wagered=total_wagered,
        total_returned=total_returned,
        rtp=total_returned / total_wagered if total_wagered > 0 else 0.0,
        wins=wins,
        losses=sum(s.losses for s in summaries),
        win_rate=wins / rounds_completed if rounds_completed > 0 else 0.0,
        peak_balance=max(s.peak_balance for s in summaries),
        max_drawdown=max(s.max_drawdown for s in summaries),
        longest_losing_streak=max(s.longest_losing_streak for s in summaries),
        largest_payout=max(s.largest_payout for s in summaries),
    )


def _run_shard(shard_args: tuple) -> tuple[int, SimulationSummary]:
    """Worker entry point (module-level so it pickles)."""
    index, rounds, start_balance, bet, cfg, house_edge, target_step, rng, cancel_event = shard_args
    summary = run_simulation(
        rounds=rounds,
        start_balance=start_balance,
        bet=bet,
        grid=cfg,
        house_edge=house_edge,
        target_step=target_step,
        rng=rng,
        cancel_event=cancel_event,
        cancel_check_interval=SHARD_CANCEL_CHECK_INTERVAL,
    )
    return index, summary


def run_simulation_sharded(
    params: SimulationParams,
    shards: int,
    seed: int | None = None,
    max_workers: int | None = None,
    house_edge: float | None = None,
    grids: dict[str, GridConfiguration] | None = None,
    cancel_event=None,
    executor: Executor | None = None,
) -> ShardedResult:
    """Run ``params.rounds`` rounds split across independent shards.

    Args:
        params: Parameter record; each shard starts from params.start_balance
        shards: Number of shards (capped at params.rounds)
        seed: Base seed (None = params.seed); shard streams are spawned from it
        max_workers: Process pool size (None = config.sim_workers)
        house_edge: Fraction of fair odds paid (None = use config default)
        grids: Grid registry (None = load from config)
        cancel_event: Picklable signal with is_set(), e.g. a multiprocessing
            Manager Event
        executor: Executor to submit shards to (None = a new ProcessPoolExecutor)

    Returns:
        ShardedResult with the merged summary and per-shard summaries in
        shard order

    Raises:
        InvalidParameterError: If shards < 1
    """
    if shards < 1:
        raise InvalidParameterError(f"shards must be >= 1, got {shards}")

    config = get_config()
    cfg = resolve_grid(params.grid_size, grids)
    if house_edge is None:
        house_edge = config.house_edge
    house_edge = validate_house_edge(house_edge)
    if seed is None:
        seed = params.seed
    if max_workers is None:
        max_workers = config.sim_workers

    shard_rounds = split_rounds(params.rounds, shards)
    rngs = spawn_rngs(seed, len(shard_rounds))
    shard_args = [
        (
            i,
            n,
            params.start_balance,
            params.bet,
            cfg,
            house_edge,
            params.target_step,
            rngs[i],
            cancel_event,
        )
        for i, n in enumerate(shard_rounds)
    ]

    logger.info(
        f"Running {params.rounds:,} rounds in {len(shard_rounds)} shards on grid {cfg.name!r}"
    )

    results: dict[int, SimulationSummary] = {}
    owns_executor = executor is None
    if owns_executor:
        executor = ProcessPoolExecutor(max_workers=max_workers)
    try:
        futures = [executor.submit(_run_shard, args) for args in shard_args]
        for future in as_completed(futures):
            index, summary = future.result()
            logger.debug(
                f"Shard {index} done: {summary.rounds_completed:,} rounds, RTP={summary.rtp:.4f}"
            )
            results[index] = summary
    finally:
        if owns_executor:
            executor.shutdown(wait=True)

    ordered = [results[i] for i in range(len(shard_rounds))]
    return ShardedResult(summary=merge_summaries(ordered), shards=ordered)
