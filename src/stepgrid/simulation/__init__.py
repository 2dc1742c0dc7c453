"""Monte Carlo simulation engine for the step-wager grid game.

Drives the odds model through many independent rounds and aggregates
RTP, win rate, drawdown and losing-streak statistics.
"""

from stepgrid.simulation.engine import (
    RoundOutcome,
    SimulationParams,
    SimulationSummary,
    clamp_target_step,
    get_max_step_for_grid,
    run,
    run_simulation,
    simulate_round,
    validate_simulation_params,
)
from stepgrid.simulation.parallel import (
    ShardedResult,
    merge_summaries,
    run_simulation_sharded,
    split_rounds,
)

__all__ = [
    "RoundOutcome",
    "SimulationParams",
    "SimulationSummary",
    "clamp_target_step",
    "get_max_step_for_grid",
    "run",
    "run_simulation",
    "simulate_round",
    "validate_simulation_params",
    "ShardedResult",
    "merge_summaries",
    "run_simulation_sharded",
    "split_rounds",
]
