"""Odds model and Monte Carlo simulator for a grid-based step-wager game.

The read-only surface used by game front ends:

    from stepgrid import get_step_probability, get_multiplier_for_step, roll_step_success

    p = get_step_probability(1, "3")          # 8/9 on the 3x3 grid
    m = get_multiplier_for_step(1, "3")       # fair 9/8 scaled by the house edge
    ok = roll_step_success(1, "3", rng)       # rng: anything with random() -> [0, 1)
"""

from stepgrid.errors import ConfigurationError, InvalidParameterError
from stepgrid.probability import (
    GridConfiguration,
    get_multiplier_for_step,
    get_step_probability,
    roll_step_success,
)
from stepgrid.simulation import (
    SimulationParams,
    SimulationSummary,
    get_max_step_for_grid,
    run_simulation,
    simulate_round,
)

__all__ = [
    "ConfigurationError",
    "InvalidParameterError",
    "GridConfiguration",
    "get_multiplier_for_step",
    "get_step_probability",
    "roll_step_success",
    "SimulationParams",
    "SimulationSummary",
    "get_max_step_for_grid",
    "run_simulation",
    "simulate_round",
]
