"""Odds model for the step-wager grid game.

Pure functions mapping (grid, step index) to a survival probability and a
cumulative multiplier, plus the single sampling call used to decide a step.
"""

from stepgrid.probability.grids import (
    GridConfiguration,
    GridLike,
    load_grids,
    resolve_grid,
    validate_house_edge,
)
from stepgrid.probability.model import (
    StepOdds,
    build_odds_table,
    get_fair_multiplier,
    get_multiplier_for_step,
    get_step_probability,
    get_survival_probability,
    roll_step_success,
)
from stepgrid.probability.rng import RandomSource, make_rng, spawn_rngs

__all__ = [
    "GridConfiguration",
    "GridLike",
    "load_grids",
    "resolve_grid",
    "validate_house_edge",
    "StepOdds",
    "build_odds_table",
    "get_fair_multiplier",
    "get_multiplier_for_step",
    "get_step_probability",
    "get_survival_probability",
    "roll_step_success",
    "RandomSource",
    "make_rng",
    "spawn_rngs",
]
