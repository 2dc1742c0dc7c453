"""Shrinking-pool odds model.

A round samples cells without replacement from a pool that starts with
``safe_cells`` safe positions and ``stop_point_count`` stop points. Each
successful step removes one safe cell, so the chance of surviving step k
given steps 1..k-1 survived is

    (safe_cells - (k - 1)) / (total_cells - (k - 1))

The cumulative multiplier is the fair (zero-edge) multiplier, the product
of 1 / p(s) for s in 1..k, scaled once by the house edge. The edge is not
compounded per step.

A probability or multiplier of 0 is a sentinel for "unreachable step";
callers must check for it rather than treat it as a tiny probability.
"""

from dataclasses import dataclass

from stepgrid.config import get_config
from stepgrid.probability.grids import GridLike, resolve_grid, validate_house_edge
from stepgrid.probability.rng import RandomSource


@dataclass(frozen=True)
class StepOdds:
    """One row of a grid's odds table."""

    step: int
    probability: float  # P(survive this step | survived all previous)
    survival: float  # P(reach and survive this step from the start)
    multiplier: float  # cumulative payout multiplier incl. house edge


def get_step_probability(step_index: int, grid: GridLike) -> float:
    """Probability that step ``step_index`` (1-based) lands on a safe cell.

    Args:
        step_index: 1-based step position along the path
        grid: GridConfiguration or grid-size identifier

    Returns:
        safe_remaining / total_remaining, or 0.0 if the step is unreachable

    Raises:
        ConfigurationError: If grid is an unknown identifier
    """
    cfg = resolve_grid(grid)
    if step_index < 1:
        return 0.0

    total_remaining = cfg.total_cells - (step_index - 1)
    safe_remaining = cfg.safe_cells - (step_index - 1)
    if total_remaining <= 0 or safe_remaining <= 0:
        return 0.0

    return safe_remaining / total_remaining


def get_fair_multiplier(step_index: int, grid: GridLike) -> float:
    """Zero-edge multiplier for cashing out after ``step_index`` steps.

    Returns:
        Product of 1 / p(s) for s in 1..step_index; 0.0 for step 0, a
        negative step or an unreachable step
    """
    cfg = resolve_grid(grid)
    if step_index < 1:
        return 0.0

    multiplier = 1.0
    for step in range(1, step_index + 1):
        prob = get_step_probability(step, cfg)
        if prob == 0.0:
            return 0.0
        multiplier *= 1.0 / prob
    return multiplier


def get_multiplier_for_step(
    step_index: int,
    grid: GridLike,
    house_edge: float | None = None,
) -> float:
    """Cumulative payout multiplier for cashing out after ``step_index`` steps.

    Args:
        step_index: Steps survived (0 = no progress)
        grid: GridConfiguration or grid-size identifier
        house_edge: Fraction of fair odds paid (None = use config default)

    Returns:
        fair multiplier * house_edge; 0.0 for step 0 or an unreachable step

    Raises:
        ConfigurationError: If grid is unknown or house_edge is outside (0, 1]
    """
    if house_edge is None:
        house_edge = get_config().house_edge
    house_edge = validate_house_edge(house_edge)

    fair = get_fair_multiplier(step_index, grid)
    if fair == 0.0:
        return 0.0
    return fair * house_edge


def get_survival_probability(step_index: int, grid: GridLike) -> float:
    """Probability of surviving every step from 1 through ``step_index``.

    Step 0 is always "survived" (1.0). Negative and unreachable steps give 0.0.
    """
    cfg = resolve_grid(grid)
    if step_index < 0:
        return 0.0
    survival = 1.0
    for step in range(1, step_index + 1):
        survival *= get_step_probability(step, cfg)
    return survival


def roll_step_success(step_index: int, grid: GridLike, rng: RandomSource) -> bool:
    """Sample whether step ``step_index`` succeeds.

    Draws exactly one uniform sample from ``rng`` so replays with the same
    seed reproduce the same path.
    """
    return rng.random() < get_step_probability(step_index, grid)


def build_odds_table(
    grid: GridLike,
    house_edge: float | None = None,
    max_step: int | None = None,
) -> list[StepOdds]:
    """Odds for every step from 1 through ``max_step``.

    Args:
        grid: GridConfiguration or grid-size identifier
        house_edge: Fraction of fair odds paid (None = use config default)
        max_step: Last step to include (None = safe_cells - 1, the practical maximum)

    Returns:
        One StepOdds row per step
    """
    cfg = resolve_grid(grid)
    if house_edge is None:
        house_edge = get_config().house_edge
    if max_step is None:
        max_step = cfg.safe_cells - 1

    rows = []
    survival = 1.0
    for step in range(1, max_step + 1):
        prob = get_step_probability(step, cfg)
        survival *= prob
        rows.append(
            StepOdds(
                step=step,
                probability=prob,
                survival=survival,
                multiplier=get_multiplier_for_step(step, cfg, house_edge),
            )
        )
    return rows
