"""House-edge verification by large-sample simulation.

theoretical_rtp() and telescoping_product() are exact identities of the odds
model. verify_rtp() and check_step_frequency() sample it and compare against
those identities with standard statistical tests, so an operator can confirm
the payout table really returns ``house_edge`` in the long run.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy import stats

from stepgrid.config import get_config
from stepgrid.probability.grids import GridLike, resolve_grid, validate_house_edge
from stepgrid.probability.model import (
    get_fair_multiplier,
    get_multiplier_for_step,
    get_step_probability,
    get_survival_probability,
    roll_step_success,
)
from stepgrid.probability.rng import RandomSource, make_rng
from stepgrid.simulation.engine import clamp_target_step, run_simulation

logger = logging.getLogger(__name__)

# Rows of uniforms drawn per vectorised batch in verify_rtp()
BATCH_ROUNDS = 100_000


@dataclass
class RtpReport:
    """Measured vs theoretical RTP for unit bets at a fixed cash-out step."""

    grid_size: str
    target_step: int
    rounds: int
    seed: int | None
    theoretical_rtp: float
    measured_rtp: float
    std_error: float
    ci_low: float  # 95% confidence interval on measured RTP
    ci_high: float
    hit_rate: float
    tolerance: float
    method: str = "vectorised"  # "vectorised" or "engine"

    @property
    def delta(self) -> float:
        return abs(self.measured_rtp - self.theoretical_rtp)

    @property
    def passed(self) -> bool:
        return self.delta <= self.tolerance

    @property
    def within_ci(self) -> bool:
        return self.ci_low <= self.theoretical_rtp <= self.ci_high


@dataclass
class FrequencyReport:
    """Observed success frequency of roll_step_success() at one step."""

    grid_size: str
    step_index: int
    trials: int
    successes: int
    expected_probability: float
    p_value: float  # two-sided exact binomial test
    alpha: float

    @property
    def observed_frequency(self) -> float:
        return self.successes / self.trials

    @property
    def passed(self) -> bool:
        return self.p_value >= self.alpha


def theoretical_rtp(
    grid: GridLike,
    target_step: int,
    house_edge: float | None = None,
) -> float:
    """Expected return per unit bet when always cashing out at ``target_step``.

    Survival probability times multiplier; the fair parts cancel, leaving
    the house edge for every reachable target.
    """
    cfg = resolve_grid(grid)
    return get_survival_probability(target_step, cfg) * get_multiplier_for_step(
        target_step, cfg, house_edge
    )


def telescoping_product(grid: GridLike) -> float:
    """Full-path survival probability times the full-path fair multiplier.

    Equals 1 up to float rounding for every grid.
    """
    cfg = resolve_grid(grid)
    return get_survival_probability(cfg.safe_cells, cfg) * get_fair_multiplier(
        cfg.safe_cells, cfg
    )


def verify_rtp(
    grid: GridLike,
    target_step: int,
    rounds: int,
    seed: int | None = None,
    house_edge: float | None = None,
    tolerance: float | None = None,
) -> RtpReport:
    """Estimate RTP from ``rounds`` independent unit bets.

    Rounds are balance-agnostic (no bankroll), so the estimate is unbiased
    by early termination. Sampling is vectorised: each round draws one
    uniform per step up to the target and wins only if every draw lands
    below that step's probability.

    Args:
        grid: GridConfiguration or grid-size identifier
        target_step: Cash-out step (clamped to the practical maximum)
        rounds: Number of rounds to sample
        seed: Seed for the numpy Generator
        house_edge: Fraction of fair odds paid (None = use config default)
        tolerance: Allowed |measured - theoretical| (None = config.rtp_tolerance)

    Returns:
        RtpReport with the estimate, its standard error and 95% CI

    Raises:
        ValueError: If rounds < 1
    """
    if rounds < 1:
        raise ValueError(f"rounds must be >= 1, got {rounds}")

    config = get_config()
    cfg = resolve_grid(grid)
    if house_edge is None:
        house_edge = config.house_edge
    house_edge = validate_house_edge(house_edge)
    if tolerance is None:
        tolerance = config.rtp_tolerance

    target, _ = clamp_target_step(target_step, cfg)
    probs = np.array([get_step_probability(s, cfg) for s in range(1, target + 1)])
    multiplier = get_multiplier_for_step(target, cfg, house_edge)

    rng = make_rng(seed)
    wins = 0
    remaining = rounds
    while remaining > 0:
        batch = min(remaining, BATCH_ROUNDS)
        draws = rng.random((batch, target))
        wins += int(np.count_nonzero(np.all(draws < probs, axis=1)))
        remaining -= batch

    hit_rate = wins / rounds
    measured = hit_rate * multiplier
    # payout per round is Bernoulli(hit_rate) scaled by the multiplier
    std_error = multiplier * math.sqrt(hit_rate * (1 - hit_rate) / rounds)
    z = stats.norm.ppf(0.975)

    report = RtpReport(
        grid_size=cfg.name,
        target_step=target,
        rounds=rounds,
        seed=seed,
        theoretical_rtp=theoretical_rtp(cfg, target, house_edge),
        measured_rtp=measured,
        std_error=std_error,
        ci_low=measured - z * std_error,
        ci_high=measured + z * std_error,
        hit_rate=hit_rate,
        tolerance=tolerance,
    )
    logger.info(
        f"RTP check grid={cfg.name!r} step={target}: measured={measured:.5f} "
        f"theoretical={report.theoretical_rtp:.5f} pass={report.passed}"
    )
    return report


def verify_engine_rtp(
    grid: GridLike,
    target_step: int,
    rounds: int,
    seed: int | None = None,
    house_edge: float | None = None,
    tolerance: float | None = None,
) -> RtpReport:
    """Measure realised RTP by playing unit bets through run_simulation().

    Exercises the same round loop and roll_step_success() sampling that
    simulations use. The bankroll starts at ``rounds`` so no round is ever
    skipped for insufficient balance.

    Args:
        grid: GridConfiguration or grid-size identifier
        target_step: Cash-out step (clamped to the practical maximum)
        rounds: Number of rounds to play
        seed: Seed for the numpy Generator
        house_edge: Fraction of fair odds paid (None = use config default)
        tolerance: Allowed |measured - theoretical| (None = config.rtp_tolerance)

    Returns:
        RtpReport with method="engine"

    Raises:
        ValueError: If rounds < 1
    """
    if rounds < 1:
        raise ValueError(f"rounds must be >= 1, got {rounds}")

    config = get_config()
    cfg = resolve_grid(grid)
    if house_edge is None:
        house_edge = config.house_edge
    house_edge = validate_house_edge(house_edge)
    if tolerance is None:
        tolerance = config.rtp_tolerance

    summary = run_simulation(
        rounds=rounds,
        start_balance=float(rounds),
        bet=1.0,
        grid=cfg,
        house_edge=house_edge,
        target_step=target_step,
        rng=make_rng(seed),
    )
    target = summary.target_step
    multiplier = get_multiplier_for_step(target, cfg, house_edge)

    hit_rate = summary.win_rate
    std_error = multiplier * math.sqrt(hit_rate * (1 - hit_rate) / summary.rounds_completed)
    z = stats.norm.ppf(0.975)

    report = RtpReport(
        grid_size=cfg.name,
        target_step=target,
        rounds=summary.rounds_completed,
        seed=seed,
        theoretical_rtp=theoretical_rtp(cfg, target, house_edge),
        measured_rtp=summary.rtp,
        std_error=std_error,
        ci_low=summary.rtp - z * std_error,
        ci_high=summary.rtp + z * std_error,
        hit_rate=hit_rate,
        tolerance=tolerance,
        method="engine",
    )
    logger.info(
        f"Engine RTP check grid={cfg.name!r} step={target}: measured={summary.rtp:.5f} "
        f"theoretical={report.theoretical_rtp:.5f} pass={report.passed}"
    )
    return report


def check_step_frequency(
    grid: GridLike,
    step_index: int,
    trials: int,
    rng: RandomSource | None = None,
    alpha: float = 0.001,
) -> FrequencyReport:
    """Compare roll_step_success() hit frequency with get_step_probability().

    Args:
        grid: GridConfiguration or grid-size identifier
        step_index: Step to sample
        trials: Number of independent rolls
        rng: Random source (None = unseeded numpy Generator)
        alpha: Significance level; the check fails when p-value < alpha

    Returns:
        FrequencyReport with an exact two-sided binomial test

    Raises:
        ValueError: If trials < 1 or the step is unreachable
    """
    if trials < 1:
        raise ValueError(f"trials must be >= 1, got {trials}")

    cfg = resolve_grid(grid)
    expected = get_step_probability(step_index, cfg)
    if expected == 0.0:
        raise ValueError(f"Step {step_index} is unreachable on grid {cfg.name!r}")

    if rng is None:
        rng = make_rng()
    successes = sum(roll_step_success(step_index, cfg, rng) for _ in range(trials))
    result = stats.binomtest(successes, trials, expected)

    return FrequencyReport(
        grid_size=cfg.name,
        step_index=step_index,
        trials=trials,
        successes=successes,
        expected_probability=expected,
        p_value=float(result.pvalue),
        alpha=alpha,
    )
