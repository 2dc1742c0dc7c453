"""Headless round simulation and bankroll aggregation.

simulate_round() plays one round against the odds model; run_simulation()
plays many rounds against a single bankroll and aggregates RTP, win rate,
drawdown and streak statistics. Neither touches any UI or keeps state
between calls.
"""

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Literal

from stepgrid.config import get_config
from stepgrid.errors import ConfigurationError, InvalidParameterError
from stepgrid.probability.grids import (
    GridConfiguration,
    GridLike,
    resolve_grid,
    validate_house_edge,
)
from stepgrid.probability.model import get_multiplier_for_step, roll_step_success
from stepgrid.probability.rng import RandomSource, make_rng

logger = logging.getLogger(__name__)

StopReason = Literal["completed", "insufficient_balance", "cancelled"]


@dataclass(frozen=True)
class RoundOutcome:
    """Result of one simulated round."""

    won: bool
    steps_reached: int
    payout: float  # 0.0 on a loss
    multiplier: float | None  # set only when won
    target_step: int  # effective target after clamping
    target_clamped: bool


@dataclass
class SimulationSummary:
    """Aggregate statistics over a run of rounds against one bankroll."""

    grid_size: str
    house_edge: float
    target_step: int  # effective target after clamping
    target_clamped: bool
    rounds_requested: int
    rounds_completed: int
    stopped_reason: StopReason
    start_balance: float
    end_balance: float
    total_wagered: float
    total_returned: float
    rtp: float  # total_returned / total_wagered, 0.0 if nothing wagered
    wins: int
    losses: int
    win_rate: float  # wins / rounds_completed, 0.0 if no rounds
    peak_balance: float
    max_drawdown: float  # largest (peak - balance) / peak seen, in [0, 1]
    longest_losing_streak: int
    largest_payout: float

    @property
    def net_pnl(self) -> float:
        return self.end_balance - self.start_balance

    @property
    def net_pnl_pct(self) -> float:
        return self.net_pnl / self.start_balance * 100 if self.start_balance else 0.0

    @property
    def rtp_pct(self) -> float:
        return self.rtp * 100

    @property
    def win_rate_pct(self) -> float:
        return self.win_rate * 100

    @property
    def max_drawdown_pct(self) -> float:
        return self.max_drawdown * 100

    def to_dict(self) -> dict:
        """Interchange form for reporting and CLI front ends."""
        data = asdict(self)
        data.update(
            net_pnl=self.net_pnl,
            net_pnl_pct=self.net_pnl_pct,
            rtp_pct=self.rtp_pct,
            win_rate_pct=self.win_rate_pct,
            max_drawdown_pct=self.max_drawdown_pct,
        )
        return data


@dataclass(frozen=True)
class SimulationParams:
    """Parameter record accepted by the simulation entry point."""

    rounds: int
    start_balance: float
    bet: float
    grid_size: str
    target_step: int
    seed: int | None = None

    def __post_init__(self) -> None:
        validate_simulation_params(
            self.rounds, self.start_balance, self.bet, self.target_step
        )


def validate_simulation_params(
    rounds: int,
    start_balance: float,
    bet: float,
    target_step: int,
) -> None:
    """Reject malformed simulation parameters before any work starts.

    Raises:
        InvalidParameterError: If rounds < 1, start_balance <= 0, bet <= 0
            or target_step < 1
    """
    if rounds < 1:
        raise InvalidParameterError(f"rounds must be >= 1, got {rounds}")
    if start_balance <= 0:
        raise InvalidParameterError(
            f"start_balance must be positive, got {start_balance}"
        )
    if bet <= 0:
        raise InvalidParameterError(f"bet must be positive, got {bet}")
    if target_step < 1:
        raise InvalidParameterError(f"target_step must be >= 1, got {target_step}")


def get_max_step_for_grid(grid: GridLike) -> int:
    """Highest practical target step: safe_cells - 1.

    The last safe cell is excluded because its draw has the lowest
    probability and its multiplier is the most degenerate for display.
    The odds formula itself stays valid up to safe_cells.
    """
    return resolve_grid(grid).safe_cells - 1


def clamp_target_step(target_step: int, grid: GridLike) -> tuple[int, bool]:
    """Clamp a target step to the grid's practical maximum.

    Returns:
        (effective_target, clamped)

    Raises:
        InvalidParameterError: If target_step < 1
        ConfigurationError: If the grid has no practical target (one safe cell)
    """
    cfg = resolve_grid(grid)
    if target_step < 1:
        raise InvalidParameterError(f"target_step must be >= 1, got {target_step}")

    max_step = get_max_step_for_grid(cfg)
    if max_step < 1:
        raise ConfigurationError(
            f"Grid {cfg.name!r} has {cfg.safe_cells} safe cell(s); no practical target step"
        )

    if target_step > max_step:
        logger.warning(
            f"Target step {target_step} exceeds max {max_step} for grid {cfg.name!r}; "
            f"clamping to {max_step}"
        )
        return max_step, True
    return target_step, False


def _play_round(
    cfg: GridConfiguration,
    house_edge: float,
    target_step: int,
    target_clamped: bool,
    rng: RandomSource,
    bet: float,
) -> RoundOutcome:
    """Play one round against an already-clamped target."""
    step_index = 0
    while True:
        step_index += 1

        if not roll_step_success(step_index, cfg, rng):
            return RoundOutcome(
                won=False,
                steps_reached=step_index - 1,
                payout=0.0,
                multiplier=None,
                target_step=target_step,
                target_clamped=target_clamped,
            )

        if step_index >= target_step:
            multiplier = get_multiplier_for_step(step_index, cfg, house_edge)
            return RoundOutcome(
                won=True,
                steps_reached=step_index,
                payout=bet * multiplier,
                multiplier=multiplier,
                target_step=target_step,
                target_clamped=target_clamped,
            )


def simulate_round(
    grid: GridLike,
    house_edge: float | None,
    target_step: int,
    rng: RandomSource,
    bet: float = 1.0,
) -> RoundOutcome:
    """Simulate one round, cashing out at ``target_step``.

    Args:
        grid: GridConfiguration or grid-size identifier
        house_edge: Fraction of fair odds paid (None = use config default)
        target_step: Step to cash out at; clamped to get_max_step_for_grid()
        rng: Uniform random source, one draw per attempted step
        bet: Stake used to compute the payout

    Returns:
        RoundOutcome; target_clamped reports whether the target was lowered

    Raises:
        ConfigurationError: If grid is unknown or house_edge is outside (0, 1]
        InvalidParameterError: If target_step < 1 or bet <= 0
    """
    cfg = resolve_grid(grid)
    if house_edge is None:
        house_edge = get_config().house_edge
    house_edge = validate_house_edge(house_edge)
    if bet <= 0:
        raise InvalidParameterError(f"bet must be positive, got {bet}")

    effective_target, clamped = clamp_target_step(target_step, cfg)
    return _play_round(cfg, house_edge, effective_target, clamped, rng, bet)


def run_simulation(
    rounds: int,
    start_balance: float,
    bet: float,
    grid: GridLike,
    house_edge: float | None,
    target_step: int,
    rng: RandomSource,
    cancel_event: threading.Event | None = None,
    cancel_check_interval: int = 1,
) -> SimulationSummary:
    """Play up to ``rounds`` rounds against a single bankroll.

    Args:
        rounds: Maximum number of rounds to play
        start_balance: Opening bankroll
        bet: Stake per round, deducted before each round
        grid: GridConfiguration or grid-size identifier
        house_edge: Fraction of fair odds paid (None = use config default)
        target_step: Cash-out step; clamped once before the run
        rng: Uniform random source
        cancel_event: Anything with is_set(); checked between rounds
        cancel_check_interval: Check cancel_event every N rounds

    Returns:
        SimulationSummary. rounds_completed < rounds when the bankroll
        cannot cover the next bet or the run was cancelled.

    Raises:
        InvalidParameterError: On malformed parameters (before any rounds run)
        ConfigurationError: If grid is unknown or house_edge is outside (0, 1]
    """
    validate_simulation_params(rounds, start_balance, bet, target_step)
    if cancel_check_interval < 1:
        raise InvalidParameterError(
            f"cancel_check_interval must be >= 1, got {cancel_check_interval}"
        )
    cfg = resolve_grid(grid)
    if house_edge is None:
        house_edge = get_config().house_edge
    house_edge = validate_house_edge(house_edge)
    effective_target, clamped = clamp_target_step(target_step, cfg)

    balance = start_balance
    peak_balance = balance
    max_drawdown = 0.0

    total_wagered = 0.0
    total_returned = 0.0
    wins = 0
    losses = 0
    largest_payout = 0.0
    current_losing_streak = 0
    longest_losing_streak = 0

    rounds_completed = 0
    stopped_reason: StopReason = "completed"

    for i in range(rounds):
        if (
            cancel_event is not None
            and i % cancel_check_interval == 0
            and cancel_event.is_set()
        ):
            logger.info(f"Simulation cancelled after {i}/{rounds} rounds")
            stopped_reason = "cancelled"
            break

        if balance < bet:
            logger.info(
                f"Simulation stopped at round {i + 1}/{rounds}: insufficient balance "
                f"({balance:.2f} < {bet:.2f})"
            )
            stopped_reason = "insufficient_balance"
            break

        balance -= bet
        total_wagered += bet

        outcome = _play_round(cfg, house_edge, effective_target, clamped, rng, bet)

        if outcome.won:
            balance += outcome.payout
            total_returned += outcome.payout
            wins += 1
            largest_payout = max(largest_payout, outcome.payout)
            current_losing_streak = 0
        else:
            losses += 1
            current_losing_streak += 1
            longest_losing_streak = max(longest_losing_streak, current_losing_streak)

        peak_balance = max(peak_balance, balance)
        if peak_balance > 0:
            max_drawdown = max(max_drawdown, (peak_balance - balance) / peak_balance)

        rounds_completed += 1

    return SimulationSummary(
        grid_size=cfg.name,
        house_edge=house_edge,
        target_step=effective_target,
        target_clamped=clamped,
        rounds_requested=rounds,
        rounds_completed=rounds_completed,
        stopped_reason=stopped_reason,
        start_balance=start_balance,
        end_balance=balance,
        total_wagered=total_wagered,
        total_returned=total_returned,
        rtp=total_returned / total_wagered if total_wagered > 0 else 0.0,
        wins=wins,
        losses=losses,
        win_rate=wins / rounds_completed if rounds_completed > 0 else 0.0,
        peak_balance=peak_balance,
        max_drawdown=max_drawdown,
        longest_losing_streak=longest_losing_streak,
        largest_payout=largest_payout,
    )


def run(
    params: SimulationParams,
    rng: RandomSource | None = None,
    house_edge: float | None = None,
    grids: dict[str, GridConfiguration] | None = None,
    cancel_event: threading.Event | None = None,
) -> SimulationSummary:
    """Run a simulation from a parameter record.

    Args:
        params: Validated parameter record
        rng: Random source (None = numpy Generator seeded from params.seed)
        house_edge: Fraction of fair odds paid (None = use config default)
        grids: Grid registry (None = load from config)
        cancel_event: Cooperative cancellation signal

    Returns:
        SimulationSummary for the run
    """
    cfg = resolve_grid(params.grid_size, grids)
    if rng is None:
        rng = make_rng(params.seed)

    logger.info(
        f"Simulating {params.rounds:,} rounds on grid {cfg.name!r}: "
        f"bet={params.bet}, target_step={params.target_step}, seed={params.seed}"
    )
    summary = run_simulation(
        rounds=params.rounds,
        start_balance=params.start_balance,
        bet=params.bet,
        grid=cfg,
        house_edge=house_edge,
        target_step=params.target_step,
        rng=rng,
        cancel_event=cancel_event,
    )
    logger.info(
        f"Simulation finished: {summary.rounds_completed:,} rounds, "
        f"RTP={summary.rtp:.4f}, stopped_reason={summary.stopped_reason}"
    )
    return summary
