"""Plain-text formatting for simulation summaries, odds tables and RTP checks.

Pure functions that return strings. No simulation or state dependencies.
"""

from stepgrid.evaluation.rtp import FrequencyReport, RtpReport
from stepgrid.probability.model import StepOdds
from stepgrid.simulation.engine import SimulationSummary

# RTP at or above this is flagged positive in the summary block
RTP_HIGHLIGHT_THRESHOLD = 0.95


def format_currency(value: float | None) -> str:
    """Format a money amount as ``$1,234.56`` (None renders as $0.00)."""
    return f"${(value or 0.0):,.2f}"


def format_percent(value: float | None, decimals: int = 2) -> str:
    """Format an already-scaled percentage as ``12.34%``."""
    return f"{(value or 0.0):.{decimals}f}%"


def format_summary(summary: SimulationSummary) -> str:
    """Format a SimulationSummary as an aligned text block.

    Args:
        summary: Result of run_simulation() or a merged sharded run

    Returns:
        Multi-line string, one statistic per line
    """
    pnl_sign = "+" if summary.net_pnl >= 0 else "-"
    rtp_flag = "positive" if summary.rtp >= RTP_HIGHLIGHT_THRESHOLD else "negative"

    target_display = str(summary.target_step)
    if summary.target_clamped:
        target_display += " (clamped)"

    stopped_display = {
        "completed": "completed",
        "insufficient_balance": "stopped early: insufficient balance",
        "cancelled": "stopped early: cancelled",
    }.get(summary.stopped_reason, summary.stopped_reason)

    lines = [
        f"Simulation: grid {summary.grid_size}, target step {target_display}, "
        f"house edge {summary.house_edge:.2f}",
        f"  Rounds:          {summary.rounds_completed:,} / {summary.rounds_requested:,} "
        f"({stopped_display})",
        f"  Start Balance:   {format_currency(summary.start_balance)}",
        f"  End Balance:     {format_currency(summary.end_balance)}",
        f"  Net P&L:         {pnl_sign}{format_currency(abs(summary.net_pnl))} "
        f"({format_percent(summary.net_pnl_pct)})",
        f"  Total Wagered:   {format_currency(summary.total_wagered)}",
        f"  Total Returned:  {format_currency(summary.total_returned)}",
        f"  RTP:             {format_percent(summary.rtp_pct)} [{rtp_flag}]",
        f"  Win Rate:        {format_percent(summary.win_rate_pct)} "
        f"({summary.wins:,} W / {summary.losses:,} L)",
        f"  Peak Balance:    {format_currency(summary.peak_balance)}",
        f"  Max Drawdown:    {format_percent(summary.max_drawdown_pct)}",
        f"  Largest Payout:  {format_currency(summary.largest_payout)}",
        f"  Longest Losing Streak: {summary.longest_losing_streak:,}",
    ]
    return "\n".join(lines)


def format_odds_table(rows: list[StepOdds]) -> str:
    """Format odds rows the way the target-step picker lists them.

    >>> format_odds_table([StepOdds(1, 8 / 9, 8 / 9, 1.0575)]).splitlines()[1]
    'Step 1: 1.06x   p=88.89%   reach=88.89%'
    """
    lines = ["Step odds"]
    for row in rows:
        lines.append(
            f"Step {row.step}: {row.multiplier:.2f}x   "
            f"p={format_percent(row.probability * 100)}   "
            f"reach={format_percent(row.survival * 100)}"
        )
    return "\n".join(lines)


def format_rtp_report(report: RtpReport) -> str:
    """Format an RtpReport as a PASS/FAIL block."""
    status = "PASS" if report.passed else "FAIL"
    lines = [
        f"RTP verification ({report.method}): grid {report.grid_size}, step {report.target_step}",
        f"  Rounds:      {report.rounds:,}",
        f"  Theoretical: {format_percent(report.theoretical_rtp * 100, 4)}",
        f"  Measured:    {format_percent(report.measured_rtp * 100, 4)}",
        f"  95% CI:      [{format_percent(report.ci_low * 100, 4)}, "
        f"{format_percent(report.ci_high * 100, 4)}]",
        f"  Delta:       {format_percent(report.delta * 100, 4)} "
        f"(tolerance {format_percent(report.tolerance * 100, 2)})",
        f"  Hit Rate:    {format_percent(report.hit_rate * 100)}",
        f"  Result:      {status}",
    ]
    return "\n".join(lines)


def format_frequency_report(report: FrequencyReport) -> str:
    """Format a FrequencyReport on one line."""
    status = "PASS" if report.passed else "FAIL"
    return (
        f"Step {report.step_index} frequency on grid {report.grid_size}: "
        f"observed {format_percent(report.observed_frequency * 100, 3)} vs "
        f"expected {format_percent(report.expected_probability * 100, 3)} "
        f"over {report.trials:,} trials (p={report.p_value:.4f}) {status}"
    )
