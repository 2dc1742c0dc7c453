"""Command-line entry point.

Examples:
    stepgrid odds --grid 4
    stepgrid simulate --rounds 100000 --bet 1 --grid 3 --target-step 5 --seed 7
    stepgrid simulate --rounds 1000000 --shards 8 --json
    stepgrid verify --grid 3 --target-step 7 --rounds 1000000 --seed 42
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict

from stepgrid.config import get_config
from stepgrid.errors import ConfigurationError, InvalidParameterError
from stepgrid.evaluation import check_step_frequency, verify_engine_rtp, verify_rtp
from stepgrid.probability import build_odds_table, make_rng, resolve_grid
from stepgrid.reporting import (
    format_frequency_report,
    format_odds_table,
    format_rtp_report,
    format_summary,
)
from stepgrid.simulation import SimulationParams, run, run_simulation_sharded

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; defaults come from AppConfig."""
    config = get_config()

    parser = argparse.ArgumentParser(
        prog="stepgrid",
        description="Step-wager grid game: odds tables, simulations and RTP verification",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    odds = sub.add_parser("odds", help="Print per-step probability and multiplier")
    odds.add_argument("--grid", default=config.default_grid_size, help="Grid size identifier")
    odds.add_argument("--json", action="store_true", help="Emit JSON instead of text")

    sim = sub.add_parser("simulate", help="Simulate rounds against a bankroll")
    sim.add_argument("--rounds", type=int, default=config.default_rounds)
    sim.add_argument("--start-balance", type=float, default=config.initial_balance)
    sim.add_argument("--bet", type=float, default=config.default_bet)
    sim.add_argument("--grid", default=config.default_grid_size, help="Grid size identifier")
    sim.add_argument("--target-step", type=int, default=config.default_target_step)
    sim.add_argument("--seed", type=int, default=None)
    sim.add_argument(
        "--shards",
        type=int,
        default=1,
        help="Split rounds across independent bankrolls in worker processes",
    )
    sim.add_argument("--json", action="store_true", help="Emit JSON instead of text")

    verify = sub.add_parser("verify", help="Check measured RTP against the house edge")
    verify.add_argument("--grid", default=config.default_grid_size, help="Grid size identifier")
    verify.add_argument("--target-step", type=int, default=config.default_target_step)
    verify.add_argument("--rounds", type=int, default=1_000_000)
    verify.add_argument("--seed", type=int, default=None)
    verify.add_argument(
        "--engine-rounds",
        type=int,
        default=100_000,
        help="Rounds played through the simulation engine (0 to skip)",
    )
    verify.add_argument(
        "--frequency-trials",
        type=int,
        default=0,
        help="Also test roll frequency at the target step over this many trials",
    )

    return parser


def _cmd_odds(args: argparse.Namespace) -> int:
    rows = build_odds_table(resolve_grid(args.grid))
    if args.json:
        print(json.dumps([asdict(row) for row in rows], indent=2))
    else:
        print(format_odds_table(rows))
    return 0


def _cmd_simulate(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    config = get_config()
    if not config.min_bet <= args.bet <= config.max_bet:
        parser.error(f"--bet must be between {config.min_bet} and {config.max_bet}")

    params = SimulationParams(
        rounds=args.rounds,
        start_balance=args.start_balance,
        bet=args.bet,
        grid_size=str(args.grid),
        target_step=args.target_step,
        seed=args.seed,
    )
    if args.shards > 1:
        summary = run_simulation_sharded(params, shards=args.shards).summary
    else:
        summary = run(params)

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(format_summary(summary))
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    report = verify_rtp(args.grid, args.target_step, args.rounds, seed=args.seed)
    print(format_rtp_report(report))
    ok = report.passed

    if args.engine_rounds > 0:
        engine_report = verify_engine_rtp(
            args.grid, args.target_step, args.engine_rounds, seed=args.seed
        )
        print(format_rtp_report(engine_report))
        ok = ok and engine_report.passed

    if args.frequency_trials > 0:
        freq = check_step_frequency(
            args.grid, report.target_step, args.frequency_trials, rng=make_rng(args.seed)
        )
        print(format_frequency_report(freq))
        ok = ok and freq.passed

    return 0 if ok else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point with logging configuration."""
    config = get_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "odds":
            return _cmd_odds(args)
        if args.command == "simulate":
            return _cmd_simulate(args, parser)
        return _cmd_verify(args)
    except (ConfigurationError, InvalidParameterError) as e:
        parser.error(str(e))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        return 1
    return 1


if __name__ == "__main__":
    sys.exit(main())
