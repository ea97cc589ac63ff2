"""
Command line entry point.

Solves a BPPLIB cutting stock instance with branch-and-price and prints
the solution summary and the pattern report.

Usage:
    opencsp data/bpplib/Falkenauer_u120_00.txt
    opencsp instance.txt --strategy ip --max-nodes 200 -v
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from opencsp.config import PRICING_STRATEGIES, OpenCSPConfig, config
from opencsp.parsers import BPPLIBParser
from opencsp.solver import BPConfig, solve_cutting_stock


def setup_logging(log_file: Optional[Path] = None, verbose: bool = False) -> logging.Logger:
    """Configure logging to the console and an optional file."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode='w'))

    level = logging.DEBUG if verbose else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=handlers,
        force=True,
    )
    return logging.getLogger("opencsp")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="opencsp",
        description="Solve a cutting stock instance with branch-and-price",
    )
    parser.add_argument("instance", type=Path, help="Instance file in BPPLIB format")
    parser.add_argument("--strategy", choices=PRICING_STRATEGIES, default=None,
                        help="Pricing knapsack strategy (default: from config)")
    parser.add_argument("--no-workaround", action="store_true",
                        help="Disable the duplicate-pattern resolve of the IP strategy")
    parser.add_argument("--no-ffd", action="store_true",
                        help="Start from homogeneous patterns only")
    parser.add_argument("--max-nodes", type=int, default=0,
                        help="Branch-and-bound node limit (0 = unlimited)")
    parser.add_argument("--time-limit", type=float, default=3600.0,
                        help="Time limit in seconds")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also write the log to this file")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    return parser


def build_settings(args: argparse.Namespace) -> OpenCSPConfig:
    """Copy the global config with the command line overrides applied."""
    settings = replace(
        config,
        workaround=config.workaround and not args.no_workaround,
        tolerances=dict(config.tolerances),
    )
    if args.strategy is not None:
        settings.pricing_strategy = args.strategy
    return settings


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_file, args.verbose)

    settings = build_settings(args)

    instance = BPPLIBParser().parse(args.instance)
    logger.info(
        "Solving %s: %d widths, %d pieces, roll width %g",
        instance.name, instance.num_items, instance.total_demand, instance.roll_width,
    )

    bp_config = BPConfig(
        max_time=args.time_limit,
        max_nodes=args.max_nodes,
        use_ffd_init=not args.no_ffd,
    )
    solution = solve_cutting_stock(instance, bp_config, settings)

    print(solution.summary())
    if solution.report:
        print(solution.report)

    return 0 if solution.is_feasible else 1


if __name__ == "__main__":
    sys.exit(main())
