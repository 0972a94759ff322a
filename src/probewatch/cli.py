"""Command-line interface argument parsing for probewatch.

This module provides the CLI argument parser that handles:
- Monitor configuration file override
- Single-sweep mode (--once)
- Sweep interval override
- Log level override
- Environment file specification
"""

from __future__ import annotations

import argparse
from pathlib import Path


def _positive_int(value: str) -> int:
    """argparse type for strictly positive integers."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: '{value}'") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Optional list of arguments to parse. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace with the following attributes:
        - config: Path to the monitor configuration file
        - once: Whether to sweep once and exit
        - interval: Sweep interval in seconds
        - log_level: Logging level
        - env_file: Path to .env file
    """
    parser = argparse.ArgumentParser(
        prog="probewatch",
        description="probewatch - periodic HTTP health-check monitor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the monitor configuration file (default: ./config.yaml)",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Sweep all entities once and exit",
    )

    parser.add_argument(
        "--interval",
        type=_positive_int,
        default=None,
        help="Seconds between sweeps (overrides PROBEWATCH_SWEEP_INTERVAL)",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Log level (overrides PROBEWATCH_LOG_LEVEL)",
    )

    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to .env file (default: ./.env)",
    )

    return parser.parse_args(args)


__all__ = ["parse_args"]
