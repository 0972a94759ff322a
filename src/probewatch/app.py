"""Core application runner for probewatch.

Coordinates bootstrap, the monitor and shutdown handling, and maps the
outcome to a process exit code.
"""

from __future__ import annotations

import argparse

from probewatch.bootstrap import BootstrapContext, bootstrap, create_monitor_from_context
from probewatch.cli import parse_args
from probewatch.logging import get_logger
from probewatch.monitor import Monitor
from probewatch.shutdown import create_shutdown_handler

logger = get_logger(__name__)


def run_once_mode(monitor: Monitor) -> int:
    """Sweep all entities once.

    Returns:
        Exit code: 0 if every server is healthy, 1 otherwise.
    """
    logger.info("Running single sweep (--once mode)")
    try:
        sweep = monitor.run_once()
    finally:
        monitor.prober.close()
    return 0 if sweep.failed == 0 else 1


def run_continuous_mode(monitor: Monitor) -> int:
    """Sweep until SIGINT/SIGTERM.

    Returns:
        Exit code: 0.
    """
    create_shutdown_handler(monitor.request_shutdown)
    monitor.run()
    return 0


def run_application(parsed: argparse.Namespace, context: BootstrapContext) -> int:
    """Run the monitor in the mode selected on the command line."""
    monitor = create_monitor_from_context(context)
    try:
        if parsed.once:
            return run_once_mode(monitor)
        return run_continuous_mode(monitor)
    finally:
        if context.provider_client is not None:
            context.provider_client.close()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Optional list of command-line arguments.

    Returns:
        Exit code for the application; 1 when start-up fails.
    """
    parsed = parse_args(args)

    context = bootstrap(parsed)
    if context is None:
        # Bootstrap failed (logged internally)
        return 1

    return run_application(parsed, context)


__all__ = [
    "main",
    "run_application",
    "run_continuous_mode",
    "run_once_mode",
]
