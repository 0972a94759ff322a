"""Graceful shutdown handling for probewatch.

SIGINT (Ctrl+C) and SIGTERM stop the sweep scheduler instead of killing the
process mid-probe. The current probe finishes (bounded by its timeout) and
the monitor exits after the round.
"""

from __future__ import annotations

import signal
from collections.abc import Callable
from types import FrameType

from probewatch.logging import get_logger

logger = get_logger(__name__)


class ShutdownHandler:
    """Turns shutdown signals into a call to ``on_shutdown``."""

    def __init__(self, on_shutdown: Callable[[], None] | None = None) -> None:
        """Initialize the shutdown handler.

        Args:
            on_shutdown: Optional callback invoked when shutdown is requested.
                        Typically Monitor.request_shutdown.
        """
        self._shutdown_requested = False
        self._on_shutdown = on_shutdown

    @property
    def shutdown_requested(self) -> bool:
        """Check if shutdown has been requested."""
        return self._shutdown_requested

    def request_shutdown(self) -> None:
        """Request graceful shutdown.

        Repeated requests only invoke the callback once.
        """
        if self._shutdown_requested:
            return
        self._shutdown_requested = True

        if self._on_shutdown is not None:
            self._on_shutdown()

    def handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """Handle shutdown signals (SIGINT, SIGTERM)."""
        signal_name = signal.Signals(signum).name
        logger.info("Received %s, initiating graceful shutdown...", signal_name)
        self.request_shutdown()

    def install_signal_handlers(self) -> None:
        """Install signal handlers for SIGINT and SIGTERM."""
        signal.signal(signal.SIGINT, self.handle_signal)
        signal.signal(signal.SIGTERM, self.handle_signal)
        logger.debug("Signal handlers installed for SIGINT and SIGTERM")


def create_shutdown_handler(on_shutdown: Callable[[], None] | None = None) -> ShutdownHandler:
    """Create a ShutdownHandler and install its signal handlers."""
    handler = ShutdownHandler(on_shutdown)
    handler.install_signal_handlers()
    return handler


__all__ = [
    "ShutdownHandler",
    "create_shutdown_handler",
]
