"""Repeating sweep scheduler.

Drives a unit of work at a fixed interval until stopped. The wait between
rounds is a ``threading.Event`` wait, so :meth:`SweepScheduler.stop` (called
from a signal handler or a test) ends the loop without waiting out the
interval.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from probewatch.logging import get_logger

logger = get_logger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5.0


class SweepScheduler:
    """Calls a work function once per round with a fixed pause in between.

    Attributes:
        interval_seconds: Pause after each round.
        max_rounds: Optional round limit; None runs until stopped.
    """

    def __init__(
        self,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        stop_event: threading.Event | None = None,
        max_rounds: int | None = None,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be non-negative, got {interval_seconds}")
        self.interval_seconds = interval_seconds
        self.max_rounds = max_rounds
        self._stop_event = stop_event or threading.Event()
        self._rounds_completed = 0

    @property
    def rounds_completed(self) -> int:
        """Number of rounds that have run to completion or failed."""
        return self._rounds_completed

    @property
    def stopped(self) -> bool:
        """True once stop() has been called."""
        return self._stop_event.is_set()

    def stop(self) -> None:
        """Stop the loop; an in-progress wait returns immediately."""
        self._stop_event.set()

    def _limit_reached(self) -> bool:
        return self.max_rounds is not None and self._rounds_completed >= self.max_rounds

    def run(self, work: Callable[[int], object]) -> int:
        """Run ``work(round_number)`` repeatedly until stopped.

        Errors raised by ``work`` are logged and the next round still runs.

        Args:
            work: Callable receiving the 1-based round number.

        Returns:
            Number of rounds run.
        """
        while not self.stopped and not self._limit_reached():
            round_number = self._rounds_completed + 1
            try:
                work(round_number)
            except (OSError, TimeoutError) as e:
                logger.error(
                    "Error in sweep due to I/O or timeout: %s",
                    e,
                    extra={"round": round_number},
                )
            except Exception as e:
                logger.exception(
                    "Unexpected error in sweep: %s",
                    e,
                    extra={"round": round_number},
                )
            self._rounds_completed += 1

            if self.stopped or self._limit_reached():
                break

            logger.info("Waiting %g seconds before the next round...", self.interval_seconds)
            self._stop_event.wait(self.interval_seconds)

        return self._rounds_completed


__all__ = ["DEFAULT_SWEEP_INTERVAL_SECONDS", "SweepScheduler"]
