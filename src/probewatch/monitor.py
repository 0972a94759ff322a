"""The monitor: sweeps every entity's servers once per round.

Probing is strictly sequential. Each server is probed with its entity's
effective policy; rounds are paced by a :class:`SweepScheduler`. The
configuration is resolved before it reaches the monitor and is never
modified here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from probewatch.logging import get_logger
from probewatch.policy import MonitorConfig
from probewatch.prober import HealthProber
from probewatch.scheduler import SweepScheduler

logger = get_logger(__name__)


@dataclass(frozen=True)
class ServerResult:
    """Probe outcome for one server of one entity."""

    entity: str
    server: str
    ok: bool


@dataclass
class SweepResult:
    """Outcome of one full pass over all entities."""

    round_number: int
    results: list[ServerResult] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return len(self.results) - self.succeeded


class Monitor:
    """Runs health-check sweeps over a resolved configuration."""

    def __init__(
        self,
        config: MonitorConfig,
        prober: HealthProber,
        scheduler: SweepScheduler | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            config: Resolved configuration (see resolve_config).
            prober: Prober used for every server.
            scheduler: Scheduler pacing the rounds in run().

        Raises:
            ValueError: If any entity still has unresolved policy fields.
        """
        unresolved = [e.name for e in config.entities if not e.is_resolved]
        if unresolved:
            raise ValueError(f"Configuration is not resolved for entities: {unresolved}")
        self.config = config
        self.prober = prober
        self.scheduler = scheduler or SweepScheduler()
        self.last_sweep: SweepResult | None = None

    def request_shutdown(self) -> None:
        """Stop after the current round."""
        logger.info("Shutdown requested")
        self.scheduler.stop()

    def run_once(self, round_number: int = 1) -> SweepResult:
        """Probe every server of every entity once, in configuration order."""
        logger.info(
            "New round: %s",
            datetime.now().strftime("%H:%M:%S"),
            extra={"round": round_number},
        )

        sweep = SweepResult(round_number=round_number)
        for entity in self.config.entities:
            entity_logger = logger.with_context(round=round_number, entity=entity.name)
            entity_logger.info("Entity: %s", entity.name)

            policy = entity.effective()
            for server in entity.servers:
                ok = self.prober.probe(
                    server,
                    timeout_ms=policy.timeout_ms,
                    retries=policy.retries,
                    retry_wait_ms=policy.retry_wait_ms,
                )
                if ok:
                    entity_logger.info("Server %s responded OK", server, extra={"server": server})
                sweep.results.append(ServerResult(entity=entity.name, server=server, ok=ok))

        logger.info(
            "Round %d completed: %d/%d servers healthy",
            round_number,
            sweep.succeeded,
            len(sweep.results),
            extra={"round": round_number},
        )
        self.last_sweep = sweep
        return sweep

    def run(self) -> int:
        """Sweep repeatedly until shutdown is requested.

        Returns:
            Number of rounds run.
        """
        g = self.config.global_policy
        logger.info(
            "Global config: Timeout=%d ms, Retries=%d, RetryWait=%d ms",
            g.timeout_ms,
            g.retries,
            g.retry_wait_ms,
        )
        logger.info(
            "Starting monitor with %d entities, sweeping every %gs",
            len(self.config.entities),
            self.scheduler.interval_seconds,
        )

        try:
            rounds = self.scheduler.run(self.run_once)
        finally:
            self.prober.close()

        logger.info("Monitor stopped after %d rounds", rounds)
        return rounds


__all__ = ["Monitor", "ServerResult", "SweepResult"]
