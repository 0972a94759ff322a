"""Shared pytest fixtures for probewatch tests.

HTTP traffic never leaves the process: probers are built on
``httpx.MockTransport`` and record every request they see, and the retry
wait is replaced by a recorder so no test sleeps.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest

from probewatch.policy import EntityPolicy, GlobalPolicy, MonitorConfig
from probewatch.prober import HealthProber

# A step is either a status code to answer with or an exception to raise.
Step = int | Exception


class ScriptedTransport(httpx.MockTransport):
    """Mock transport that replays a script of responses and counts requests.

    Once the script is exhausted the last step repeats.
    """

    def __init__(self, steps: list[Step]) -> None:
        self.steps = list(steps)
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        index = min(len(self.requests), len(self.steps) - 1)
        self.requests.append(request)
        step = self.steps[index]
        if isinstance(step, Exception):
            raise step
        return httpx.Response(step, content=b"body that must be drained")


class SleepRecorder:
    """Drop-in for time.sleep that records requested durations."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_prober(
    sleep_recorder: SleepRecorder,
) -> Iterator[Callable[[list[Step]], tuple[HealthProber, ScriptedTransport]]]:
    """Factory fixture returning (prober, transport) for a response script."""
    clients: list[httpx.Client] = []

    def factory(steps: list[Step]) -> tuple[HealthProber, ScriptedTransport]:
        transport = ScriptedTransport(steps)
        client = httpx.Client(transport=transport, follow_redirects=True)
        clients.append(client)
        return HealthProber(client=client, sleep=sleep_recorder), transport

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def sample_config() -> MonitorConfig:
    """Unresolved configuration with one inheriting and one overriding entity."""
    return MonitorConfig(
        global_policy=GlobalPolicy(timeout_ms=1000, retries=5, retry_wait_ms=200),
        entities=(
            EntityPolicy(name="web", servers=("example.com", "https://example.org")),
            EntityPolicy(
                name="api",
                servers=("api.example.com:8080",),
                timeout_ms=500,
                retries=2,
                retry_wait_ms=0,
            ),
        ),
    )


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML text to a temporary config file and return its path."""

    def writer(text: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    return writer
