"""Tests for the HTTP health prober."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable, Iterator
from unittest.mock import patch

import httpx
import pytest

from probewatch.prober import (
    HealthProber,
    ProbeResult,
    is_success_status,
    normalize_url,
    probe,
)


class TestNormalizeUrl:
    """Tests for normalize_url()."""

    def test_bare_host_gets_http_scheme(self) -> None:
        assert normalize_url("example.com") == "http://example.com"

    def test_host_port_gets_http_scheme(self) -> None:
        assert normalize_url("example.com:8080/health") == "http://example.com:8080/health"

    @pytest.mark.parametrize("url", ["http://example.com", "https://example.com"])
    def test_explicit_scheme_unchanged(self, url: str) -> None:
        assert normalize_url(url) == url

    def test_scheme_check_is_case_insensitive(self) -> None:
        assert normalize_url("HTTPS://example.com") == "HTTPS://example.com"

    @pytest.mark.parametrize("short", ["a", "", "http", "https:/"])
    def test_short_strings_do_not_crash(self, short: str) -> None:
        assert normalize_url(short) == "http://" + short

    def test_strips_whitespace(self) -> None:
        assert normalize_url("  example.com\n") == "http://example.com"


class TestIsSuccessStatus:
    """Tests for the [200, 400) success boundary."""

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(199, False), (200, True), (204, True), (399, True), (400, False), (503, False)],
    )
    def test_boundary(self, status_code: int, expected: bool) -> None:
        assert is_success_status(status_code) is expected


class TestHealthProberCheck:
    """Tests for HealthProber.check() and probe()."""

    def test_success_on_first_attempt(self, make_prober, sleep_recorder) -> None:
        prober, transport = make_prober([200])

        result = prober.check("example.com", timeout_ms=1000, retries=3, retry_wait_ms=100)

        assert result.ok is True
        assert result.attempts == 1
        assert result.status_code == 200
        assert result.last_error is None
        assert transport.call_count == 1
        assert str(transport.requests[0].url) == "http://example.com"
        assert transport.requests[0].method == "GET"
        assert sleep_recorder.calls == []

    def test_retry_exhaustion_on_transport_errors(self, make_prober, sleep_recorder) -> None:
        prober, transport = make_prober([httpx.ConnectError("Connection refused")])

        result = prober.check("example.com", timeout_ms=1000, retries=3, retry_wait_ms=250)

        assert result.ok is False
        assert result.attempts == 3
        assert transport.call_count == 3
        assert "Connection refused" in (result.last_error or "")
        # The wait also follows the final attempt.
        assert sleep_recorder.calls == [0.25, 0.25, 0.25]

    def test_early_success_stops_retrying(self, make_prober, sleep_recorder) -> None:
        prober, transport = make_prober([httpx.ConnectTimeout("timed out"), 200, 200])

        assert prober.probe("example.com", timeout_ms=1000, retries=3, retry_wait_ms=10) is True
        assert transport.call_count == 2
        assert sleep_recorder.calls == [0.01]

    def test_non_success_status_is_retried(self, make_prober) -> None:
        prober, transport = make_prober([503, 404])

        result = prober.check("example.com", timeout_ms=1000, retries=2, retry_wait_ms=0)

        assert result.ok is False
        assert transport.call_count == 2
        assert result.status_code == 404
        assert result.last_error == "status 404"

    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(199, False), (200, True), (399, True), (400, False)],
    )
    def test_status_boundary(self, make_prober, status_code: int, expected: bool) -> None:
        prober, _ = make_prober([status_code])
        assert prober.probe("example.com", timeout_ms=1000, retries=1, retry_wait_ms=0) is expected

    def test_zero_retries_makes_no_requests(self, make_prober, sleep_recorder) -> None:
        prober, transport = make_prober([200])

        result = prober.check("example.com", timeout_ms=1000, retries=0, retry_wait_ms=100)

        assert result.ok is False
        assert result.attempts == 0
        assert transport.call_count == 0
        assert sleep_recorder.calls == []

    def test_timeout_is_applied_per_attempt(self, make_prober) -> None:
        prober, transport = make_prober([200])

        prober.probe("example.com", timeout_ms=1500, retries=1, retry_wait_ms=0)

        timeout = transport.requests[0].extensions["timeout"]
        assert timeout["connect"] == 1.5
        assert timeout["read"] == 1.5

    def test_zero_timeout_means_no_timeout(self, make_prober) -> None:
        prober, transport = make_prober([200])

        prober.probe("example.com", timeout_ms=0, retries=1, retry_wait_ms=0)

        assert transport.requests[0].extensions["timeout"]["read"] is None

    def test_timeout_error_is_recorded(self, make_prober) -> None:
        prober, _ = make_prober([httpx.ReadTimeout("read timed out")])

        result = prober.check("example.com", timeout_ms=10, retries=1, retry_wait_ms=0)

        assert result.ok is False
        assert (result.last_error or "").startswith("timed out")

    def test_unexpected_errors_do_not_propagate(self, make_prober) -> None:
        prober, _ = make_prober([RuntimeError("boom")])

        result = prober.check("example.com", timeout_ms=10, retries=2, retry_wait_ms=0)

        assert result.ok is False
        assert result.attempts == 2
        assert result.last_error == "RuntimeError: boom"

    def test_failure_logs_endpoint_and_last_error(
        self, make_prober, caplog: pytest.LogCaptureFixture
    ) -> None:
        prober, _ = make_prober([500])

        with caplog.at_level(logging.WARNING, logger="probewatch.prober"):
            prober.probe("example.com", timeout_ms=10, retries=2, retry_wait_ms=0)

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "http://example.com" in warnings[0].getMessage()
        assert "status 500" in warnings[0].getMessage()

    def test_success_logs_no_warning(self, make_prober, caplog: pytest.LogCaptureFixture) -> None:
        prober, _ = make_prober([200])

        with caplog.at_level(logging.WARNING, logger="probewatch.prober"):
            prober.probe("example.com", timeout_ms=10, retries=2, retry_wait_ms=0)

        assert caplog.records == []


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ChunkStream(httpx.SyncByteStream):
    """Response body streamed chunk by chunk, advancing a clock before each."""

    def __init__(
        self, chunks: Iterable[bytes], clock: FakeClock | None = None, step: float = 0.0
    ) -> None:
        self.chunks = chunks
        self.clock = clock
        self.step = step
        self.consumed: list[bytes] = []

    def __iter__(self) -> Iterator[bytes]:
        for chunk in self.chunks:
            if self.clock is not None:
                self.clock.now += self.step
            self.consumed.append(chunk)
            yield chunk


def _check_streamed(
    stream: ChunkStream, timeout_ms: int, clock: FakeClock | None = None
) -> ProbeResult:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, stream=stream))
    with httpx.Client(transport=transport) as client:
        prober = HealthProber(client=client, sleep=lambda _: None, clock=clock or FakeClock())
        return prober.check("example.com", timeout_ms=timeout_ms, retries=1, retry_wait_ms=0)


class TestHealthProberStreamedBody:
    """Tests for draining streamed bodies within the attempt deadline."""

    def test_streamed_body_is_drained(self) -> None:
        stream = ChunkStream([b"first", b"second", b"third"])

        result = _check_streamed(stream, timeout_ms=1000)

        assert result.ok is True
        assert result.status_code == 200
        assert stream.consumed == [b"first", b"second", b"third"]

    def test_dripping_body_is_cut_off_at_deadline(self) -> None:
        clock = FakeClock()
        stream = ChunkStream(itertools.repeat(b"x"), clock=clock, step=0.3)

        result = _check_streamed(stream, timeout_ms=500, clock=clock)

        assert result.ok is False
        assert result.attempts == 1
        assert (result.last_error or "").startswith("timed out")
        assert "500 ms" in (result.last_error or "")
        # Chunk two lands at 0.6s, past the 0.5s deadline.
        assert len(stream.consumed) == 2

    def test_slow_body_without_timeout_completes(self) -> None:
        clock = FakeClock()
        stream = ChunkStream([b"a", b"b", b"c"], clock=clock, step=10.0)

        result = _check_streamed(stream, timeout_ms=0, clock=clock)

        assert result.ok is True
        assert len(stream.consumed) == 3


class TestHealthProberLifecycle:
    """Tests for client ownership."""

    def test_injected_client_is_not_closed(self, make_prober) -> None:
        prober, _ = make_prober([200])
        client = prober._get_client()

        prober.close()

        assert client.is_closed is False

    def test_owned_client_is_closed(self) -> None:
        prober = HealthProber()
        client = prober._get_client()

        prober.close()

        assert client.is_closed is True


class TestProbeFunction:
    """Tests for the module-level probe() helper."""

    def test_uses_throwaway_prober(self) -> None:
        with patch("probewatch.prober.HealthProber") as mock_prober_class:
            mock_prober = mock_prober_class.return_value.__enter__.return_value
            mock_prober.probe.return_value = True

            assert probe("example.com", 1000, 3, 100) is True
            mock_prober.probe.assert_called_once_with("example.com", 1000, 3, 100)
