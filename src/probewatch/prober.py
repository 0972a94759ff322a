"""HTTP health prober with bounded retries and fixed backoff.

A probe issues up to ``retries`` sequential GET requests against an endpoint.
The first response with a status in [200, 400) ends the probe successfully.
Transport errors and any other status count as a failed attempt, after which
the prober waits ``retry_wait_ms`` before moving on, including after the last
attempt. No exception leaves the prober: callers only ever see a boolean (or a
:class:`ProbeResult`) and a warning in the log when every attempt failed.

Usage:
    from probewatch.prober import HealthProber

    with HealthProber() as prober:
        ok = prober.probe("example.com", timeout_ms=2000, retries=3, retry_wait_ms=500)
"""

from __future__ import annotations

import time
import types
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from probewatch.logging import get_logger

logger = get_logger(__name__)

HTTP_SCHEME = "http://"
HTTPS_SCHEME = "https://"

# Success is any status in [SUCCESS_STATUS_MIN, SUCCESS_STATUS_MAX).
SUCCESS_STATUS_MIN = 200
SUCCESS_STATUS_MAX = 400

# Matches the redirect limit of most stock HTTP clients.
MAX_REDIRECTS = 10


def normalize_url(endpoint: str) -> str:
    """Turn an endpoint string into a fully-qualified URL.

    ``http://`` is prepended unless the endpoint already starts with
    ``http://`` or ``https://`` (in any letter case). ``str.startswith`` is
    safe for strings shorter than the prefix, so "a" becomes "http://a".

    Args:
        endpoint: URL or host[:port][/path].

    Returns:
        The URL to request.
    """
    endpoint = endpoint.strip()
    if endpoint.lower().startswith((HTTP_SCHEME, HTTPS_SCHEME)):
        return endpoint
    return HTTP_SCHEME + endpoint


def is_success_status(status_code: int) -> bool:
    """Return True for status codes that count as a healthy response."""
    return SUCCESS_STATUS_MIN <= status_code < SUCCESS_STATUS_MAX


def _request_timeout(timeout_ms: int) -> httpx.Timeout:
    # A non-positive timeout means "no timeout". This bounds each network
    # step; the attempt as a whole is bounded by the deadline in _attempt.
    if timeout_ms <= 0:
        return httpx.Timeout(None)
    return httpx.Timeout(timeout_ms / 1000)


@dataclass
class ProbeResult:
    """Outcome of probing a single endpoint.

    Attributes:
        url: The normalized URL that was requested.
        ok: Whether an attempt succeeded.
        attempts: Number of attempts actually made.
        status_code: Status of the last response received, if any.
        last_error: Reason for the last failed attempt, if any.
        elapsed_ms: Wall time spent on the probe, including waits.
    """

    url: str
    ok: bool
    attempts: int
    status_code: int | None = None
    last_error: str | None = None
    elapsed_ms: float = 0.0


class HealthProber:
    """Probes endpoints over HTTP using one pooled ``httpx.Client``.

    The client is created lazily and reused across probes. Pass ``client`` to
    supply your own, for example one built on ``httpx.MockTransport`` in
    tests, and ``sleep`` to replace the blocking wait between attempts.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the prober.

        Args:
            client: Optional HTTP client. When given, the caller owns it
                and close() leaves it open.
            sleep: Callable taking seconds, used for the retry wait.
            clock: Monotonic clock in seconds, used for the attempt deadline.
        """
        self._client = client
        self._owns_client = client is None
        self._sleep = sleep
        self._clock = clock

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(follow_redirects=True, max_redirects=MAX_REDIRECTS)
        return self._client

    def close(self) -> None:
        """Close the HTTP client if this prober created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> HealthProber:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        self.close()

    def _attempt(self, url: str, timeout_ms: int) -> int:
        """Run one GET, drain the body, and return the status code.

        The whole attempt, body included, must finish within ``timeout_ms``.
        A server that keeps trickling bytes is cut off once the deadline
        passes.

        Raises:
            httpx.TimeoutException: If a network step or the attempt as a
                whole runs past the timeout.
        """
        deadline = self._clock() + timeout_ms / 1000 if timeout_ms > 0 else None
        client = self._get_client()
        with client.stream("GET", url, timeout=_request_timeout(timeout_ms)) as response:
            for _ in response.iter_bytes():
                self._check_deadline(deadline, timeout_ms, response.request)
            self._check_deadline(deadline, timeout_ms, response.request)
            return response.status_code

    def _check_deadline(
        self, deadline: float | None, timeout_ms: int, request: httpx.Request
    ) -> None:
        if deadline is not None and self._clock() > deadline:
            raise httpx.ReadTimeout(f"attempt exceeded {timeout_ms} ms", request=request)

    def check(self, url: str, timeout_ms: int, retries: int, retry_wait_ms: int) -> ProbeResult:
        """Probe ``url`` and return the detailed outcome.

        Args:
            url: Endpoint as configured; normalized before use.
            timeout_ms: Per-attempt timeout in milliseconds (<= 0 for none).
            retries: Maximum number of attempts; 0 makes no request at all.
            retry_wait_ms: Wait after each failed attempt in milliseconds.

        Returns:
            ProbeResult describing the probe.
        """
        target = normalize_url(url)
        start_time = time.perf_counter()

        result = ProbeResult(url=target, ok=False, attempts=0)
        for attempt in range(1, max(retries, 0) + 1):
            result.attempts = attempt
            try:
                status_code = self._attempt(target, timeout_ms)
            except httpx.TimeoutException as e:
                result.last_error = f"timed out: {e}"
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                result.last_error = str(e) or type(e).__name__
            except Exception as e:
                # One bad endpoint must not stop the sweep.
                logger.debug("Unexpected error probing %s: %r", target, e)
                result.last_error = f"{type(e).__name__}: {e}"
            else:
                result.status_code = status_code
                if is_success_status(status_code):
                    result.ok = True
                    result.last_error = None
                    break
                result.last_error = f"status {status_code}"

            logger.debug(
                "Attempt %d/%d for %s failed: %s",
                attempt,
                retries,
                target,
                result.last_error,
                extra={"server": target, "attempt": attempt},
            )
            self._sleep(retry_wait_ms / 1000)

        result.elapsed_ms = (time.perf_counter() - start_time) * 1000

        if not result.ok:
            logger.warning(
                "Server %s did not respond: %s",
                target,
                result.last_error or "no attempts made",
                extra={"server": target, "error": result.last_error},
            )
        return result

    def probe(self, url: str, timeout_ms: int, retries: int, retry_wait_ms: int) -> bool:
        """Probe ``url`` and report only success or failure."""
        return self.check(url, timeout_ms, retries, retry_wait_ms).ok


def probe(url: str, timeout_ms: int, retries: int, retry_wait_ms: int) -> bool:
    """Probe ``url`` with a throwaway :class:`HealthProber`."""
    with HealthProber() as prober:
        return prober.probe(url, timeout_ms, retries, retry_wait_ms)


__all__ = [
    "HealthProber",
    "ProbeResult",
    "is_success_status",
    "normalize_url",
    "probe",
]
