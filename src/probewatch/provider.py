"""REST client for the edge provider (DNS/CDN) API.

The monitor does not probe through this client. It is built once at start-up
from the resolved global credentials and used to look up auxiliary
identifiers such as zone ids. Failing to build or verify it is fatal to
start-up; see :func:`probewatch.bootstrap.create_provider_client`.
"""

from __future__ import annotations

from typing import Any, Self

import httpx

from probewatch.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.cloudflare.com/client/v4"

# Default timeout for HTTP requests (connect, read, write, pool)
DEFAULT_TIMEOUT = httpx.Timeout(10.0, read=30.0)


class ProviderClientError(Exception):
    """Raised when the provider client cannot be built or a request fails."""

    pass


class EdgeProviderClient:
    """Token-authenticated client for the edge provider API.

    Uses a lazily created, reusable ``httpx.Client`` for connection pooling.
    """

    def __init__(
        self,
        token: str,
        account_id: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: httpx.Timeout | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the provider client.

        Args:
            token: API token; sent as a bearer token.
            account_id: Optional account id for account-scoped lookups.
            base_url: API root URL.
            timeout: Optional custom timeout configuration.
            transport: Optional httpx transport (mainly for tests).

        Raises:
            ProviderClientError: If the token is empty.
        """
        if not token or not token.strip():
            raise ProviderClientError("Provider API token is empty")
        self.base_url = base_url.rstrip("/")
        self.account_id = account_id
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._headers = {"Authorization": f"Bearer {token.strip()}"}
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                headers=self._headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._get_client().get(url, params=params)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
        except httpx.TimeoutException as e:
            raise ProviderClientError(f"Provider request to {path} timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise ProviderClientError(
                f"Provider request to {path} failed with status {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise ProviderClientError(f"Provider request to {path} failed: {e}") from e
        except ValueError as e:
            raise ProviderClientError(f"Provider returned invalid JSON for {path}: {e}") from e

        if not data.get("success", False):
            errors = data.get("errors") or []
            messages = ", ".join(
                str(err.get("message", err) if isinstance(err, dict) else err) for err in errors
            )
            raise ProviderClientError(f"Provider request to {path} was rejected: {messages}")
        return data

    def verify_token(self) -> bool:
        """Check that the token is accepted by the provider.

        Returns:
            True if the token is active.

        Raises:
            ProviderClientError: If the request fails or is rejected.
        """
        data = self._get("/user/tokens/verify")
        status = (data.get("result") or {}).get("status")
        logger.debug("Provider token status: %s", status)
        return status == "active"

    def get_zone_id(self, zone_name: str) -> str | None:
        """Look up the id of the zone called ``zone_name``.

        Returns:
            The zone id, or None if no zone matches.

        Raises:
            ProviderClientError: If the request fails or is rejected.
        """
        params = {"name": zone_name}
        if self.account_id:
            params["account.id"] = self.account_id
        zones = self._get("/zones", params=params).get("result") or []
        if not zones:
            logger.info("No provider zone named %s", zone_name)
            return None
        zone_id: str = zones[0]["id"]
        return zone_id


__all__ = ["DEFAULT_BASE_URL", "EdgeProviderClient", "ProviderClientError"]
