"""Bootstrap and dependency wiring for probewatch.

This module is the composition root. It:
- loads settings and applies CLI overrides
- sets up logging
- loads the monitor configuration file and resolves it once
- builds the edge-provider client when credentials are configured
- assembles the Monitor

Any failure here is fatal. :func:`bootstrap` logs the reason and returns
None, and the application exits without starting to probe.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Any

from probewatch.config import Settings, load_settings
from probewatch.loader import ConfigError, load_config_file
from probewatch.logging import get_logger, setup_logging
from probewatch.monitor import Monitor
from probewatch.policy import MonitorConfig, PolicyKey, resolve_config, resolve_value
from probewatch.prober import HealthProber
from probewatch.provider import EdgeProviderClient, ProviderClientError
from probewatch.scheduler import SweepScheduler

logger = get_logger(__name__)


class BootstrapContext:
    """Container for all bootstrapped dependencies."""

    def __init__(
        self,
        settings: Settings,
        config: MonitorConfig,
        provider_client: EdgeProviderClient | None = None,
    ) -> None:
        """Initialize the bootstrap context.

        Args:
            settings: Process settings.
            config: Resolved monitor configuration.
            provider_client: Edge-provider client, if credentials are configured.
        """
        self.settings = settings
        self.config = config
        self.provider_client = provider_client


def apply_cli_overrides(settings: Settings, parsed: argparse.Namespace) -> Settings:
    """Return ``settings`` with any command-line overrides applied."""
    overrides: dict[str, Any] = {}

    if parsed.config:
        overrides["config_file"] = parsed.config
    if parsed.interval is not None:
        overrides["sweep_interval"] = parsed.interval
    if parsed.log_level:
        overrides["log_level"] = parsed.log_level

    if overrides:
        return replace(settings, **overrides)
    return settings


def create_provider_client(config: MonitorConfig) -> EdgeProviderClient | None:
    """Build and verify the edge-provider client from global credentials.

    Args:
        config: Monitor configuration.

    Returns:
        A verified client, or None when no provider token is configured.

    Raises:
        ProviderClientError: If the client cannot be built or its token is
            not accepted.
    """
    token = str(resolve_value(config, "", PolicyKey.PROVIDER_TOKEN))
    if not token:
        logger.debug("No provider token configured, skipping provider client")
        return None

    account_id = str(resolve_value(config, "", PolicyKey.PROVIDER_ACCOUNT_ID)) or None
    client = EdgeProviderClient(token=token, account_id=account_id)
    try:
        if not client.verify_token():
            raise ProviderClientError("Provider API token is not active")
    except ProviderClientError:
        client.close()
        raise

    logger.info("Provider client initialized")
    return client


def bootstrap(parsed: argparse.Namespace) -> BootstrapContext | None:
    """Bootstrap the application with all dependencies.

    Args:
        parsed: Parsed command-line arguments.

    Returns:
        BootstrapContext with all initialized dependencies, or None if
        start-up failed.
    """
    settings = apply_cli_overrides(load_settings(parsed.env_file), parsed)

    setup_logging(settings.log_level, json_format=settings.log_json)

    logger.info("Loading monitor configuration from %s", settings.config_file)
    try:
        raw_config = load_config_file(settings.config_file)
    except ConfigError as e:
        logger.error("Failed to load configuration: %s", e)
        return None

    config = resolve_config(raw_config)

    try:
        provider_client = create_provider_client(config)
    except ProviderClientError as e:
        logger.error("Failed to initialize provider client: %s", e)
        return None

    return BootstrapContext(settings=settings, config=config, provider_client=provider_client)


def create_monitor_from_context(
    context: BootstrapContext,
    max_rounds: int | None = None,
) -> Monitor:
    """Create a Monitor from a bootstrap context.

    Args:
        context: Bootstrap context with all initialized dependencies.
        max_rounds: Optional round limit for the scheduler.

    Returns:
        Configured Monitor instance.
    """
    scheduler = SweepScheduler(
        interval_seconds=context.settings.sweep_interval,
        max_rounds=max_rounds,
    )
    return Monitor(config=context.config, prober=HealthProber(), scheduler=scheduler)


__all__ = [
    "BootstrapContext",
    "apply_cli_overrides",
    "bootstrap",
    "create_monitor_from_context",
    "create_provider_client",
]
