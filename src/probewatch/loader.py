"""YAML configuration file loading.

The file has two top-level keys::

    global:
      timeout: 2000
      retries: 3
      retry_wait: 500
      provider: {token: ..., account_id: ..., zone_id: ...}
    entities:
      - name: web
        servers: [example.com, "https://example.org/health"]
        retries: 5

Times are integer milliseconds; ``retries`` is an attempt count. Every entity
setting is optional and is kept as ``None`` when absent so that the resolver
can tell "not configured" apart from an explicit ``0``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from probewatch.logging import get_logger
from probewatch.policy import EntityPolicy, GlobalPolicy, MonitorConfig, ProviderCredentials

logger = get_logger(__name__)

# YAML key -> dataclass field
_POLICY_FIELDS = (
    ("timeout", "timeout_ms"),
    ("retries", "retries"),
    ("retry_wait", "retry_wait_ms"),
)

_PROVIDER_FIELDS = ("token", "account_id", "zone_id")


class ConfigError(Exception):
    """Raised when the monitor configuration file is missing or invalid."""

    pass


def _parse_non_negative_int(value: Any, key: str, where: str) -> int:
    # bool is an int subclass; "retries: yes" is a mistake, not 1.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(
            f"{where} has invalid '{key}' value {value!r}: must be a non-negative integer"
        )
    return value


def _parse_provider(data: Any, where: str) -> ProviderCredentials:
    if data is None:
        return ProviderCredentials()
    if not isinstance(data, dict):
        raise ConfigError(f"{where} 'provider' must be a mapping")

    values: dict[str, str | None] = {}
    for key in _PROVIDER_FIELDS:
        value = data.get(key)
        if value is not None and not isinstance(value, (str, int)):
            raise ConfigError(f"{where} provider '{key}' must be a string")
        values[key] = str(value) if value is not None else None
    return ProviderCredentials(**values)


def _parse_global(data: Any) -> GlobalPolicy:
    if data is None:
        logger.warning("Configuration has no 'global' section, global defaults are all 0")
        return GlobalPolicy()
    if not isinstance(data, dict):
        raise ConfigError("'global' must be a mapping")

    values = {
        attr: _parse_non_negative_int(data.get(key, 0), key, "Global section")
        for key, attr in _POLICY_FIELDS
    }
    return GlobalPolicy(provider=_parse_provider(data.get("provider"), "Global section"), **values)


def _parse_entity(data: Any, index: int) -> EntityPolicy:
    if not isinstance(data, dict):
        raise ConfigError(f"Entity #{index} must be a mapping")

    name = data.get("name")
    if not name or not isinstance(name, str) or not name.strip():
        raise ConfigError(f"Entity #{index} must have a non-empty 'name' field")
    where = f"Entity '{name}'"

    servers = data.get("servers") or []
    if not isinstance(servers, list):
        raise ConfigError(f"{where} 'servers' must be a list")
    for server in servers:
        if not isinstance(server, str) or not server.strip():
            raise ConfigError(f"{where} has an invalid server entry {server!r}")
    if not servers:
        logger.warning("%s has no servers configured", where)

    overrides: dict[str, int | None] = {}
    for key, attr in _POLICY_FIELDS:
        value = data.get(key)
        overrides[attr] = None if value is None else _parse_non_negative_int(value, key, where)

    return EntityPolicy(
        name=name,
        servers=tuple(servers),
        provider=_parse_provider(data.get("provider"), where),
        **overrides,
    )


def parse_config(data: Any) -> MonitorConfig:
    """Build a :class:`MonitorConfig` from already-parsed YAML data.

    Raises:
        ConfigError: If the data does not describe a valid configuration.
    """
    if data is None:
        raise ConfigError("Configuration is empty")
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping with 'global' and 'entities' keys")

    entities_data = data.get("entities") or []
    if not isinstance(entities_data, list):
        raise ConfigError("'entities' must be a list")

    entities = tuple(_parse_entity(item, index) for index, item in enumerate(entities_data, 1))

    seen: set[str] = set()
    for entity in entities:
        if entity.name in seen:
            raise ConfigError(f"Duplicate entity name '{entity.name}'")
        seen.add(entity.name)

    return MonitorConfig(global_policy=_parse_global(data.get("global")), entities=entities)


def load_config_file(file_path: Path) -> MonitorConfig:
    """Load and validate the monitor configuration file.

    Args:
        file_path: Path to the YAML file.

    Returns:
        The unresolved configuration.

    Raises:
        ConfigError: If the file cannot be read or is invalid.
    """
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e
    except FileNotFoundError:
        raise ConfigError(f"Configuration file not found: {file_path}") from None
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {file_path}: {e}") from e

    config = parse_config(data)
    logger.info("Loaded %d entities from %s", len(config.entities), file_path)
    return config


__all__ = ["ConfigError", "load_config_file", "parse_config"]
