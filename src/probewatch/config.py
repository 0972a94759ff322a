"""Process settings loaded from environment variables.

These are process-level knobs: where the monitor configuration lives, how
often to sweep, and how to log. The monitor configuration itself (entities
and probe policy) lives in the YAML file read by :mod:`probewatch.loader`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_CONFIG_FILE = Path("config.yaml")
DEFAULT_SWEEP_INTERVAL = 5  # seconds


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation.
    """

    # Monitor configuration file (global policy + entities)
    config_file: Path = DEFAULT_CONFIG_FILE

    # Pause between full sweeps of all entities
    sweep_interval: int = DEFAULT_SWEEP_INTERVAL  # seconds

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


def _parse_positive_int(value: str, name: str, default: int) -> int:
    """Parse a string as a positive integer with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive integer, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = int(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %d is not positive, using default %d",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Returns:
        The validated log level (uppercase), or the default if invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid PROBEWATCH_LOG_LEVEL: '%s' is not valid, using default '%s'. Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Return True if value is "true", "1", or "yes" (case-insensitive)."""
    return value.lower() in ("true", "1", "yes")


def load_settings(env_file: Path | None = None) -> Settings:
    """Load settings from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Settings object with loaded values. Invalid values fall back to
        their defaults with a warning.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    sweep_interval = _parse_positive_int(
        os.getenv("PROBEWATCH_SWEEP_INTERVAL", str(DEFAULT_SWEEP_INTERVAL)),
        "PROBEWATCH_SWEEP_INTERVAL",
        DEFAULT_SWEEP_INTERVAL,
    )

    log_level = _validate_log_level(os.getenv("PROBEWATCH_LOG_LEVEL", "INFO"))
    log_json = _parse_bool(os.getenv("PROBEWATCH_LOG_JSON", ""))

    return Settings(
        config_file=Path(os.getenv("PROBEWATCH_CONFIG_FILE", str(DEFAULT_CONFIG_FILE))),
        sweep_interval=sweep_interval,
        log_level=log_level,
        log_json=log_json,
    )


__all__ = ["Settings", "VALID_LOG_LEVELS", "load_settings"]
