"""probewatch - periodic HTTP health-check monitor."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("probewatch")
except PackageNotFoundError:
    # Package is not installed (e.g., running from source without pip install)
    __version__ = "0.0.0.dev0"

# Re-export core public API
from probewatch.app import main
from probewatch.monitor import Monitor
from probewatch.policy import resolve, resolve_value
from probewatch.prober import HealthProber, probe

# NOTE: Update this list when adding new exports to this module.
__all__ = [
    "__version__",
    "HealthProber",
    "Monitor",
    "main",
    "probe",
    "resolve",
    "resolve_value",
]
