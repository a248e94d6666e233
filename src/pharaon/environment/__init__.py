"""Environment context capture: probes and snapshots."""

from pharaon.environment.probe import EnvironmentProbe, HostEnvironmentProbe
from pharaon.environment.snapshot import EnvironmentSnapshot

__all__ = [
    "EnvironmentProbe",
    "EnvironmentSnapshot",
    "HostEnvironmentProbe",
]
