"""Core utilities: configuration, logging, serialization and payload bounding."""

from pharaon.core.config import AgentSettings, merge_settings
from pharaon.core.payload import BoundResult, bound

__all__ = [
    "AgentSettings",
    "BoundResult",
    "bound",
    "merge_settings",
]
