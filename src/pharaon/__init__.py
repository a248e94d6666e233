"""
pharaon: client-side event telemetry agent.

Captures named events and user identifiers, enriches them with environment
context, bounds their serialized size and hands them to a delivery sink.
"""

__version__ = "0.4.0"

from pharaon.agent import TrackingAgent  # noqa: E402
from pharaon.contracts import (  # noqa: E402
    AgentState,
    ErrorKind,
    EventRecord,
    IdentifierRecord,
    TrackResult,
)

__all__ = [
    "AgentState",
    "ErrorKind",
    "EventRecord",
    "IdentifierRecord",
    "TrackResult",
    "TrackingAgent",
    "__version__",
]
