"""Shared contracts: enums, records, results and the error taxonomy.

Everything that crosses a subsystem boundary (agent <-> sink, agent <->
identity, agent <-> host) is defined here.
"""

from pharaon.contracts.enums import AgentState, CallKind, ErrorKind
from pharaon.contracts.errors import (
    IdentityGenerationError,
    InvalidInputError,
    PayloadTooLargeError,
    StorageUnavailableError,
    TrackingError,
)
from pharaon.contracts.records import (
    EnvironmentFields,
    EventRecord,
    IdentifierRecord,
    QueuedCall,
    Scalar,
)
from pharaon.contracts.results import TrackResult

__all__ = [
    "AgentState",
    "CallKind",
    "EnvironmentFields",
    "ErrorKind",
    "EventRecord",
    "IdentifierRecord",
    "IdentityGenerationError",
    "InvalidInputError",
    "PayloadTooLargeError",
    "QueuedCall",
    "Scalar",
    "StorageUnavailableError",
    "TrackResult",
    "TrackingError",
]
