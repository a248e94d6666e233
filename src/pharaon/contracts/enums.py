"""Status codes, kinds and states shared across the agent's subsystems."""

from enum import StrEnum


class AgentState(StrEnum):
    """Lifecycle state of a TrackingAgent.

    The only transition is UNCONFIGURED -> CONFIGURED, triggered by the first
    successful init(). There is no terminal state.
    """

    UNCONFIGURED = "unconfigured"
    CONFIGURED = "configured"


class CallKind(StrEnum):
    """Kind of public call held in the pre-configuration queue."""

    EVENT = "event"
    IDENTIFIERS = "identifiers"


class ErrorKind(StrEnum):
    """Diagnostic categories reported by public agent operations.

    Fatal to the call (call aborted, no partial effect):
    - INVALID_INPUT: malformed event name, params, identifiers or config
    - PAYLOAD_TOO_LARGE: merged identifier set exceeds its byte ceiling
    - IDENTITY_GENERATION_FAILED: no randomness source could mint an identity

    Non-fatal (call proceeds, reported as a warning):
    - TRUNCATED: event name or params were shortened to fit their ceilings
    - STORAGE_UNAVAILABLE: a persistence tier failed and was skipped
    """

    INVALID_INPUT = "invalid_input"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    TRUNCATED = "truncated"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    IDENTITY_GENERATION_FAILED = "identity_generation_failed"
