"""Result value returned by every public agent operation."""

from dataclasses import dataclass
from typing import Any

from pharaon.contracts.enums import ErrorKind


@dataclass(frozen=True, slots=True)
class TrackResult:
    """Outcome of init(), track_event() or set_identifiers().

    Exactly one of these holds:
    - queued: the call was buffered until the agent is configured
    - ok: the call completed and (for tracking calls) a record was handed
      to the sink
    - error is set: the call was aborted with no partial effect

    Attributes:
        ok: True if the call completed
        queued: True if the call was buffered for replay
        error: Fatal diagnostic category, if the call was aborted
        reason: Human-readable reason for the error
        warnings: Non-fatal diagnostics raised while completing the call
        record: The EventRecord or IdentifierRecord handed to the sink
    """

    ok: bool
    queued: bool = False
    error: ErrorKind | None = None
    reason: str | None = None
    warnings: tuple[ErrorKind, ...] = ()
    record: Any = None

    @classmethod
    def success(cls, record: Any = None, warnings: tuple[ErrorKind, ...] = ()) -> "TrackResult":
        return cls(ok=True, record=record, warnings=warnings)

    @classmethod
    def deferred(cls) -> "TrackResult":
        return cls(ok=False, queued=True)

    @classmethod
    def failure(cls, error: ErrorKind, reason: str, warnings: tuple[ErrorKind, ...] = ()) -> "TrackResult":
        return cls(ok=False, error=error, reason=reason, warnings=warnings)
