"""Exception taxonomy for the capture pipeline.

These exceptions are raised inside the agent and caught at the boundary of
each public operation, where they are logged and converted to a TrackResult.
They never cross the public surface back to the host.
"""

from pharaon.contracts.enums import ErrorKind


class TrackingError(Exception):
    """Base class for failures of a single tracking call.

    Attributes:
        kind: Diagnostic category reported to the host
        message: Human-readable reason
    """

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidInputError(TrackingError):
    """Raised when an event name, params mapping or identifier set is malformed."""

    kind = ErrorKind.INVALID_INPUT


class PayloadTooLargeError(TrackingError):
    """Raised when a merged identifier set exceeds its serialized byte ceiling.

    Attributes:
        size_bytes: Serialized size of the rejected candidate set
        limit_bytes: Configured ceiling
    """

    kind = ErrorKind.PAYLOAD_TOO_LARGE

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(f"Identifier set is {size_bytes} bytes, exceeds the limit of {limit_bytes} bytes")


class StorageUnavailableError(TrackingError):
    """Raised by a persistence backend that cannot be read or written.

    Identity resolution treats this as a degraded tier, never as fatal.

    Attributes:
        tier: Name of the failing tier or backend
    """

    kind = ErrorKind.STORAGE_UNAVAILABLE

    def __init__(self, tier: str, message: str) -> None:
        self.tier = tier
        super().__init__(f"Storage '{tier}' unavailable: {message}")


class IdentityGenerationError(TrackingError):
    """Raised when neither a cryptographic nor a fallback random source works."""

    kind = ErrorKind.IDENTITY_GENERATION_FAILED
