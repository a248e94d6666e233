# src/pharaon/telemetry/protocols.py
"""Protocol definitions for delivery sinks.

Sinks are responsible for shipping finished records somewhere: the log, a
collection endpoint, a test double.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pharaon.contracts.records import EventRecord, IdentifierRecord
    from pharaon.core.config import AgentSettings


@runtime_checkable
class SinkProtocol(Protocol):
    """Protocol for delivery sinks.

    Lifecycle:
        1. Discovery: pharaon_get_sinks hook returns sink classes
        2. Instantiation: create_sink() (or the host) creates an instance
        3. Configuration: configure() called on every successful init()
        4. Operation: send_event()/send_identifiers() called per record
        5. Shutdown: flush() then close()

    Error handling:
        - configure() MUST raise SinkConfigurationError on invalid config
        - send_event()/send_identifiers() MUST NOT raise - log and continue
        - close() MUST be idempotent
    """

    @property
    def name(self) -> str:
        """Sink name matching the `sink` configuration option.

            agent.init({"sink": "http", "endpoint": "https://collect.example.com"})
        """
        ...

    def configure(self, settings: "AgentSettings") -> None:
        """Configure the sink from agent settings.

        Called on every successful init(), so later init() calls can change
        the endpoint or options.

        Raises:
            SinkConfigurationError: If configuration is invalid or incomplete
        """
        ...

    def send_event(self, record: "EventRecord") -> None:
        """Deliver one event record. Fire-and-forget: MUST NOT raise or block on I/O."""
        ...

    def send_identifiers(self, record: "IdentifierRecord") -> None:
        """Deliver one identifier assignment. Same contract as send_event()."""
        ...

    def flush(self) -> None:
        """Wait for in-flight deliveries. No-op for synchronous sinks."""
        ...

    def close(self) -> None:
        """Release resources. Must be idempotent."""
        ...
