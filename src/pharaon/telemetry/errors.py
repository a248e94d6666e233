# src/pharaon/telemetry/errors.py
"""Sink-specific exceptions.

These exceptions are for sink setup errors only. Delivery failures are never
raised - sinks log them instead.
"""


class SinkConfigurationError(Exception):
    """Raised when a sink encounters a configuration or initialization error.

    This is raised during sink setup (discovery/configure), NOT during
    delivery. send_event()/send_identifiers() must not raise.

    Attributes:
        sink_name: Name of the sink that failed
        message: Human-readable error description
    """

    def __init__(self, sink_name: str, message: str) -> None:
        self.sink_name = sink_name
        self.message = message
        super().__init__(f"Sink '{sink_name}' failed: {message}")
