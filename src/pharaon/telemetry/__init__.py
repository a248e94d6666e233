# src/pharaon/telemetry/__init__.py
"""Delivery side of the capture pipeline.

Components:
- buffer: EventQueue holding calls made before the agent is configured
- protocols: SinkProtocol for implementing sinks
- hookspecs: pluggy hooks for sink discovery
- factory: create_sink() building the configured sink
- delivery: DeliveryWorker making network delivery fire-and-forget
- errors: SinkConfigurationError for setup failures
- sinks: built-in ConsoleSink and HTTPSink
"""

from pharaon.telemetry.buffer import EventQueue
from pharaon.telemetry.delivery import DeliveryWorker
from pharaon.telemetry.errors import SinkConfigurationError
from pharaon.telemetry.factory import create_sink, discover_sink_registry
from pharaon.telemetry.protocols import SinkProtocol
from pharaon.telemetry.sinks import ConsoleSink, HTTPSink

__all__ = [
    "ConsoleSink",
    "DeliveryWorker",
    "EventQueue",
    "HTTPSink",
    "SinkConfigurationError",
    "SinkProtocol",
    "create_sink",
    "discover_sink_registry",
]
