# src/pharaon/telemetry/sinks/__init__.py
"""Built-in delivery sinks.

Available sinks:
- ConsoleSink ("console"): write records to stdout/stderr; needs no endpoint
- HTTPSink ("http"): POST records to a collection endpoint

Plugin registration:
    Sinks are registered via the pharaon_get_sinks hook. BuiltinSinksPlugin
    in this module registers the built-in sinks.
"""

from pharaon.telemetry.hookspecs import hookimpl
from pharaon.telemetry.sinks.console import ConsoleSink
from pharaon.telemetry.sinks.http import HTTPSink


class BuiltinSinksPlugin:
    """Plugin that registers built-in sinks."""

    @hookimpl
    def pharaon_get_sinks(self) -> list[type]:
        """Return built-in sink classes."""
        return [ConsoleSink, HTTPSink]


__all__ = [
    "BuiltinSinksPlugin",
    "ConsoleSink",
    "HTTPSink",
]
