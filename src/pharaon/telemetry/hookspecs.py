# src/pharaon/telemetry/hookspecs.py
"""pluggy hook specifications for delivery sinks.

Sink plugins implement these hooks to register themselves. create_sink()
calls them to discover available sinks.

Usage (implementing a sink plugin):
    from pharaon.telemetry.hookspecs import hookimpl

    class MySinkPlugin:
        @hookimpl
        def pharaon_get_sinks(self):
            return [MySink]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from pharaon.telemetry.protocols import SinkProtocol

PROJECT_NAME = "pharaon"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class PharaonSinkSpec:
    """Hook specifications for sink plugins."""

    @hookspec
    def pharaon_get_sinks(self) -> list[type["SinkProtocol"]]:  # type: ignore[empty-body]
        """Return sink classes (not instances) implementing SinkProtocol."""
