# src/pharaon/telemetry/factory.py
"""Factory functions for creating a sink from agent settings.

This module provides the glue between configuration (AgentSettings) and a
runtime sink instance:
1. Discovering sink classes via pluggy hooks
2. Instantiating the sink named by settings.sink
3. Configuring it

Usage:
    from pharaon.core.config import AgentSettings
    from pharaon.telemetry.factory import create_sink

    sink = create_sink(AgentSettings(sink="http", endpoint="https://collect.example.com"))
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from pharaon.core.config import AgentSettings
from pharaon.telemetry.errors import SinkConfigurationError
from pharaon.telemetry.hookspecs import PROJECT_NAME, PharaonSinkSpec
from pharaon.telemetry.protocols import SinkProtocol
from pharaon.telemetry.sinks import BuiltinSinksPlugin

logger = structlog.get_logger(__name__)


def _resolve_sink_name(sink_class: type[SinkProtocol]) -> str:
    """Resolve a sink's configuration name from its class-level _name.

    Raises:
        SinkConfigurationError: If _name is missing or not a non-empty string.
    """
    class_name = getattr(sink_class, "__name__", repr(sink_class))
    name = sink_class.__dict__.get("_name")
    if type(name) is not str or name == "":
        raise SinkConfigurationError(
            class_name,
            f"Sink class attribute _name must be a non-empty string, got {name!r}",
        )
    return name


def discover_sink_registry(sink_plugins: Iterable[Any] = ()) -> dict[str, type[SinkProtocol]]:
    """Discover sinks via pluggy hooks.

    Registers the built-in sinks plus any additional plugin objects, then
    calls every ``pharaon_get_sinks`` hook to build the name->class registry.

    Raises:
        SinkConfigurationError: If plugin registration fails, a hook returns
            something other than an iterable of classes, or two sinks share
            a name.
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(PharaonSinkSpec)

    for plugin in [BuiltinSinksPlugin(), *list(sink_plugins)]:
        try:
            plugin_manager.register(plugin)
            plugin_manager.check_pending()
        except (pluggy.PluginValidationError, ValueError) as e:
            # PluginValidationError: hook spec mismatch
            # ValueError: duplicate plugin object or plugin name already registered
            if isinstance(e, pluggy.PluginValidationError):
                plugin_manager.unregister(plugin=plugin)
            raise SinkConfigurationError(
                "sink_plugins",
                f"Invalid sink plugin {type(plugin).__name__}: {e}",
            ) from e

    registry: dict[str, type[SinkProtocol]] = {}
    for hook_impl in plugin_manager.hook.pharaon_get_sinks.get_hookimpls():
        plugin_name = type(hook_impl.plugin).__name__
        try:
            sinks = hook_impl.function()
        except Exception as e:
            raise SinkConfigurationError(
                "sink_plugins",
                f"Sink plugin {plugin_name} failed in pharaon_get_sinks: {e}",
            ) from e
        if sinks is None or type(sinks) in (str, bytes):
            raise SinkConfigurationError(
                "sink_plugins",
                f"pharaon_get_sinks in plugin {plugin_name} returned {type(sinks).__name__}; expected iterable of sink classes",
            )

        for sink_class in sinks:
            sink_name = _resolve_sink_name(sink_class)
            if sink_name in registry:
                raise SinkConfigurationError(
                    sink_name,
                    f"Duplicate sink name '{sink_name}' discovered: {registry[sink_name].__name__} and {sink_class.__name__}",
                )
            registry[sink_name] = sink_class

    return registry


def create_sink(settings: AgentSettings, *, sink_plugins: Iterable[Any] = ()) -> SinkProtocol:
    """Create and configure the sink named by settings.sink.

    Raises:
        SinkConfigurationError: If discovery fails, the sink name is unknown,
            or the sink rejects the configuration.
    """
    registry = discover_sink_registry(sink_plugins)
    try:
        sink_class = registry[settings.sink]
    except KeyError:
        raise SinkConfigurationError(
            sink_name=settings.sink,
            message=f"Unknown sink. Available sinks: {sorted(registry)}",
        ) from None

    sink = sink_class()
    try:
        sink.configure(settings)
    except SinkConfigurationError:
        raise
    except Exception as e:
        raise SinkConfigurationError(settings.sink, f"configure() failed: {e}") from e
    logger.debug("sink_configured", sink=settings.sink, options_keys=sorted(settings.sink_options))
    return sink
