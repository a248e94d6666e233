# src/pharaon/telemetry/sinks/console.py
"""Console sink for tracked records.

Writes records to stdout or stderr in JSON or human-readable format. This
is the default sink: it needs no endpoint and delivers synchronously.
"""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, Literal, TextIO, TypeGuard

import structlog

from pharaon.telemetry.errors import SinkConfigurationError

if TYPE_CHECKING:
    from pharaon.contracts.records import EventRecord, IdentifierRecord
    from pharaon.core.config import AgentSettings

logger = structlog.get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    """TypeGuard for format validation - enables mypy type narrowing."""
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    """TypeGuard for output validation - enables mypy type narrowing."""
    return v in {"stdout", "stderr"}


class ConsoleSink:
    """Write records to stdout/stderr.

    Supports two output formats:
    - json: One JSON object per line, {"type": ..., "data": <wire payload>}
    - pretty: Human-readable line with timestamp, kind and key details

    Configuration options (sink_options):
        format: Output format - "json" (default) or "pretty"
        output: Output stream - "stdout" (default) or "stderr"

    Example:
        agent.init({"sink": "console", "sink_options": {"format": "pretty", "output": "stderr"}})
    """

    _name = "console"

    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self, stream: TextIO | None = None) -> None:
        """Initialize unconfigured sink.

        Args:
            stream: Explicit output stream. Overrides the `output` option.
        """
        self._format: Literal["json", "pretty"] = "json"
        self._explicit_stream = stream
        self._stream: TextIO = stream if stream is not None else sys.stdout
        self._debug = False

    @property
    def name(self) -> str:
        return self._name

    def configure(self, settings: AgentSettings) -> None:
        """Configure from sink_options.

        Raises:
            SinkConfigurationError: If option values are invalid
        """
        options = settings.sink_options

        format_value = options.get("format", "json")
        if not isinstance(format_value, str):
            raise SinkConfigurationError(
                self._name,
                f"'format' must be a string, got {type(format_value).__name__}",
            )
        if _is_valid_format(format_value):
            self._format = format_value
        else:
            raise SinkConfigurationError(
                self._name,
                f"Invalid format '{format_value}'. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )

        output_value = options.get("output", "stdout")
        if not isinstance(output_value, str):
            raise SinkConfigurationError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if not _is_valid_output(output_value):
            raise SinkConfigurationError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )
        if self._explicit_stream is None:
            self._stream = sys.stdout if output_value == "stdout" else sys.stderr

        self._debug = settings.debug
        logger.debug("Console sink configured", format=self._format, output=output_value)

    def send_event(self, record: EventRecord) -> None:
        self._write("event", record.to_payload(), record.event_name)

    def send_identifiers(self, record: IdentifierRecord) -> None:
        self._write("user_params", record.to_payload(), "user parameters")

    def _write(self, record_type: str, payload: dict[str, Any], title: str) -> None:
        # MUST NOT raise - log and continue
        try:
            if self._format == "json":
                line = json.dumps({"type": record_type, "data": payload}, ensure_ascii=False)
            else:
                line = self._format_pretty(record_type, payload, title)
            print(line, file=self._stream)
        except Exception as e:
            logger.warning(
                "Failed to write record to console",
                sink=self._name,
                record_type=record_type,
                error=str(e),
            )

    def _format_pretty(self, record_type: str, payload: dict[str, Any], title: str) -> str:
        """Format: [TIMESTAMP] type: title (key=value, ...)

        Without debug only the identity and params are shown; with debug every
        non-empty field is.
        """
        timestamp = payload.get("event_timestamp") or payload.get("timestamp_assignment", "")
        if self._debug:
            keys = sorted(k for k in payload if k not in ("event_name", "event_timestamp", "timestamp_assignment"))
        else:
            keys = ["user_pseudo_id", "event_params" if record_type == "event" else "user_params"]
        details = ", ".join(f"{k}={payload[k]}" for k in keys if payload.get(k) not in (None, ""))
        return f"[{timestamp}] {record_type}: {title} ({details})"

    def flush(self) -> None:
        try:
            self._stream.flush()
        except Exception as e:
            logger.warning("Failed to flush console stream", sink=self._name, error=str(e))

    def close(self) -> None:
        """No-op: the sink does not own the stdout/stderr streams."""
        pass
