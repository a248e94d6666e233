"""Logging setup for hosts and the pharaon CLI.

pharaon modules log through structlog (event name plus key/value context).
Hosts usually log through the stdlib. configure_logging() gives both the
same renderer: structlog events are handed to stdlib logging, and one
ProcessorFormatter on the root handler renders every record, whatever its
origin, as JSON lines or as console text.

The agent itself never calls configure_logging(): the host owns logging.
The CLI calls it once per command, writing diagnostics to stderr so that
console-sink records on stdout stay machine-readable.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

# Capped at WARNING even under --debug: the HTTP sink's client logs every
# connection at DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "urllib3",
)


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip the _record/_from_structlog keys ProcessorFormatter attaches to every record."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _pre_chain() -> list[Any]:
    """Processors run on every record before rendering, structlog or stdlib."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_chain(json_output: bool) -> list[Any]:
    if json_output:
        return [
            _drop_formatter_bookkeeping,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    # No colors: output usually lands in CI logs or a terminal-less cron job
    return [
        _drop_formatter_bookkeeping,
        structlog.dev.ConsoleRenderer(colors=False),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through one root handler.

    Calling it again replaces the previous handler, so tests and the CLI can
    reconfigure freely.

    Args:
        json_output: Render JSON lines instead of console text.
        level: Root level name (DEBUG, INFO, WARNING, ERROR).
        stream: Handler stream; stderr when omitted.
    """
    log_level = getattr(logging, level.upper())
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Loggers are bound at import time; caching would pin the first config
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=_render_chain(json_output), foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return the structlog logger for a module name."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
