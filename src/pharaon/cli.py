# src/pharaon/cli.py
"""pharaon Command Line Interface.

Lets shell scripts and automation jobs track events through the same
pipeline a host application embeds. The pseudo-identity persists across
invocations in a state directory (a JSON store plus a cookie file).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer

from pharaon import __version__
from pharaon.agent import TrackingAgent
from pharaon.contracts.enums import ErrorKind
from pharaon.contracts.errors import IdentityGenerationError
from pharaon.contracts.results import TrackResult
from pharaon.core.logging import configure_logging
from pharaon.environment.probe import HostEnvironmentProbe
from pharaon.identity.resolver import IdentityResolver
from pharaon.identity.stores import FileCookieJar, FileKeyValueStore
from pharaon.identity.tiers import CookieTier, DurableStoreTier

__all__ = ["app"]

DEFAULT_STATE_DIR = Path.home() / ".pharaon"
STORE_FILENAME = "store.json"
COOKIE_FILENAME = "cookies.txt"

app = typer.Typer(
    name="pharaon",
    help="pharaon: client-side event telemetry.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"pharaon version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """pharaon: client-side event telemetry."""


def _parse_pairs(pairs: list[str], option: str) -> dict[str, Any]:
    """Parse KEY=VALUE pairs. Values are decoded as JSON when possible, else kept as text."""
    parsed: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {pair!r}", param_hint=option)
        try:
            parsed[key] = json.loads(raw)
        except json.JSONDecodeError:
            parsed[key] = raw
    return parsed


def _build_agent(state_dir: Path, page_url: str | None) -> TrackingAgent:
    return TrackingAgent(
        store=FileKeyValueStore(state_dir / STORE_FILENAME),
        cookies=FileCookieJar(state_dir / COOKIE_FILENAME),
        probe=HostEnvironmentProbe(page_url=page_url),
    )


def _init_agent(
    agent: TrackingAgent,
    *,
    sink: str,
    endpoint: str | None,
    debug: bool,
    pretty: bool,
) -> None:
    config: dict[str, Any] = {"debug": debug, "sink": sink, "endpoint": endpoint}
    if sink == "console":
        config["sink_options"] = {"format": "pretty" if pretty else "json"}
    _exit_on_failure(agent.init(config))


def _fail(kind: ErrorKind, reason: str | None) -> NoReturn:
    typer.secho(f"Error ({kind.value}): {reason}", fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


def _exit_on_failure(result: TrackResult) -> None:
    if result.error is not None:
        _fail(result.error, result.reason)
    for warning in result.warnings:
        typer.secho(f"Warning: {warning.value}", fg=typer.colors.YELLOW, err=True)


# Options shared by the tracking commands
_STATE_DIR_OPTION = typer.Option(
    DEFAULT_STATE_DIR,
    "--state-dir",
    envvar="PHARAON_STATE_DIR",
    help="Directory holding the persisted pseudo-identity.",
)
_SINK_OPTION = typer.Option("console", "--sink", envvar="PHARAON_SINK", help="Sink name (console, http).")
_ENDPOINT_OPTION = typer.Option(None, "--endpoint", envvar="PHARAON_ENDPOINT", help="Collection URL for the http sink.")
_PAGE_OPTION = typer.Option(None, "--page-url", help="Location reported as page_url.")
_DEBUG_OPTION = typer.Option(False, "--debug", help="Verbose logging of every record.")
_PRETTY_OPTION = typer.Option(False, "--pretty", help="Human-readable console output instead of JSON.")
_JSON_LOGS_OPTION = typer.Option(False, "--json-logs", help="Emit diagnostics as JSON.")


@app.command()
def track(
    name: str = typer.Argument(..., help="Event name."),
    param: list[str] = typer.Option([], "--param", "-p", help="Event param as KEY=VALUE (repeatable)."),
    params_json: str | None = typer.Option(None, "--params-json", help="Event params as a JSON object."),
    state_dir: Path = _STATE_DIR_OPTION,
    sink: str = _SINK_OPTION,
    endpoint: str | None = _ENDPOINT_OPTION,
    page_url: str | None = _PAGE_OPTION,
    debug: bool = _DEBUG_OPTION,
    pretty: bool = _PRETTY_OPTION,
    json_logs: bool = _JSON_LOGS_OPTION,
) -> None:
    """Track one named event."""
    configure_logging(json_output=json_logs, level="DEBUG" if debug else "WARNING")

    params: Any = _parse_pairs(param, "--param")
    if params_json is not None:
        try:
            params = {**json.loads(params_json), **params}
        except (json.JSONDecodeError, TypeError) as e:
            raise typer.BadParameter(f"not a JSON object: {e}", param_hint="--params-json") from e

    agent = _build_agent(state_dir, page_url)
    _init_agent(agent, sink=sink, endpoint=endpoint, debug=debug, pretty=pretty)
    try:
        _exit_on_failure(agent.track_event(name, params))
    finally:
        agent.close()


@app.command()
def identify(
    field: list[str] = typer.Option(..., "--field", "-f", help="Identifier as KEY=VALUE (repeatable)."),
    state_dir: Path = _STATE_DIR_OPTION,
    sink: str = _SINK_OPTION,
    endpoint: str | None = _ENDPOINT_OPTION,
    debug: bool = _DEBUG_OPTION,
    pretty: bool = _PRETTY_OPTION,
    json_logs: bool = _JSON_LOGS_OPTION,
) -> None:
    """Assign identifier attributes to this installation's pseudo-identity."""
    configure_logging(json_output=json_logs, level="DEBUG" if debug else "WARNING")

    fields = _parse_pairs(field, "--field")
    agent = _build_agent(state_dir, None)
    _init_agent(agent, sink=sink, endpoint=endpoint, debug=debug, pretty=pretty)
    try:
        _exit_on_failure(agent.set_identifiers(fields))
    finally:
        agent.close()


@app.command()
def whoami(
    state_dir: Path = _STATE_DIR_OPTION,
    namespace: str = typer.Option("pharaon", "--namespace", help="Identity key namespace."),
) -> None:
    """Print this installation's pseudo-identity, creating it if needed."""
    configure_logging(level="WARNING")

    key = f"{namespace}_user_pseudo_id"
    resolver = IdentityResolver(
        [
            DurableStoreTier(FileKeyValueStore(state_dir / STORE_FILENAME), key),
            CookieTier(FileCookieJar(state_dir / COOKIE_FILENAME), key),
        ]
    )
    try:
        pseudo_id = resolver.resolve()
    except IdentityGenerationError as e:
        _fail(e.kind, e.message)
    typer.echo(pseudo_id)
