# src/pharaon/agent.py
"""TrackingAgent: the host-facing capture pipeline.

The agent is a two-state machine:

    UNCONFIGURED --init()--> CONFIGURED

While UNCONFIGURED, track_event() and set_identifiers() are buffered in an
EventQueue without validation. The first successful init() merges the
configuration, prepares the sink, flips the state and then replays the queue
in FIFO order through the same validation path a direct call takes. Later
init() calls only merge configuration and reconfigure the sink.

Per call (CONFIGURED):
    validate -> bound -> resolve identity + capture environment -> build record -> sink

Error handling:
    Every public operation returns a TrackResult. TrackingError subclasses are
    raised internally and converted at the operation boundary; nothing is
    raised back to the host. Truncation and degraded storage are warnings: the
    call still completes. Sink failures are logged, never propagated, never
    retried.

Thread Safety:
    An RLock guards the state transition, queue drain, identity resolution
    and identifier merge. It is re-entrant so a sink that tracks from inside
    send_event() during the drain takes the direct path instead of
    deadlocking. Outside the drain, sink calls run without holding the lock.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from pharaon.contracts.enums import AgentState, CallKind, ErrorKind
from pharaon.contracts.errors import InvalidInputError, PayloadTooLargeError, TrackingError
from pharaon.contracts.records import EnvironmentFields, EventRecord, IdentifierRecord, QueuedCall
from pharaon.contracts.results import TrackResult
from pharaon.core.canonical import normalize_event_params, normalize_identifiers, serialized_size
from pharaon.core.config import AgentSettings, merge_settings
from pharaon.core.payload import bound
from pharaon.environment.probe import EnvironmentProbe, HostEnvironmentProbe
from pharaon.environment.snapshot import EnvironmentSnapshot
from pharaon.identity.protocols import CookieJar, KeyValueStore
from pharaon.identity.resolver import IdentityResolver
from pharaon.identity.stores import MemoryCookieJar, MemoryKeyValueStore
from pharaon.identity.tiers import CookieTier, DurableStoreTier
from pharaon.telemetry.buffer import EventQueue
from pharaon.telemetry.errors import SinkConfigurationError
from pharaon.telemetry.factory import create_sink
from pharaon.telemetry.protocols import SinkProtocol

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _iso_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a Z suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TrackingAgent:
    """Collect events and identifiers and hand them to a sink.

    All collaborators are injectable; each defaults to an in-process
    implementation so the agent works out of the box with the console sink.

    Example:
        agent = TrackingAgent()
        agent.track_event("signup", {"plan": "pro"})   # queued
        agent.init({"debug": True})                     # replays "signup"
        agent.set_identifiers({"plan": "pro"})
    """

    def __init__(
        self,
        *,
        sink: SinkProtocol | None = None,
        store: KeyValueStore | None = None,
        cookies: CookieJar | None = None,
        probe: EnvironmentProbe | None = None,
        identity: IdentityResolver | None = None,
        clock: Clock = _utcnow,
        sink_plugins: Iterable[Any] = (),
        max_queued_calls: int | None = None,
    ) -> None:
        """Initialize an unconfigured agent.

        Args:
            sink: Sink to deliver to. If None, init() creates the sink named
                by the `sink` option through plugin discovery.
            store: Durable store for the pseudo-identity.
            cookies: Fallback cookie jar for the pseudo-identity.
            probe: Environment probe for context fields.
            identity: Pre-built resolver; overrides store/cookies/namespace.
            clock: Source of record timestamps.
            sink_plugins: Extra pluggy plugins offering sinks.
            max_queued_calls: Optional pre-init queue capacity. The default
                (None) keeps every call; with a capacity the oldest calls are
                evicted once it is reached.
        """
        self._lock = threading.RLock()
        self._state = AgentState.UNCONFIGURED
        self._settings = AgentSettings()
        self._queue = EventQueue(max_size=max_queued_calls)
        self._identifiers: dict[str, Any] = {}

        self._injected_sink = sink
        self._sink: SinkProtocol | None = None
        self._sink_plugins = tuple(sink_plugins)

        self._store: KeyValueStore = store if store is not None else MemoryKeyValueStore()
        self._cookies: CookieJar = cookies if cookies is not None else MemoryCookieJar()
        self._injected_identity = identity
        self._identity: IdentityResolver | None = identity
        self._identity_key: str | None = None
        self._probe: EnvironmentProbe = probe if probe is not None else HostEnvironmentProbe()
        self._snapshot: EnvironmentSnapshot | None = None
        self._clock = clock

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def settings(self) -> AgentSettings:
        return self._settings

    @property
    def identifiers(self) -> dict[str, Any]:
        """Copy of the resident identifier set."""
        with self._lock:
            return dict(self._identifiers)

    @property
    def pending_calls(self) -> int:
        """Number of calls waiting for init()."""
        return len(self._queue)

    @property
    def dropped_calls(self) -> int:
        """Number of pre-init calls evicted because the queue was full."""
        return self._queue.dropped_count

    @property
    def sink(self) -> SinkProtocol | None:
        return self._sink

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def init(self, config: Mapping[str, Any] | None = None) -> TrackResult:
        """Merge configuration and, on the first success, replay queued calls.

        An invalid configuration (or a sink that rejects it) leaves the agent
        in its previous state and configuration.
        """
        with self._lock:
            try:
                settings = merge_settings(self._settings, config)
            except (ValidationError, TypeError) as e:
                logger.error("Invalid agent configuration", error=str(e))
                return TrackResult.failure(ErrorKind.INVALID_INPUT, f"Invalid configuration: {e}")

            try:
                sink = self._prepare_sink(settings)
            except SinkConfigurationError as e:
                logger.error("Sink configuration failed", sink=e.sink_name, error=e.message)
                return TrackResult.failure(ErrorKind.INVALID_INPUT, str(e))

            self._settings = settings
            self._sink = sink
            self._prepare_identity(settings)

            if settings.debug:
                logger.info("Agent initialized", config=settings.model_dump(), sink=sink.name)

            if self._state is AgentState.UNCONFIGURED:
                # Flip BEFORE draining: calls issued during replay take the direct path
                self._state = AgentState.CONFIGURED
                replayed = self._queue.drain_into(self._replay)
                logger.debug(
                    "Replayed queued calls",
                    replayed=replayed,
                    dropped=self._queue.dropped_count,
                )

        return TrackResult.success()

    def track_event(self, name: Any, params: Any = None) -> TrackResult:
        """Track a named event with optional flat params.

        Before init() the call is queued as-is and validated on replay.
        """
        with self._lock:
            if self._state is AgentState.UNCONFIGURED:
                self._queue.enqueue(QueuedCall(kind=CallKind.EVENT, name=name, params=params))
                return TrackResult.deferred()
        return self._track(name, params)

    def set_identifiers(self, fields: Any) -> TrackResult:
        """Merge scalar attributes into the resident identifier set.

        Before init() the call is queued as-is and validated on replay.
        """
        with self._lock:
            if self._state is AgentState.UNCONFIGURED:
                self._queue.enqueue(QueuedCall(kind=CallKind.IDENTIFIERS, params=fields))
                return TrackResult.deferred()
        return self._identify(fields)

    def flush(self) -> None:
        """Wait for the sink's in-flight deliveries."""
        if self._sink is None:
            return
        try:
            self._sink.flush()
        except Exception as e:
            logger.warning("Sink flush failed", sink=self._sink.name, error=str(e))

    def close(self) -> None:
        """Flush and release the sink. Safe to call more than once."""
        if self._sink is None:
            return
        self.flush()
        try:
            self._sink.close()
        except Exception as e:
            logger.warning("Sink close failed", sink=self._sink.name, error=str(e))

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------

    def _prepare_sink(self, settings: AgentSettings) -> SinkProtocol:
        """Return a sink configured for settings.

        Raises:
            SinkConfigurationError: If the sink cannot be created or configured
        """
        if self._injected_sink is not None:
            sink = self._injected_sink
        elif self._sink is not None and self._sink.name == settings.sink:
            sink = self._sink
        else:
            return self._replace_sink(create_sink(settings, sink_plugins=self._sink_plugins))

        try:
            sink.configure(settings)
        except SinkConfigurationError:
            raise
        except Exception as e:
            raise SinkConfigurationError(sink.name, f"configure() failed: {e}") from e
        return sink

    def _replace_sink(self, sink: SinkProtocol) -> SinkProtocol:
        previous = self._sink
        if previous is not None:
            try:
                previous.close()
            except Exception as e:
                logger.warning("Previous sink close failed", sink=previous.name, error=str(e))
        return sink

    def _prepare_identity(self, settings: AgentSettings) -> None:
        """(Re)build the resolver when the persisted key changes."""
        if self._injected_identity is None and self._identity_key != settings.pseudo_id_key:
            self._identity_key = settings.pseudo_id_key
            self._identity = IdentityResolver(
                [
                    DurableStoreTier(self._store, settings.pseudo_id_key),
                    CookieTier(self._cookies, settings.pseudo_id_key),
                ]
            )
            self._snapshot = None
        if self._snapshot is None and self._identity is not None:
            self._snapshot = EnvironmentSnapshot(self._probe, self._identity.resolve)

    # ------------------------------------------------------------------
    # Call processing (CONFIGURED)
    # ------------------------------------------------------------------

    def _replay(self, call: QueuedCall) -> TrackResult:
        if call.kind is CallKind.EVENT:
            return self._track(call.name, call.params)
        return self._identify(call.params)

    def _track(self, name: Any, params: Any) -> TrackResult:
        warnings: list[ErrorKind] = []
        try:
            with self._lock:
                record = self._build_event(name, params, warnings)
        except TrackingError as e:
            return self._reject("track_event", e, warnings)

        self._dispatch("event", record)
        return TrackResult.success(record, tuple(warnings))

    def _build_event(self, name: Any, params: Any, warnings: list[ErrorKind]) -> EventRecord:
        settings = self._settings
        if not isinstance(name, str) or not name:
            raise InvalidInputError("Event name is required and must be a non-empty string")

        if len(name) > settings.max_event_name_length:
            logger.warning(
                "Event name exceeds maximum length, truncating",
                original_length=len(name),
                limit=settings.max_event_name_length,
            )
            name = name[: settings.max_event_name_length]
            warnings.append(ErrorKind.TRUNCATED)

        try:
            normalized = normalize_event_params(params)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid event params for '{name}': {e}") from e

        bounded = bound(normalized, settings.max_event_params_bytes)
        if bounded.truncated:
            logger.warning(
                "event_params size exceeds the limit, truncating",
                event_name=name,
                original_bytes=bounded.original_bytes,
                limit_bytes=bounded.limit_bytes,
                bounded_bytes=bounded.bounded_bytes,
                dropped_keys=list(bounded.dropped_keys),
            )
            if ErrorKind.TRUNCATED not in warnings:
                warnings.append(ErrorKind.TRUNCATED)

        environment = self._capture_environment(warnings)
        return EventRecord.build(name, _iso_timestamp(self._clock()), environment, bounded.value)

    def _identify(self, fields: Any) -> TrackResult:
        warnings: list[ErrorKind] = []
        try:
            with self._lock:
                record = self._merge_identifiers(fields, warnings)
        except TrackingError as e:
            return self._reject("set_identifiers", e, warnings)

        self._dispatch("user_params", record)
        return TrackResult.success(record, tuple(warnings))

    def _merge_identifiers(self, fields: Any, warnings: list[ErrorKind]) -> IdentifierRecord:
        try:
            normalized = normalize_identifiers(fields)
            candidate = {**self._identifiers, **normalized}
            size = serialized_size(candidate)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Invalid identifiers: {e}") from e

        if size > self._settings.max_identifier_bytes:
            raise PayloadTooLargeError(size, self._settings.max_identifier_bytes)

        pseudo_id = self._resolve_identity(warnings)
        # Commit only once nothing else can fail: no partial merge
        self._identifiers = candidate
        return IdentifierRecord(
            user_pseudo_id=pseudo_id,
            timestamp_assignment=_iso_timestamp(self._clock()),
            user_params=dict(candidate),
        )

    def _resolve_identity(self, warnings: list[ErrorKind]) -> str:
        assert self._identity is not None  # set by init() before CONFIGURED
        before = self._identity.storage_failures
        pseudo_id = self._identity.resolve()
        if self._identity.storage_failures > before:
            warnings.append(ErrorKind.STORAGE_UNAVAILABLE)
        return pseudo_id

    def _capture_environment(self, warnings: list[ErrorKind]) -> EnvironmentFields:
        assert self._identity is not None and self._snapshot is not None
        before = self._identity.storage_failures
        environment = self._snapshot.capture()
        if self._identity.storage_failures > before:
            warnings.append(ErrorKind.STORAGE_UNAVAILABLE)
        return environment

    def _reject(self, operation: str, error: TrackingError, warnings: list[ErrorKind]) -> TrackResult:
        logger.error(
            "Tracking call rejected",
            operation=operation,
            error_kind=error.kind.value,
            reason=error.message,
        )
        return TrackResult.failure(error.kind, error.message, tuple(warnings))

    def _dispatch(self, record_type: str, record: EventRecord | IdentifierRecord) -> None:
        """Hand a record to the sink. Failures are logged, never raised."""
        sink = self._sink
        assert sink is not None
        if self._settings.debug:
            logger.info("Dispatching record", record_type=record_type, sink=sink.name, record=record.to_payload())
        try:
            if isinstance(record, EventRecord):
                sink.send_event(record)
            else:
                sink.send_identifiers(record)
        except Exception as e:
            logger.error(
                "Sink delivery failed",
                sink=sink.name,
                record_type=record_type,
                error=str(e),
            )
