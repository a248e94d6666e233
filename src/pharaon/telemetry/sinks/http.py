# src/pharaon/telemetry/sinks/http.py
"""HTTP sink: POST records to a collection endpoint.

Each record is sent as one JSON request:

    POST <endpoint>
    {"type": "event" | "user_params", "data": <record.to_payload()>}

Requests run on a DeliveryWorker thread, so send_event()/send_identifiers()
return immediately. Non-2xx responses and transport errors are logged as
warnings and never retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import structlog

from pharaon import __version__
from pharaon.telemetry.delivery import DeliveryWorker
from pharaon.telemetry.errors import SinkConfigurationError

if TYPE_CHECKING:
    from pharaon.contracts.records import EventRecord, IdentifierRecord
    from pharaon.core.config import AgentSettings

logger = structlog.get_logger(__name__)

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_QUEUE_SIZE = 1000


class HTTPSink:
    """Deliver records to an HTTP(S) endpoint via httpx.

    Configuration:
        endpoint (required): collection URL, from AgentSettings.endpoint
        sink_options.timeout: request timeout in seconds (default: 10.0)
        sink_options.headers: extra request headers (e.g. Authorization)
        sink_options.queue_size: max pending deliveries (default: 1000)

    Example:
        agent.init({
            "sink": "http",
            "endpoint": "https://collect.example.com/v1/track",
            "sink_options": {"headers": {"Authorization": "Bearer ..."}},
        })
    """

    _name = "http"

    def __init__(self) -> None:
        self._endpoint: str | None = None
        self._client: httpx.Client | None = None
        self._worker: DeliveryWorker | None = None
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    def configure(self, settings: AgentSettings) -> None:
        """Validate options and (re)build the HTTP client.

        Raises:
            SinkConfigurationError: If endpoint is missing or options are invalid
        """
        if not settings.endpoint:
            raise SinkConfigurationError(self._name, "HTTP sink requires 'endpoint' in config")

        options = settings.sink_options
        timeout = options.get("timeout", _DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
            raise SinkConfigurationError(self._name, f"'timeout' must be a positive number, got {timeout!r}")

        headers = options.get("headers", {})
        if not isinstance(headers, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in headers.items()):
            raise SinkConfigurationError(self._name, "'headers' must be a mapping of strings to strings")

        queue_size = options.get("queue_size", _DEFAULT_QUEUE_SIZE)
        if isinstance(queue_size, bool) or not isinstance(queue_size, int) or queue_size < 1:
            raise SinkConfigurationError(self._name, f"'queue_size' must be an integer >= 1, got {queue_size!r}")

        if self._worker is None:
            self._worker = DeliveryWorker(self._name, queue_size=queue_size)
        else:
            # Deliveries queued under the previous configuration use the old client
            self._worker.flush()
        if self._client is not None:
            self._client.close()

        self._endpoint = settings.endpoint
        self._client = httpx.Client(
            timeout=float(timeout),
            headers={"User-Agent": f"pharaon-python/{__version__}", **headers},
        )
        self._closed = False

        logger.debug(
            "HTTP sink configured",
            endpoint=self._endpoint,
            timeout=timeout,
            headers_count=len(headers),
        )

    def send_event(self, record: EventRecord) -> None:
        self._submit("event", record.to_payload())

    def send_identifiers(self, record: IdentifierRecord) -> None:
        self._submit("user_params", record.to_payload())

    def _submit(self, record_type: str, payload: dict[str, Any]) -> None:
        if self._worker is None or self._client is None or self._endpoint is None or self._closed:
            logger.warning("HTTP sink not configured, dropping record", record_type=record_type)
            return
        client, endpoint = self._client, self._endpoint
        body = {"type": record_type, "data": payload}
        self._worker.submit(lambda: self._post(client, endpoint, body))

    def _post(self, client: httpx.Client, endpoint: str, body: dict[str, Any]) -> None:
        """Runs on the delivery thread."""
        try:
            response = client.post(endpoint, json=body)
        except httpx.HTTPError as e:
            logger.warning(
                "Record delivery failed",
                sink=self._name,
                record_type=body["type"],
                error=str(e),
            )
            return
        if response.is_error:
            logger.warning(
                "Record delivery rejected",
                sink=self._name,
                record_type=body["type"],
                status_code=response.status_code,
            )

    @property
    def health_metrics(self) -> dict[str, Any]:
        return self._worker.health_metrics if self._worker is not None else {}

    def flush(self) -> None:
        if self._worker is not None:
            self._worker.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._worker is not None:
            self._worker.close()
            self._worker = None
        if self._client is not None:
            self._client.close()
            self._client = None
