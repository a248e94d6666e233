# tests/fixtures/doubles.py
"""In-memory doubles for the agent's injected collaborators."""

from datetime import UTC, datetime, timedelta
from typing import Any

from pharaon.contracts.records import EventRecord, IdentifierRecord
from pharaon.core.config import AgentSettings

FIXED_NOW = datetime(2026, 1, 30, 12, 0, 0, 123456, tzinfo=UTC)


class FixedClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class RecordingSink:
    """SinkProtocol double that records everything it is handed."""

    _name = "recording"

    def __init__(self, *, fail_on_send: bool = False, fail_on_configure: bool = False) -> None:
        self.events: list[EventRecord] = []
        self.identifiers: list[IdentifierRecord] = []
        self.configured_with: list[AgentSettings] = []
        self.fail_on_send = fail_on_send
        self.fail_on_configure = fail_on_configure
        self.flush_count = 0
        self.close_count = 0

    @property
    def name(self) -> str:
        return self._name

    def configure(self, settings: AgentSettings) -> None:
        if self.fail_on_configure:
            raise RuntimeError("configure exploded")
        self.configured_with.append(settings)

    def send_event(self, record: EventRecord) -> None:
        if self.fail_on_send:
            raise ConnectionError("sink is down")
        self.events.append(record)

    def send_identifiers(self, record: IdentifierRecord) -> None:
        if self.fail_on_send:
            raise ConnectionError("sink is down")
        self.identifiers.append(record)

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        self.close_count += 1

    @property
    def event_names(self) -> list[str]:
        return [record.event_name for record in self.events]


class FakeProbe:
    """EnvironmentProbe with fixed values. Set a value to an Exception to make it raise."""

    DEFAULTS: dict[str, Any] = {
        "page_url": "https://example.com/pricing",
        "referrer": "https://example.com/",
        "timezone": "Europe/Paris",
        "screen_size": (1920, 1080),
        "viewport_size": (1280, 720),
        "language": "fr-FR",
        "user_agent": "pharaon-test/1.0",
        "platform": "Linux x86_64",
    }

    def __init__(self, **overrides: Any) -> None:
        self.values = {**self.DEFAULTS, **overrides}
        self.calls: dict[str, int] = dict.fromkeys(self.DEFAULTS, 0)

    def _get(self, name: str) -> Any:
        self.calls[name] += 1
        value = self.values[name]
        if isinstance(value, Exception):
            raise value
        return value

    def page_url(self) -> str | None:
        return self._get("page_url")

    def referrer(self) -> str | None:
        return self._get("referrer")

    def timezone(self) -> str | None:
        return self._get("timezone")

    def screen_size(self) -> tuple[int, int] | None:
        return self._get("screen_size")

    def viewport_size(self) -> tuple[int, int] | None:
        return self._get("viewport_size")

    def language(self) -> str | None:
        return self._get("language")

    def user_agent(self) -> str | None:
        return self._get("user_agent")

    def platform(self) -> str | None:
        return self._get("platform")


def make_event_record(name: str = "signup", params: dict[str, Any] | None = None, **overrides: Any) -> EventRecord:
    fields: dict[str, Any] = {
        "event_name": name,
        "event_timestamp": "2026-01-30T12:00:00.123Z",
        "page_url": "https://example.com/pricing",
        "page_referrer": None,
        "user_pseudo_id": "0f8e2a6c-3d41-4b7e-9c55-1a2b3c4d5e6f",
        "user_timezone": "Europe/Paris",
        "browser_screen_size": "1920x1080",
        "browser_viewport_size": "1280x720",
        "browser_language": "fr-FR",
        "device_user_agent": "pharaon-test/1.0",
        "device_platform": "Linux x86_64",
        "event_params": {"plan": "pro"} if params is None else params,
    }
    fields.update(overrides)
    return EventRecord(**fields)


def make_identifier_record(user_params: dict[str, Any] | None = None) -> IdentifierRecord:
    return IdentifierRecord(
        user_pseudo_id="0f8e2a6c-3d41-4b7e-9c55-1a2b3c4d5e6f",
        timestamp_assignment="2026-01-30T12:00:00.123Z",
        user_params={"plan": "pro"} if user_params is None else user_params,
    )
