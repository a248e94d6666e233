"""Immutable records produced by the capture pipeline.

EventRecord and IdentifierRecord are what sinks receive. QueuedCall is what
the pre-configuration queue holds. All are frozen; payload mappings are
copied on construction paths inside the agent and must not be mutated by
sinks.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from pharaon.contracts.enums import CallKind
from pharaon.core.canonical import dumps_compact

# Closed scalar variant for identifier values and flat event params.
Scalar = str | int | float | bool


@dataclass(frozen=True, slots=True)
class EnvironmentFields:
    """Point-in-time context attached to every event.

    Every field degrades to "" when its probe is unavailable, except
    page_referrer which is None when there is no referrer.
    """

    page_url: str
    page_referrer: str | None
    user_pseudo_id: str
    user_timezone: str
    browser_screen_size: str
    browser_viewport_size: str
    browser_language: str
    device_user_agent: str
    device_platform: str


@dataclass(frozen=True, slots=True)
class EventRecord:
    """A single tracked event, ready for delivery.

    Attributes:
        event_name: Event name, already truncated to the configured maximum
        event_timestamp: ISO-8601 UTC timestamp with millisecond precision
        event_params: Bounded params mapping (serialized size within ceiling)
    """

    event_name: str
    event_timestamp: str
    page_url: str
    page_referrer: str | None
    user_pseudo_id: str
    user_timezone: str
    browser_screen_size: str
    browser_viewport_size: str
    browser_language: str
    device_user_agent: str
    device_platform: str
    event_params: Mapping[str, Any]

    @classmethod
    def build(
        cls,
        name: str,
        timestamp: str,
        environment: EnvironmentFields,
        params: Mapping[str, Any],
    ) -> "EventRecord":
        return cls(event_name=name, event_timestamp=timestamp, event_params=params, **asdict(environment))

    def to_payload(self) -> dict[str, Any]:
        """Render the wire form: event_params becomes a compact JSON string."""
        payload = {name: getattr(self, name) for name in self.__dataclass_fields__}
        payload["event_params"] = dumps_compact(dict(self.event_params))
        return payload


@dataclass(frozen=True, slots=True)
class IdentifierRecord:
    """Assignment of the resident identifier set to a pseudo-identity."""

    user_pseudo_id: str
    timestamp_assignment: str
    user_params: Mapping[str, Scalar]

    def to_payload(self) -> dict[str, Any]:
        return {
            "user_pseudo_id": self.user_pseudo_id,
            "timestamp_assignment": self.timestamp_assignment,
            "user_params": dumps_compact(dict(self.user_params)),
        }


@dataclass(frozen=True, slots=True)
class QueuedCall:
    """A public call deferred until the agent is configured.

    Arguments are stored exactly as the host passed them; validation happens
    when the call is replayed.
    """

    kind: CallKind
    params: Any
    name: Any = None
