"""Point-in-time environment context for tracked events."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from pharaon.contracts.records import EnvironmentFields
from pharaon.environment.probe import EnvironmentProbe

logger = structlog.get_logger(__name__)


def _format_dimensions(value: Any) -> str:
    width, height = value
    return f"{int(width)}x{int(height)}"


class EnvironmentSnapshot:
    """Capture EnvironmentFields from a probe and an identity source.

    capture() never fails because of the probe: each field is read
    independently and degrades to "" (page_referrer to None) if its accessor
    raises or returns nothing. The identity source is NOT guarded, so an
    identity failure aborts the enclosing tracking call.

    User agent and platform do not change during a session and are read
    once, on first capture.
    """

    def __init__(self, probe: EnvironmentProbe, identity: Callable[[], str]) -> None:
        self._probe = probe
        self._identity = identity
        self._user_agent: str | None = None
        self._platform: str | None = None

    def _read(self, field_name: str, accessor: str, formatter: Callable[[Any], str] = str) -> str:
        try:
            value = getattr(self._probe, accessor)()
            if value is None or value == "":
                return ""
            return formatter(value)
        except Exception as e:
            logger.debug("Environment probe unavailable", field=field_name, error=str(e))
            return ""

    def capture(self) -> EnvironmentFields:
        pseudo_id = self._identity()

        if self._user_agent is None:
            self._user_agent = self._read("device_user_agent", "user_agent")
        if self._platform is None:
            self._platform = self._read("device_platform", "platform")

        return EnvironmentFields(
            page_url=self._read("page_url", "page_url"),
            page_referrer=self._read("page_referrer", "referrer") or None,
            user_pseudo_id=pseudo_id,
            user_timezone=self._read("user_timezone", "timezone"),
            browser_screen_size=self._read("browser_screen_size", "screen_size", _format_dimensions),
            browser_viewport_size=self._read("browser_viewport_size", "viewport_size", _format_dimensions),
            browser_language=self._read("browser_language", "language"),
            device_user_agent=self._user_agent,
            device_platform=self._platform,
        )
