"""Environment probes: read-only accessors for event context.

Every accessor may return None (or raise) when its capability is missing;
EnvironmentSnapshot degrades that single field instead of failing.
"""

from __future__ import annotations

import locale
import os
import platform
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from pharaon import __version__

Dimensions = tuple[int, int]

# On most Unix hosts a symlink into the zoneinfo database, e.g.
# /usr/share/zoneinfo/Europe/Paris
LOCALTIME_PATH = Path("/etc/localtime")


@runtime_checkable
class EnvironmentProbe(Protocol):
    """Read-only accessors for the host environment."""

    def page_url(self) -> str | None: ...

    def referrer(self) -> str | None: ...

    def timezone(self) -> str | None: ...

    def screen_size(self) -> Dimensions | None: ...

    def viewport_size(self) -> Dimensions | None: ...

    def language(self) -> str | None: ...

    def user_agent(self) -> str | None: ...

    def platform(self) -> str | None: ...


def _zone_name_from_localtime(path: Path) -> str | None:
    """IANA zone name from the target of a zoneinfo symlink, if it is one."""
    try:
        target = path.resolve(strict=True)
    except (OSError, RuntimeError):
        return None
    parts = target.parts
    if "zoneinfo" not in parts:
        return None
    zone = "/".join(parts[parts.index("zoneinfo") + 1 :])
    return zone or None


def _language_tag(locale_name: str | None) -> str | None:
    """Convert a POSIX locale name (en_US.UTF-8) to a language tag (en-US)."""
    if not locale_name or locale_name in ("C", "POSIX"):
        return None
    return locale_name.split(".", 1)[0].split("@", 1)[0].replace("_", "-")


class HostEnvironmentProbe:
    """EnvironmentProbe for a Python host process.

    Location, referrer and display dimensions have no process-level source,
    so the host supplies them (and may update them with navigate()).
    Timezone, language, user agent and platform are read from the process.
    """

    def __init__(
        self,
        *,
        page_url: str | None = None,
        referrer: str | None = None,
        screen_size: Dimensions | None = None,
        viewport_size: Dimensions | None = None,
    ) -> None:
        self._page_url = page_url
        self._referrer = referrer
        self._screen_size = screen_size
        self._viewport_size = viewport_size

    def navigate(self, page_url: str) -> None:
        """Move to a new location; the previous one becomes the referrer."""
        self._referrer = self._page_url
        self._page_url = page_url

    def page_url(self) -> str | None:
        return self._page_url

    def referrer(self) -> str | None:
        return self._referrer

    def timezone(self) -> str | None:
        tz_env = os.environ.get("TZ")
        if tz_env:
            return tz_env.lstrip(":")
        zone = _zone_name_from_localtime(LOCALTIME_PATH)
        if zone:
            return zone
        # Abbreviation (CET, UTC) only when no IANA name is available
        return datetime.now().astimezone().tzname() or time.tzname[0]

    def screen_size(self) -> Dimensions | None:
        return self._screen_size

    def viewport_size(self) -> Dimensions | None:
        return self._viewport_size

    def language(self) -> str | None:
        return _language_tag(locale.getlocale()[0] or os.environ.get("LANG"))

    def user_agent(self) -> str | None:
        return f"pharaon-python/{__version__} ({platform.python_implementation()} {platform.python_version()})"

    def platform(self) -> str | None:
        return f"{platform.system() or sys.platform} {platform.machine()}".strip()
