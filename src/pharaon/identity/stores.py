"""Storage backends for the pseudo-identity.

- MemoryKeyValueStore / MemoryCookieJar: process-local, used by default and
  in tests
- FileKeyValueStore: durable JSON document on disk, replaced atomically
- FileCookieJar: Set-Cookie lines on disk, honouring Max-Age/Expires

File backends raise StorageUnavailableError for any I/O or decoding
failure so the resolver can degrade to the next tier.
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from email.utils import format_datetime, parsedate_to_datetime
from http.cookies import CookieError, SimpleCookie
from pathlib import Path

import structlog

from pharaon.contracts.errors import StorageUnavailableError

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class MemoryKeyValueStore:
    """In-memory KeyValueStore."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> bool:
        self._data[key] = value
        return True

    def clear(self) -> None:
        self._data.clear()


class FileKeyValueStore:
    """KeyValueStore persisted as a single JSON object on disk.

    Writes go to a sibling temporary file which then replaces the target,
    so a crash mid-write never leaves a truncated document behind.
    """

    _name = "file_store"

    def __init__(self, path: Path) -> None:
        self.path = path

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(self._name, f"cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageUnavailableError(self._name, f"{self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> str | None:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> bool:
        data = self._load()
        data[key] = value
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageUnavailableError(self._name, f"cannot write {self.path}: {e}") from e
        return True


class MemoryCookieJar:
    """In-memory CookieJar with max-age expiry."""

    def __init__(self, clock: Clock = _utcnow) -> None:
        self._clock = clock
        self._cookies: dict[str, tuple[str, datetime]] = {}

    def get(self, name: str) -> str | None:
        entry = self._cookies.get(name)
        if entry is None:
            return None
        value, expires = entry
        if expires <= self._clock():
            del self._cookies[name]
            return None
        return value

    def set(self, name: str, value: str, max_age_seconds: int) -> None:
        self._cookies[name] = (value, self._clock() + timedelta(seconds=max_age_seconds))


class FileCookieJar:
    """CookieJar persisted as one Set-Cookie header value per line.

    Every cookie is written with Path=/, Max-Age, Expires, Secure and
    SameSite=Lax. Expiry is evaluated against Expires on read.
    """

    _name = "cookie_jar"

    def __init__(self, path: Path, clock: Clock = _utcnow) -> None:
        self.path = path
        self._clock = clock

    def _load(self) -> SimpleCookie:
        jar: SimpleCookie = SimpleCookie()
        if not self.path.exists():
            return jar
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(self._name, f"cannot read {self.path}: {e}") from e
        for line in lines:
            if not line.strip():
                continue
            try:
                jar.load(line)
            except CookieError:
                logger.warning("Skipping malformed cookie line", path=str(self.path))
        return jar

    def _is_expired(self, expires: str) -> bool:
        if not expires:
            return False
        try:
            expires_at = parsedate_to_datetime(expires)
        except (TypeError, ValueError):
            return True
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return expires_at <= self._clock()

    def get(self, name: str) -> str | None:
        morsel = self._load().get(name)
        if morsel is None or self._is_expired(morsel["expires"]):
            return None
        return morsel.value

    def set(self, name: str, value: str, max_age_seconds: int) -> None:
        jar = self._load()
        jar[name] = value
        morsel = jar[name]
        morsel["path"] = "/"
        morsel["max-age"] = str(max_age_seconds)
        morsel["expires"] = format_datetime(self._clock() + timedelta(seconds=max_age_seconds), usegmt=True)
        morsel["secure"] = True
        morsel["samesite"] = "Lax"

        content = "\n".join(m.OutputString() for m in jar.values()) + "\n"
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise StorageUnavailableError(self._name, f"cannot write {self.path}: {e}") from e
