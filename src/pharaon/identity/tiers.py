"""PersistenceTier adapters over the identity storage backends.

Host-supplied backends may fail in any way (OSError, a driver exception, a
plain RuntimeError); tiers translate every failure to StorageUnavailableError
so the resolver only ever handles one failure type and a broken backend
degrades to the next tier instead of aborting the tracking call.
"""

from __future__ import annotations

from pharaon.contracts.errors import StorageUnavailableError
from pharaon.core.config import PSEUDO_ID_COOKIE_MAX_AGE
from pharaon.identity.protocols import CookieJar, KeyValueStore


class DurableStoreTier:
    """Pseudo-identity held in a KeyValueStore under a fixed key."""

    _name = "durable_store"

    def __init__(self, store: KeyValueStore, key: str) -> None:
        self._store = store
        self._key = key

    @property
    def name(self) -> str:
        return self._name

    def read(self) -> str | None:
        try:
            return self._store.get(self._key) or None
        except StorageUnavailableError:
            raise
        except Exception as e:
            raise StorageUnavailableError(self._name, f"{type(e).__name__}: {e}") from e

    def write(self, value: str) -> None:
        try:
            accepted = self._store.set(self._key, value)
        except StorageUnavailableError:
            raise
        except Exception as e:
            raise StorageUnavailableError(self._name, f"{type(e).__name__}: {e}") from e
        if not accepted:
            raise StorageUnavailableError(self._name, f"write of '{self._key}' was rejected")


class CookieTier:
    """Pseudo-identity held in a cookie, refreshed to a one-year max-age on write."""

    _name = "cookie"

    def __init__(self, jar: CookieJar, cookie_name: str, max_age_seconds: int = PSEUDO_ID_COOKIE_MAX_AGE) -> None:
        if max_age_seconds < 1:
            raise ValueError(f"max_age_seconds must be >= 1, got {max_age_seconds}")
        self._jar = jar
        self._cookie_name = cookie_name
        self._max_age_seconds = max_age_seconds

    @property
    def name(self) -> str:
        return self._name

    def read(self) -> str | None:
        try:
            return self._jar.get(self._cookie_name) or None
        except StorageUnavailableError:
            raise
        except Exception as e:
            raise StorageUnavailableError(self._name, f"{type(e).__name__}: {e}") from e

    def write(self, value: str) -> None:
        try:
            self._jar.set(self._cookie_name, value, self._max_age_seconds)
        except StorageUnavailableError:
            raise
        except Exception as e:
            raise StorageUnavailableError(self._name, f"{type(e).__name__}: {e}") from e
