"""Protocol definitions for pseudo-identity persistence.

Two storage capabilities back the identity:
- KeyValueStore: the durable store, tried first
- CookieJar: the fallback cookie-like store with a max-age

Both are wrapped in PersistenceTier adapters so that IdentityResolver can
walk an ordered list of tiers without knowing what backs each one.

Error handling:
    - Backends signal an unreachable store by raising StorageUnavailableError
    - A KeyValueStore reports a rejected write by returning False
    - Tiers translate both into StorageUnavailableError for the resolver
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable string key-value persistence."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if absent.

        Raises:
            StorageUnavailableError: If the store cannot be read
        """
        ...

    def set(self, key: str, value: str) -> bool:
        """Store a value. Returns False if the write was rejected.

        Raises:
            StorageUnavailableError: If the store cannot be written
        """
        ...


@runtime_checkable
class CookieJar(Protocol):
    """Cookie-like persistence where every entry carries a max-age."""

    def get(self, name: str) -> str | None:
        """Return the cookie value, or None if absent or expired."""
        ...

    def set(self, name: str, value: str, max_age_seconds: int) -> None:
        """Set a cookie that expires max_age_seconds from now.

        Raises:
            StorageUnavailableError: If the jar cannot be written
        """
        ...


@runtime_checkable
class PersistenceTier(Protocol):
    """One place the pseudo-identity is persisted.

    read() returns None on a miss. Both read() and write() raise
    StorageUnavailableError when the tier cannot be used.
    """

    @property
    def name(self) -> str:
        """Tier name used in diagnostics."""
        ...

    def read(self) -> str | None: ...

    def write(self, value: str) -> None: ...
