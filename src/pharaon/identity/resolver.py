"""Pseudo-identity resolution over ordered persistence tiers.

The pseudo-identity is an RFC 4122 version 4 UUID string identifying one
client installation. IdentityResolver walks its tiers in order (durable
store first, cookie second):

1. The first tier holding a value wins; tiers that missed are back-filled.
2. If every tier misses, a new UUID is generated and written to every tier.
3. A tier that raises StorageUnavailableError is logged and skipped.

Write failures are never fatal. If no tier accepts the new identity it only
lives in this resolver's memory: stable for the session, fresh next
process.

Randomness: the OS cryptographic source (os.urandom) is always preferred.
Only when it is unavailable does generation fall back to the
non-cryptographic random module, and that fallback is logged with
insecure_fallback=True so collisions can be audited. If neither source
produces a value, IdentityGenerationError aborts the enclosing call.
"""

from __future__ import annotations

import os
import random
import uuid
from collections.abc import Callable, Sequence

import structlog

from pharaon.contracts.errors import IdentityGenerationError, StorageUnavailableError
from pharaon.identity.protocols import PersistenceTier

logger = structlog.get_logger(__name__)

_UUID_BYTES = 16
_UUID_BITS = 128


class IdentityResolver:
    """Resolve, create and persist the pseudo-identity.

    Thread Safety:
        NOT thread-safe. The TrackingAgent serializes access.

    Attributes:
        storage_failures: Total tier read/write failures observed. Callers
            compare it before and after resolve() to report degraded storage.

    Example:
        resolver = IdentityResolver([DurableStoreTier(store, key), CookieTier(jar, key)])
        pseudo_id = resolver.resolve()
    """

    def __init__(
        self,
        tiers: Sequence[PersistenceTier],
        *,
        strong_bytes: Callable[[int], bytes] = os.urandom,
        weak_bits: Callable[[int], int] = random.getrandbits,
    ) -> None:
        self._tiers = list(tiers)
        self._strong_bytes = strong_bytes
        self._weak_bits = weak_bits
        self._cached: str | None = None
        self.storage_failures = 0

    def resolve(self) -> str:
        """Return the pseudo-identity, creating and persisting it if needed.

        Raises:
            IdentityGenerationError: If no identity exists and none can be generated
        """
        if self._cached is not None:
            return self._cached

        found: str | None = None
        missed: list[PersistenceTier] = []
        for tier in self._tiers:
            try:
                value = tier.read()
            except StorageUnavailableError as e:
                self._note_failure(tier, "read", e)
                continue
            if value:
                found = value
                break
            missed.append(tier)

        if found is not None:
            for tier in missed:
                self._write(tier, found)
        else:
            found = self._generate()
            written = [tier.name for tier in self._tiers if self._write(tier, found)]
            if not written:
                logger.warning(
                    "Pseudo-identity not persisted to any tier",
                    tiers=[tier.name for tier in self._tiers],
                    hint="A new identity will be generated in the next process",
                )
            else:
                logger.debug("Generated new pseudo-identity", persisted_to=written)

        self._cached = found
        return found

    def clear_cache(self) -> None:
        """Forget the memoized identity so the next resolve() reads the tiers again."""
        self._cached = None

    def _write(self, tier: PersistenceTier, value: str) -> bool:
        try:
            tier.write(value)
        except StorageUnavailableError as e:
            self._note_failure(tier, "write", e)
            return False
        return True

    def _note_failure(self, tier: PersistenceTier, operation: str, error: StorageUnavailableError) -> None:
        self.storage_failures += 1
        logger.warning(
            "Pseudo-identity storage tier unavailable",
            tier=tier.name,
            operation=operation,
            error=str(error),
        )

    def _generate(self) -> str:
        try:
            return str(uuid.UUID(bytes=self._strong_bytes(_UUID_BYTES), version=4))
        except (NotImplementedError, OSError, ValueError) as e:
            logger.warning(
                "Cryptographic random source unavailable, using non-cryptographic fallback",
                insecure_fallback=True,
                error=str(e),
            )

        try:
            return str(uuid.UUID(int=self._weak_bits(_UUID_BITS), version=4))
        except (NotImplementedError, OSError, ValueError) as e:
            raise IdentityGenerationError(f"No random source available to generate a pseudo-identity: {e}") from e
