"""Pseudo-identity resolution and persistence.

Components:
- protocols: KeyValueStore, CookieJar and PersistenceTier capabilities
- stores: in-memory and file-backed storage backends
- tiers: DurableStoreTier and CookieTier adapters
- resolver: IdentityResolver walking the tiers in order
"""

from pharaon.identity.protocols import CookieJar, KeyValueStore, PersistenceTier
from pharaon.identity.resolver import IdentityResolver
from pharaon.identity.stores import FileCookieJar, FileKeyValueStore, MemoryCookieJar, MemoryKeyValueStore
from pharaon.identity.tiers import CookieTier, DurableStoreTier

__all__ = [
    "CookieJar",
    "CookieTier",
    "DurableStoreTier",
    "FileCookieJar",
    "FileKeyValueStore",
    "IdentityResolver",
    "KeyValueStore",
    "MemoryCookieJar",
    "MemoryKeyValueStore",
    "PersistenceTier",
]
