"""Tests for the PersistenceTier adapters."""

import pytest

from pharaon.contracts.errors import StorageUnavailableError
from pharaon.core.config import PSEUDO_ID_COOKIE_MAX_AGE
from pharaon.identity.protocols import PersistenceTier
from pharaon.identity.stores import MemoryCookieJar, MemoryKeyValueStore
from pharaon.identity.tiers import CookieTier, DurableStoreTier

KEY = "pharaon_user_pseudo_id"
TOKEN = "0f8e2a6c-3d41-4b7e-9c55-1a2b3c4d5e6f"


class OSErrorStore:
    """Host store that fails like a full disk."""

    def get(self, key: str) -> str | None:
        raise OSError("disk I/O error")

    def set(self, key: str, value: str) -> bool:
        raise OSError("No space left on device")


class BrokenDriverStore:
    """Host store whose driver fails with a non-I/O exception."""

    def get(self, key: str) -> str | None:
        raise RuntimeError("backend gone")

    def set(self, key: str, value: str) -> bool:
        raise RuntimeError("backend gone")


class BrokenJar:
    def get(self, name: str) -> str | None:
        raise ValueError("corrupt cookie header")

    def set(self, name: str, value: str, max_age_seconds: int) -> None:
        raise ValueError("corrupt cookie header")


class RecordingJar:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, int]] = []

    def get(self, name: str) -> str | None:
        return None

    def set(self, name: str, value: str, max_age_seconds: int) -> None:
        self.calls.append((name, value, max_age_seconds))


class TestDurableStoreTier:
    def test_is_persistence_tier(self) -> None:
        tier = DurableStoreTier(MemoryKeyValueStore(), KEY)
        assert isinstance(tier, PersistenceTier)
        assert tier.name == "durable_store"

    def test_read_and_write(self) -> None:
        store = MemoryKeyValueStore()
        tier = DurableStoreTier(store, KEY)

        assert tier.read() is None
        tier.write(TOKEN)

        assert tier.read() == TOKEN
        assert store.get(KEY) == TOKEN

    def test_empty_value_is_a_miss(self) -> None:
        assert DurableStoreTier(MemoryKeyValueStore({KEY: ""}), KEY).read() is None

    def test_os_error_translated(self) -> None:
        tier = DurableStoreTier(OSErrorStore(), KEY)

        with pytest.raises(StorageUnavailableError, match="disk I/O error"):
            tier.read()
        with pytest.raises(StorageUnavailableError, match="No space left"):
            tier.write(TOKEN)

    def test_any_backend_error_translated(self) -> None:
        tier = DurableStoreTier(BrokenDriverStore(), KEY)

        with pytest.raises(StorageUnavailableError, match="RuntimeError: backend gone") as excinfo:
            tier.read()
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        with pytest.raises(StorageUnavailableError, match="RuntimeError: backend gone"):
            tier.write(TOKEN)

    def test_storage_unavailable_passed_through(self) -> None:
        class UnavailableStore(MemoryKeyValueStore):
            def get(self, key: str) -> str | None:
                raise StorageUnavailableError("host_db", "locked")

        with pytest.raises(StorageUnavailableError) as excinfo:
            DurableStoreTier(UnavailableStore(), KEY).read()
        assert excinfo.value.tier == "host_db"

    def test_rejected_write_raises(self) -> None:
        class RejectingStore(MemoryKeyValueStore):
            def set(self, key: str, value: str) -> bool:
                return False

        with pytest.raises(StorageUnavailableError, match="rejected"):
            DurableStoreTier(RejectingStore(), KEY).write(TOKEN)


class TestCookieTier:
    def test_is_persistence_tier(self) -> None:
        tier = CookieTier(MemoryCookieJar(), KEY)
        assert isinstance(tier, PersistenceTier)
        assert tier.name == "cookie"

    def test_write_uses_one_year_max_age(self) -> None:
        jar = RecordingJar()
        CookieTier(jar, KEY).write(TOKEN)

        assert jar.calls == [(KEY, TOKEN, PSEUDO_ID_COOKIE_MAX_AGE)]
        assert PSEUDO_ID_COOKIE_MAX_AGE == 365 * 24 * 3600

    def test_read_after_write(self) -> None:
        tier = CookieTier(MemoryCookieJar(), KEY)
        tier.write(TOKEN)
        assert tier.read() == TOKEN

    @pytest.mark.parametrize("max_age", [0, -5])
    def test_non_positive_max_age_rejected(self, max_age: int) -> None:
        with pytest.raises(ValueError, match="max_age_seconds must be >= 1"):
            CookieTier(MemoryCookieJar(), KEY, max_age_seconds=max_age)

    def test_any_jar_error_translated(self) -> None:
        tier = CookieTier(BrokenJar(), KEY)

        with pytest.raises(StorageUnavailableError, match="ValueError: corrupt cookie header"):
            tier.read()
        with pytest.raises(StorageUnavailableError, match="ValueError: corrupt cookie header"):
            tier.write(TOKEN)
