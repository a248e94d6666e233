"""Tests for the in-memory and file-backed identity storage backends."""

from pathlib import Path

import pytest

from pharaon.contracts.errors import StorageUnavailableError
from pharaon.identity.protocols import CookieJar, KeyValueStore
from pharaon.identity.stores import FileCookieJar, FileKeyValueStore, MemoryCookieJar, MemoryKeyValueStore
from tests.fixtures.doubles import FixedClock

KEY = "pharaon_user_pseudo_id"
TOKEN = "0f8e2a6c-3d41-4b7e-9c55-1a2b3c4d5e6f"


class TestProtocolCompliance:
    def test_key_value_stores(self, tmp_path: Path) -> None:
        assert isinstance(MemoryKeyValueStore(), KeyValueStore)
        assert isinstance(FileKeyValueStore(tmp_path / "store.json"), KeyValueStore)

    def test_cookie_jars(self, tmp_path: Path) -> None:
        assert isinstance(MemoryCookieJar(), CookieJar)
        assert isinstance(FileCookieJar(tmp_path / "cookies.txt"), CookieJar)


class TestMemoryKeyValueStore:
    def test_get_missing_returns_none(self) -> None:
        assert MemoryKeyValueStore().get(KEY) is None

    def test_set_then_get(self) -> None:
        store = MemoryKeyValueStore()
        assert store.set(KEY, TOKEN) is True
        assert store.get(KEY) == TOKEN

    def test_initial_values_copied(self) -> None:
        initial = {KEY: TOKEN}
        store = MemoryKeyValueStore(initial)
        store.clear()

        assert store.get(KEY) is None
        assert initial == {KEY: TOKEN}


class TestFileKeyValueStore:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert FileKeyValueStore(tmp_path / "store.json").get(KEY) is None

    def test_value_survives_new_instance(self, tmp_path: Path) -> None:
        path = tmp_path / "state" / "store.json"
        FileKeyValueStore(path).set(KEY, TOKEN)

        assert FileKeyValueStore(path).get(KEY) == TOKEN

    def test_other_keys_preserved(self, tmp_path: Path) -> None:
        store = FileKeyValueStore(tmp_path / "store.json")
        store.set("other", "value")
        store.set(KEY, TOKEN)

        assert store.get("other") == "value"
        assert not (tmp_path / "store.json.tmp").exists()

    def test_non_string_value_reads_as_missing(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text('{"pharaon_user_pseudo_id": 42}', encoding="utf-8")

        assert FileKeyValueStore(path).get(KEY) is None

    def test_corrupt_file_unavailable(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageUnavailableError, match="file_store"):
            FileKeyValueStore(path).get(KEY)

    def test_non_object_document_unavailable(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageUnavailableError, match="does not hold a JSON object"):
            FileKeyValueStore(path).get(KEY)

    def test_unwritable_location_unavailable(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")

        # Parent "directory" is a regular file
        with pytest.raises(StorageUnavailableError, match="cannot write"):
            FileKeyValueStore(blocker / "store.json").set(KEY, TOKEN)


class TestMemoryCookieJar:
    def test_cookie_expires_after_max_age(self) -> None:
        clock = FixedClock()
        jar = MemoryCookieJar(clock=clock)
        jar.set(KEY, TOKEN, max_age_seconds=10)

        clock.advance(seconds=9)
        assert jar.get(KEY) == TOKEN

        clock.advance(seconds=1)
        assert jar.get(KEY) is None

    def test_set_refreshes_expiry(self) -> None:
        clock = FixedClock()
        jar = MemoryCookieJar(clock=clock)
        jar.set(KEY, TOKEN, max_age_seconds=10)
        clock.advance(seconds=8)
        jar.set(KEY, TOKEN, max_age_seconds=10)
        clock.advance(seconds=8)

        assert jar.get(KEY) == TOKEN


class TestFileCookieJar:
    def test_set_then_get(self, tmp_path: Path) -> None:
        jar = FileCookieJar(tmp_path / "cookies.txt", clock=FixedClock())
        jar.set(KEY, TOKEN, 31_536_000)

        assert jar.get(KEY) == TOKEN

    def test_cookie_attributes_written(self, tmp_path: Path) -> None:
        path = tmp_path / "cookies.txt"
        FileCookieJar(path, clock=FixedClock()).set(KEY, TOKEN, 31_536_000)

        line = path.read_text(encoding="utf-8").strip()
        assert line.startswith(f"{KEY}={TOKEN}")
        assert "Path=/" in line
        assert "Max-Age=31536000" in line
        assert "Secure" in line
        assert "SameSite=Lax" in line
        assert "expires=Sat, 30 Jan 2027 12:00:00 GMT" in line

    def test_expired_cookie_reads_as_missing(self, tmp_path: Path) -> None:
        clock = FixedClock()
        jar = FileCookieJar(tmp_path / "cookies.txt", clock=clock)
        jar.set(KEY, TOKEN, 60)

        clock.advance(seconds=61)

        assert jar.get(KEY) is None

    def test_multiple_cookies_kept(self, tmp_path: Path) -> None:
        jar = FileCookieJar(tmp_path / "cookies.txt", clock=FixedClock())
        jar.set("first", "one", 60)
        jar.set("second", "two", 60)

        assert jar.get("first") == "one"
        assert jar.get("second") == "two"

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert FileCookieJar(tmp_path / "cookies.txt").get(KEY) is None
