# tests/unit/environment/test_snapshot.py
"""Unit tests for EnvironmentSnapshot and HostEnvironmentProbe.

Tests cover:
- Field formatting (dimensions, referrer)
- Per-field degradation when a probe accessor fails or is missing
- Once-per-session caching of user agent and platform
- Identity failures propagating to the caller
"""

from datetime import datetime
from pathlib import Path

import pytest

from pharaon import __version__
from pharaon.contracts.errors import IdentityGenerationError
from pharaon.contracts.records import EnvironmentFields
from pharaon.environment.probe import EnvironmentProbe, HostEnvironmentProbe, _language_tag
from pharaon.environment.snapshot import EnvironmentSnapshot
from tests.fixtures.doubles import FakeProbe

PSEUDO_ID = "0f8e2a6c-3d41-4b7e-9c55-1a2b3c4d5e6f"


def _identity() -> str:
    return PSEUDO_ID


# =============================================================================
# EnvironmentSnapshot
# =============================================================================


class TestSnapshotCapture:
    def test_all_fields_captured(self) -> None:
        fields = EnvironmentSnapshot(FakeProbe(), _identity).capture()

        assert fields == EnvironmentFields(
            page_url="https://example.com/pricing",
            page_referrer="https://example.com/",
            user_pseudo_id=PSEUDO_ID,
            user_timezone="Europe/Paris",
            browser_screen_size="1920x1080",
            browser_viewport_size="1280x720",
            browser_language="fr-FR",
            device_user_agent="pharaon-test/1.0",
            device_platform="Linux x86_64",
        )

    @pytest.mark.parametrize("referrer", [None, ""])
    def test_missing_referrer_is_none(self, referrer: str | None) -> None:
        fields = EnvironmentSnapshot(FakeProbe(referrer=referrer), _identity).capture()
        assert fields.page_referrer is None

    def test_failing_accessor_degrades_single_field(self) -> None:
        probe = FakeProbe(viewport_size=RuntimeError("no window"), timezone=None)
        fields = EnvironmentSnapshot(probe, _identity).capture()

        assert fields.browser_viewport_size == ""
        assert fields.user_timezone == ""
        # Other fields unaffected
        assert fields.browser_screen_size == "1920x1080"
        assert fields.page_url == "https://example.com/pricing"

    def test_malformed_dimensions_degrade(self) -> None:
        fields = EnvironmentSnapshot(FakeProbe(screen_size=(1920,)), _identity).capture()
        assert fields.browser_screen_size == ""

    def test_probe_without_accessor_degrades(self) -> None:
        class PartialProbe:
            def page_url(self) -> str:
                return "app://home"

        fields = EnvironmentSnapshot(PartialProbe(), _identity).capture()  # type: ignore[arg-type]

        assert fields.page_url == "app://home"
        assert fields.browser_language == ""
        assert fields.device_user_agent == ""
        assert fields.page_referrer is None

    def test_user_agent_and_platform_read_once(self) -> None:
        probe = FakeProbe()
        snapshot = EnvironmentSnapshot(probe, _identity)

        snapshot.capture()
        snapshot.capture()
        snapshot.capture()

        assert probe.calls["user_agent"] == 1
        assert probe.calls["platform"] == 1
        assert probe.calls["page_url"] == 3

    def test_location_read_fresh_every_capture(self) -> None:
        probe = FakeProbe()
        snapshot = EnvironmentSnapshot(probe, _identity)
        snapshot.capture()

        probe.values["page_url"] = "https://example.com/checkout"

        assert snapshot.capture().page_url == "https://example.com/checkout"

    def test_identity_failure_propagates(self) -> None:
        def broken_identity() -> str:
            raise IdentityGenerationError("No random source available")

        with pytest.raises(IdentityGenerationError):
            EnvironmentSnapshot(FakeProbe(), broken_identity).capture()


# =============================================================================
# HostEnvironmentProbe
# =============================================================================


class TestHostEnvironmentProbe:
    def test_is_environment_probe(self) -> None:
        assert isinstance(HostEnvironmentProbe(), EnvironmentProbe)

    def test_host_supplied_fields(self) -> None:
        probe = HostEnvironmentProbe(page_url="app://home", screen_size=(800, 600))

        assert probe.page_url() == "app://home"
        assert probe.referrer() is None
        assert probe.screen_size() == (800, 600)
        assert probe.viewport_size() is None

    def test_navigate_moves_location_to_referrer(self) -> None:
        probe = HostEnvironmentProbe(page_url="app://home")
        probe.navigate("app://settings")

        assert probe.page_url() == "app://settings"
        assert probe.referrer() == "app://home"

    def test_timezone_from_tz_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TZ", ":Europe/Paris")
        assert HostEnvironmentProbe().timezone() == "Europe/Paris"

    def test_timezone_from_localtime_symlink(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        zone_file = tmp_path / "zoneinfo" / "America" / "Argentina" / "Buenos_Aires"
        zone_file.parent.mkdir(parents=True)
        zone_file.write_bytes(b"TZif")
        localtime = tmp_path / "localtime"
        localtime.symlink_to(zone_file)
        monkeypatch.delenv("TZ", raising=False)
        monkeypatch.setattr("pharaon.environment.probe.LOCALTIME_PATH", localtime)

        assert HostEnvironmentProbe().timezone() == "America/Argentina/Buenos_Aires"

    def test_timezone_falls_back_to_abbreviation(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TZ", raising=False)
        monkeypatch.setattr("pharaon.environment.probe.LOCALTIME_PATH", tmp_path / "missing")

        assert HostEnvironmentProbe().timezone() == datetime.now().astimezone().tzname()

    def test_user_agent_names_library_version(self) -> None:
        assert HostEnvironmentProbe().user_agent().startswith(f"pharaon-python/{__version__} (")

    def test_platform_is_not_empty(self) -> None:
        assert HostEnvironmentProbe().platform()


class TestLanguageTag:
    @pytest.mark.parametrize(
        ("locale_name", "expected"),
        [
            ("en_US.UTF-8", "en-US"),
            ("fr_FR", "fr-FR"),
            ("de_DE@euro", "de-DE"),
            ("C", None),
            ("POSIX", None),
            (None, None),
            ("", None),
        ],
    )
    def test_conversion(self, locale_name: str | None, expected: str | None) -> None:
        assert _language_tag(locale_name) == expected
