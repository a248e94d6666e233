# tests/fixtures/__init__.py
"""Shared test doubles for pharaon tests.

Available doubles:
- FixedClock: deterministic, advanceable clock
- RecordingSink: SinkProtocol that keeps every record
- FakeProbe: EnvironmentProbe with overridable values
- make_event_record / make_identifier_record: ready-made sink inputs
"""

from tests.fixtures.doubles import (
    FIXED_NOW,
    FakeProbe,
    FixedClock,
    RecordingSink,
    make_event_record,
    make_identifier_record,
)

__all__ = [
    "FIXED_NOW",
    "FakeProbe",
    "FixedClock",
    "RecordingSink",
    "make_event_record",
    "make_identifier_record",
]
