# tests/conftest.py
"""Shared test fixtures and helpers.

Fixtures wire a TrackingAgent to the in-memory doubles from
tests.fixtures (RecordingSink, FakeProbe, FixedClock, memory stores).

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from pharaon.agent import TrackingAgent
from pharaon.identity.stores import MemoryCookieJar, MemoryKeyValueStore
from tests.fixtures.doubles import FakeProbe, FixedClock, RecordingSink

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def route_structlog_to_stdlib() -> None:
    """Send structlog output through stdlib logging so it never lands on stdout.

    Unconfigured structlog prints every level to stdout, which would mix
    diagnostics into console sink output under test.
    """
    structlog.configure(
        processors=[structlog.stdlib.add_log_level, structlog.processors.KeyValueRenderer(key_order=["event"])],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cookies(clock: FixedClock) -> MemoryCookieJar:
    return MemoryCookieJar(clock=clock)


@pytest.fixture
def agent(
    sink: RecordingSink,
    probe: FakeProbe,
    store: MemoryKeyValueStore,
    cookies: MemoryCookieJar,
    clock: FixedClock,
) -> Iterator[TrackingAgent]:
    """Unconfigured agent wired to in-memory doubles."""
    tracking_agent = TrackingAgent(sink=sink, store=store, cookies=cookies, probe=probe, clock=clock)
    yield tracking_agent
    tracking_agent.close()


@pytest.fixture
def configured_agent(agent: TrackingAgent) -> TrackingAgent:
    result = agent.init({})
    assert result.ok
    return agent
