# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import os
from collections.abc import Callable

import pytest
from hypothesis import Phase, Verbosity, settings

from quicksearch_transport.contracts.enums import EventType
from quicksearch_transport.contracts.events import QuickSearchEvent
from quicksearch_transport.core.config import TransportSettings

SERVER_URL = "http://quicksearch.test"
EVENTS_URL = f"{SERVER_URL}/api/events"


@pytest.fixture
def sample_event() -> QuickSearchEvent:
    """A minimal, fully-populated event."""
    return QuickSearchEvent(
        type=EventType.INFORMATION,
        application="test-app",
        timestamp="2023-12-30T12:00:00.000Z",
        message="User logged in",
        data={"level": "info", "pid": 123, "hostname": "web-1", "userId": "123"},
    )


@pytest.fixture
def settings_factory() -> Callable[..., TransportSettings]:
    """Build TransportSettings pointing at the test collector, with overrides."""

    def _make(**overrides: object) -> TransportSettings:
        options: dict[str, object] = {"server_url": SERVER_URL, "retry_delay": 0.0}
        options.update(overrides)
        return TransportSettings(**options)

    return _make


@pytest.fixture(autouse=True)
def _clear_debug_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's QUICKSEARCH_DEBUG from leaking into tests."""
    monkeypatch.delenv("QUICKSEARCH_DEBUG", raising=False)


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
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
