from __future__ import annotations

import os

# Keep the module-level app from registering Prometheus collectors at import.
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("PREFERENCE_BACKEND", "memory")

import pytest  # noqa: E402
from domain_tracker.config import Settings  # noqa: E402
from domain_tracker.prefs import InMemoryPreferenceStore  # noqa: E402
from domain_tracker.tracker import Tracker  # noqa: E402

from tests.fakes import (
    LAST_KNOWN_KEY,
    LAST_PROMPTED_KEY,
    FakeConfirmationUI,
    FakeNavigator,
    FakeProbeClient,
    FakeScheduler,
)


@pytest.fixture
def tracker_settings() -> Settings:
    return Settings(
        startup_delay_seconds=5,
        disable_background_networking=False,
        preference_backend="memory",
        pref_last_known_domain_key=LAST_KNOWN_KEY,
        pref_last_prompted_domain_key=LAST_PROMPTED_KEY,
    )


@pytest.fixture
def prefs() -> InMemoryPreferenceStore:
    return InMemoryPreferenceStore()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def probe_client() -> FakeProbeClient:
    return FakeProbeClient()


@pytest.fixture
def confirmation_ui() -> FakeConfirmationUI:
    return FakeConfirmationUI()


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture
def make_tracker(tracker_settings, prefs, scheduler, probe_client, confirmation_ui, navigator):
    def _make(*, context_available: bool = True, start: bool = True, **overrides) -> Tracker:
        config = tracker_settings.model_copy(update=overrides) if overrides else tracker_settings
        tracker = Tracker(
            prefs=prefs,
            probe_client=probe_client,
            confirmation_ui=confirmation_ui,
            navigator=navigator,
            scheduler=scheduler,
            config=config,
            context_available=context_available,
        )
        if start:
            tracker.start()
        return tracker

    return _make


@pytest.fixture
def ready_tracker(make_tracker, scheduler):
    """A started tracker whose startup delay already elapsed."""
    tracker = make_tracker()
    scheduler.fire_all()
    return tracker
