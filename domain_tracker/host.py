"""Collaborators used when the tracker is hosted behind the HTTP API.

The confirmation is not rendered here: it is recorded so an API client can
poll for it and answer through the accept/cancel endpoints. Likewise the
redo-search navigation is recorded and handed back to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request

from .config import Settings, settings as default_settings
from .prefs import PreferenceStore, build_preference_store
from .probe import HttpxProbeClient, ProbeClient
from .tracker import Scheduler, Tracker

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ConfirmationRequest:
    candidate_domain: str
    shown_at: datetime


class PendingConfirmation:
    def __init__(self) -> None:
        self.current: Optional[ConfirmationRequest] = None
        self.shown_count = 0

    def show_confirmation(self, candidate_domain: str) -> None:
        self.current = ConfirmationRequest(
            candidate_domain=candidate_domain, shown_at=_now_utc()
        )
        self.shown_count += 1

    def dismiss_confirmation(self) -> None:
        self.current = None


class RecordingNavigator:
    def __init__(self) -> None:
        self.opened: list[str] = []

    def open_url(self, url: str) -> None:
        self.opened.append(url)

    @property
    def last_opened(self) -> Optional[str]:
        return self.opened[-1] if self.opened else None


@dataclass
class TrackerHost:
    tracker: Tracker
    confirmation: PendingConfirmation
    navigator: RecordingNavigator
    prefs: PreferenceStore


def build_tracker_host(
    config: Settings = default_settings,
    *,
    prefs: Optional[PreferenceStore] = None,
    probe_client: Optional[ProbeClient] = None,
    scheduler: Optional[Scheduler] = None,
) -> TrackerHost:
    confirmation = PendingConfirmation()
    navigator = RecordingNavigator()
    store = prefs if prefs is not None else build_preference_store()
    client = probe_client or HttpxProbeClient(
        max_retries=config.probe_max_retries,
        timeout=config.probe_timeout_seconds,
        retry_backoff_seconds=config.probe_retry_backoff_seconds,
    )
    tracker = Tracker(
        prefs=store,
        probe_client=client,
        confirmation_ui=confirmation,
        navigator=navigator,
        scheduler=scheduler,
        config=config,
        # The probe client owns its transport, so the network context is ready.
        context_available=True,
    )
    logger.info(
        "tracker host built",
        extra={
            "preference_backend": type(store).__name__,
            "current_domain": tracker.google_url(),
        },
    )
    return TrackerHost(
        tracker=tracker, confirmation=confirmation, navigator=navigator, prefs=store
    )


def get_tracker_host(request: Request) -> TrackerHost:
    return request.app.state.tracker_host
