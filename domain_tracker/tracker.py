from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from functools import partial
from typing import Any, Callable, Optional, Protocol

from .config import Settings, settings as default_settings
from .correlator import ConfirmationUI, Navigator, SearchSessionCorrelator
from .decision import (
    Decision,
    DomainDecisionEngine,
    PreferenceKeys,
    normalize_domain_url,
)
from .events import EventBus
from .gate import ReadinessGate
from .observability import record_probe_decision
from .prefs import PreferenceStore
from .probe import ProbeClient, ProbeHandle, ProbeResult
from .state import TrackerState

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class Tracker:
    """Single owner of the domain tracking state.

    Every mutation goes through one of the public methods below, all of which
    are expected to run on the same event loop. The probe and the startup
    timer report back on that loop as well, so no locking is needed.
    """

    def __init__(
        self,
        *,
        prefs: PreferenceStore,
        probe_client: ProbeClient,
        confirmation_ui: ConfirmationUI,
        navigator: Navigator,
        events: Optional[EventBus] = None,
        scheduler: Optional[Scheduler] = None,
        config: Settings = default_settings,
        context_available: bool = False,
    ):
        self._config = config
        self._prefs = prefs
        self._probe_client = probe_client
        self._scheduler = scheduler
        self.events = events or EventBus()
        self._keys = PreferenceKeys(
            last_known_domain=config.pref_last_known_domain_key,
            last_prompted_domain=config.pref_last_prompted_domain_key,
        )

        self._default_domain = normalize_domain_url(config.default_domain)
        stored_domain = normalize_domain_url(prefs.get_string(self._keys.last_known_domain))
        self.state = TrackerState(
            current_domain=stored_domain or self._default_domain,
            last_prompted_domain=normalize_domain_url(
                prefs.get_string(self._keys.last_prompted_domain)
            ),
            context_available=context_available,
        )

        self._gate = ReadinessGate(
            self.state,
            self._start_probe,
            networking_disabled=config.disable_background_networking,
        )
        self._engine = DomainDecisionEngine(
            self.state,
            prefs,
            self.events,
            keys=self._keys,
            response_prefix=config.probe_response_prefix,
        )
        self._correlator = SearchSessionCorrelator(self.state, confirmation_ui, navigator)

        self._startup_timer: Optional[TimerHandle] = None
        self._probe_handle: Optional[ProbeHandle] = None
        self._active_probe_id: Optional[int] = None
        self._started = False
        self._shut_down = False
        self.last_decision: Optional[Decision] = None

    # Lifecycle

    @property
    def started(self) -> bool:
        return self._started and not self._shut_down

    def start(self) -> None:
        if self._started or self._shut_down:
            return
        scheduler = self._scheduler or asyncio.get_running_loop()
        self._startup_timer = scheduler.call_later(
            self._config.startup_delay_seconds, self._on_startup_delay_elapsed
        )
        self._started = True
        logger.info(
            "domain tracker started",
            extra={
                "current_domain": self.state.current_domain,
                "startup_delay_seconds": self._config.startup_delay_seconds,
            },
        )

    def shutdown(self) -> None:
        if self._shut_down:
            return
        self._shut_down = True
        if self._startup_timer is not None:
            self._startup_timer.cancel()
            self._startup_timer = None
        if self._probe_handle is not None:
            self._probe_handle.cancel()
            self._probe_handle = None
        self._active_probe_id = None
        self.state.probe_in_flight = False
        logger.info("domain tracker shut down")

    # Public contract

    def google_url(self) -> str:
        return self.state.current_domain or self._default_domain

    def request_server_check(self) -> None:
        if self._shut_down:
            return
        self._gate.set_need_to_fetch()

    def search_committed(self) -> None:
        self._correlator.search_committed()

    def on_navigation_pending(self, url: str) -> None:
        self._correlator.navigation_pending(url)

    def on_navigation_committed(self) -> None:
        self._correlator.navigation_committed()

    def on_tab_closed(self) -> None:
        self._correlator.navigation_closed()

    def on_confirmation_closed(self) -> None:
        self._correlator.confirmation_closed()

    def accept_prompt(self) -> Optional[str]:
        """Switch to the fetched domain and redo the last search there.

        Returns the URL the search was re-issued to, if any.
        """
        candidate = self._correlator.shown_candidate or self.state.fetched_domain
        if not candidate:
            return None
        self._engine.accept_candidate(candidate)
        redo_url = self._correlator.redo_search(self.state.current_domain)
        self._correlator.confirmation_closed()
        return redo_url

    def cancel_prompt(self) -> None:
        candidate = self._correlator.shown_candidate or self.state.fetched_domain
        if not candidate:
            return
        self._engine.cancel_candidate(candidate)
        self._correlator.confirmation_closed()

    def on_network_context_ready(self) -> None:
        if self._shut_down or self.state.context_available:
            return
        self._gate.on_context_available()

    def on_ip_address_changed(self) -> None:
        if self._shut_down:
            return
        self._gate.on_ip_address_changed()

    def snapshot(self) -> dict[str, Any]:
        data = asdict(self.state)
        data.update(
            {
                "can_fetch_now": self._gate.can_fetch_now(),
                "background_networking_disabled": self._gate.networking_disabled,
                "probes_started": self._gate.probes_started,
                "session_state": self._correlator.session_state.value,
                "confirmation_visible": self._correlator.confirmation_visible,
                "last_decision": self.last_decision.value if self.last_decision else None,
                "started": self.started,
            }
        )
        return data

    # Internal event handlers

    def _on_startup_delay_elapsed(self) -> None:
        self._startup_timer = None
        if self._shut_down:
            return
        self._gate.on_startup_delay_elapsed()

    def _start_probe(self, probe_id: int) -> None:
        if self._probe_handle is not None:
            # A network change reopened the window while a probe was out.
            self._probe_handle.cancel()
            self._probe_handle = None
        self._active_probe_id = probe_id
        self.state.probe_in_flight = True
        handle = self._probe_client.start_probe(
            self._config.probe_url, partial(self._on_probe_result, probe_id)
        )
        # A probe that completed synchronously has already cleared the flag.
        if self.state.probe_in_flight and self._active_probe_id == probe_id:
            self._probe_handle = handle

    def _on_probe_result(self, probe_id: int, result: ProbeResult) -> None:
        if self._shut_down or probe_id != self._active_probe_id:
            logger.debug("dropping stale probe result", extra={"probe_id": probe_id})
            return
        self._active_probe_id = None
        self._probe_handle = None
        self.state.probe_in_flight = False
        self.last_decision = self._engine.on_probe_complete(
            result.success, result.http_status, result.body
        )
        record_probe_decision(self.last_decision.value)
        self._correlator.retire_stale_confirmation()
