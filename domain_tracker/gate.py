from __future__ import annotations

import logging
from typing import Callable

from .state import TrackerState, blocking_conditions, can_fetch_now

logger = logging.getLogger(__name__)

ProbeStarter = Callable[[int], None]


class ReadinessGate:
    """Aggregates the probe preconditions and starts one probe per fetch window.

    Every setter re-evaluates the predicate. The latch is set before the
    starter runs so a probe that completes synchronously cannot re-enter and
    start a second one.
    """

    def __init__(
        self,
        state: TrackerState,
        start_probe: ProbeStarter,
        *,
        networking_disabled: bool = False,
    ):
        self._state = state
        self._start_probe = start_probe
        self._networking_disabled = networking_disabled
        self._next_probe_id = 0

    @property
    def networking_disabled(self) -> bool:
        return self._networking_disabled

    @property
    def probes_started(self) -> int:
        return self._next_probe_id

    def can_fetch_now(self) -> bool:
        return can_fetch_now(self._state, networking_disabled=self._networking_disabled)

    def set_need_to_fetch(self) -> bool:
        self._state.need_to_fetch = True
        return self._start_fetch_if_desirable()

    def on_startup_delay_elapsed(self) -> bool:
        self._state.in_startup_sleep = False
        return self._start_fetch_if_desirable()

    def on_context_available(self) -> bool:
        self._state.context_available = True
        return self._start_fetch_if_desirable()

    def on_ip_address_changed(self) -> bool:
        self._state.already_fetched = False
        return self._start_fetch_if_desirable()

    def reset_fetch_latch(self) -> None:
        # A failed probe reopens the window but waits for the next trigger.
        self._state.already_fetched = False

    def _start_fetch_if_desirable(self) -> bool:
        if not self.can_fetch_now():
            logger.debug(
                "probe not started",
                extra={
                    "blocked_by": blocking_conditions(
                        self._state, networking_disabled=self._networking_disabled
                    )
                },
            )
            return False

        self._state.already_fetched = True
        probe_id = self._next_probe_id
        self._next_probe_id += 1
        logger.info("starting domain probe", extra={"probe_id": probe_id})
        self._start_probe(probe_id)
        return True
