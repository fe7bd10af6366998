from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class TrackerState:
    current_domain: str
    fetched_domain: str = ""
    last_prompted_domain: str = ""
    in_startup_sleep: bool = True
    already_fetched: bool = False
    need_to_fetch: bool = False
    context_available: bool = False
    need_to_prompt: bool = False
    probe_in_flight: bool = False
    pending_search_url: Optional[str] = None
    last_search_url: Optional[str] = None


def can_fetch_now(state: TrackerState, *, networking_disabled: bool = False) -> bool:
    """Return True when every precondition for starting a probe holds."""
    if networking_disabled:
        return False
    return (
        not state.in_startup_sleep
        and not state.already_fetched
        and state.need_to_fetch
        and state.context_available
    )


def blocking_conditions(
    state: TrackerState, *, networking_disabled: bool = False
) -> list[str]:
    reasons: list[str] = []
    if networking_disabled:
        reasons.append("background_networking_disabled")
    if state.in_startup_sleep:
        reasons.append("in_startup_sleep")
    if state.already_fetched:
        reasons.append("already_fetched")
    if not state.need_to_fetch:
        reasons.append("no_fetch_requested")
    if not state.context_available:
        reasons.append("context_unavailable")
    return reasons
