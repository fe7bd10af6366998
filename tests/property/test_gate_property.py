import pytest
from domain_tracker.gate import ReadinessGate
from domain_tracker.state import TrackerState
from hypothesis import given
from hypothesis import strategies as st

pytestmark = [pytest.mark.unit, pytest.mark.property]

_TRIGGERS = ["need", "startup", "context"]
_ALL_EVENTS = _TRIGGERS + ["ip_changed", "probe_failed"]


def _apply(gate: ReadinessGate, event: str) -> None:
    if event == "need":
        gate.set_need_to_fetch()
    elif event == "startup":
        gate.on_startup_delay_elapsed()
    elif event == "context":
        gate.on_context_available()
    elif event == "ip_changed":
        gate.on_ip_address_changed()
    elif event == "probe_failed":
        gate.reset_fetch_latch()


def _gate(networking_disabled: bool = False):
    state = TrackerState(current_domain="http://www.google.com/")
    started: list[int] = []
    gate = ReadinessGate(state, started.append, networking_disabled=networking_disabled)
    return state, started, gate


@given(st.lists(st.sampled_from(_TRIGGERS), max_size=40))
def test_plain_triggers_start_at_most_one_probe(events):
    _, started, gate = _gate()
    for event in events:
        _apply(gate, event)

    assert len(started) <= 1
    assert (len(started) == 1) == set(_TRIGGERS).issubset(events)


@given(st.lists(st.sampled_from(_ALL_EVENTS), max_size=60))
def test_probes_never_exceed_opened_windows(events):
    state, started, gate = _gate()
    windows = 1
    for event in events:
        if event in {"ip_changed", "probe_failed"} and state.already_fetched:
            windows += 1
        _apply(gate, event)

    assert len(started) <= windows
    assert started == list(range(len(started)))


@given(st.lists(st.sampled_from(_ALL_EVENTS), max_size=60))
def test_kill_switch_blocks_all_sequences(events):
    _, started, gate = _gate(networking_disabled=True)
    for event in events:
        _apply(gate, event)

    assert started == []
