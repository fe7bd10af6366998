from __future__ import annotations

from typing import Callable, Optional

from domain_tracker.probe import ProbeResult

LAST_KNOWN_KEY = "test:last_known_domain"
LAST_PROMPTED_KEY = "test:last_prompted_domain"


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled or self.fired:
            return
        self.fired = True
        self.callback()


class FakeScheduler:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self) -> None:
        for timer in list(self.timers):
            timer.fire()


class FakeProbeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> bool:
        self.cancelled = True
        return True


class FakeProbeClient:
    """Records probes; results are delivered by the test via ``complete``."""

    def __init__(self, immediate: Optional[ProbeResult] = None):
        self.requests: list[tuple[str, Callable[[ProbeResult], None], FakeProbeHandle]] = []
        self.immediate = immediate

    def start_probe(self, url, on_complete):
        handle = FakeProbeHandle()
        self.requests.append((url, on_complete, handle))
        if self.immediate is not None:
            on_complete(self.immediate)
        return handle

    @property
    def started(self) -> int:
        return len(self.requests)

    def complete(self, body: str = "", *, status: int = 200, success: bool = True, index: int = -1):
        _, on_complete, _ = self.requests[index]
        on_complete(ProbeResult(success=success, http_status=status, body=body))


class FakeConfirmationUI:
    def __init__(self) -> None:
        self.shown: list[str] = []
        self.dismissed = 0

    def show_confirmation(self, candidate_domain: str) -> None:
        self.shown.append(candidate_domain)

    def dismiss_confirmation(self) -> None:
        self.dismissed += 1


class FakeNavigator:
    def __init__(self) -> None:
        self.opened: list[str] = []

    def open_url(self, url: str) -> None:
        self.opened.append(url)
