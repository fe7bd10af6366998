from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

logger = logging.getLogger(__name__)

DOMAIN_CHANGED_TOPIC = "domain.changed"
DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class DomainChangedEvent:
    domain: str
    emitted_at: datetime
    topic: str = DOMAIN_CHANGED_TOPIC


DomainChangedListener = Callable[[DomainChangedEvent], None]


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class EventBus:
    """Fan-out of the domain-changed notification to in-process listeners."""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._listeners: list[DomainChangedListener] = []
        self._history: deque[DomainChangedEvent] = deque(maxlen=history_limit)

    def subscribe(self, listener: DomainChangedListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit_domain_changed(self, domain: str) -> DomainChangedEvent:
        event = DomainChangedEvent(domain=domain, emitted_at=_now_utc())
        self._history.append(event)
        logger.info("domain changed", extra={"topic": event.topic, "domain": domain})
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "domain changed listener failed", extra={"topic": event.topic}
                )
        return event

    @property
    def history(self) -> list[DomainChangedEvent]:
        return list(self._history)
