from __future__ import annotations

import enum
import logging
from typing import Optional, Protocol
from urllib.parse import urlsplit, urlunsplit

from .state import TrackerState

logger = logging.getLogger(__name__)


class ConfirmationUI(Protocol):
    def show_confirmation(self, candidate_domain: str) -> None: ...

    def dismiss_confirmation(self) -> None: ...


class Navigator(Protocol):
    def open_url(self, url: str) -> None: ...


class SessionState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_PENDING = "awaiting_pending"
    AWAITING_COMMIT = "awaiting_commit"


def rewrite_host(url: str, domain: str) -> str:
    """Return ``url`` with its host replaced by the host of ``domain``.

    Returns ``""`` when either side has no usable host.
    """
    try:
        source = urlsplit(url)
        target = urlsplit(domain)
        port = source.port
    except ValueError:
        return ""
    if not source.scheme or not source.hostname or not target.hostname:
        return ""
    netloc = target.hostname
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit(
        (source.scheme, netloc, source.path, source.query, source.fragment)
    )


class SearchSessionCorrelator:
    """Ties a pending confirmation to the next committed search navigation.

    Watching starts on ``search_committed`` and follows exactly one navigation
    sequence: the pending event records the URL, and the commit either
    surfaces the confirmation or, if the tab closed first, nothing at all.
    """

    def __init__(
        self,
        state: TrackerState,
        confirmation_ui: ConfirmationUI,
        navigator: Navigator,
    ):
        self._state = state
        self._confirmation_ui = confirmation_ui
        self._navigator = navigator
        self._session = SessionState.IDLE
        self._shown_candidate: Optional[str] = None

    @property
    def session_state(self) -> SessionState:
        return self._session

    @property
    def confirmation_visible(self) -> bool:
        return self._shown_candidate is not None

    @property
    def shown_candidate(self) -> Optional[str]:
        return self._shown_candidate

    def search_committed(self) -> bool:
        if self._session is not SessionState.IDLE:
            return False
        if not self._state.need_to_prompt and not self._state.probe_in_flight:
            return False
        self._session = SessionState.AWAITING_PENDING
        logger.debug("watching for search navigation")
        return True

    def navigation_pending(self, url: str) -> bool:
        if self._session is not SessionState.AWAITING_PENDING:
            return False
        self._state.pending_search_url = url
        self._session = SessionState.AWAITING_COMMIT
        return True

    def navigation_committed(self) -> bool:
        """Finish the watched navigation; True if a confirmation was surfaced."""
        if self._session is not SessionState.AWAITING_COMMIT:
            return False
        self._state.last_search_url = self._state.pending_search_url
        self._state.pending_search_url = None
        self._session = SessionState.IDLE

        if not self._state.need_to_prompt:
            return False
        candidate = self._state.fetched_domain
        if not candidate:
            logger.warning("prompt requested without a fetched domain")
            return False
        logger.info("surfacing domain confirmation", extra={"candidate": candidate})
        self._shown_candidate = candidate
        self._confirmation_ui.show_confirmation(candidate)
        return True

    def navigation_closed(self) -> None:
        # The confirmation lives with the tab, so it goes away too.
        self.confirmation_closed()

    def confirmation_closed(self) -> None:
        self._session = SessionState.IDLE
        self._state.pending_search_url = None
        self._state.last_search_url = None
        if self._shown_candidate is not None:
            self._shown_candidate = None
            self._confirmation_ui.dismiss_confirmation()

    def retire_stale_confirmation(self) -> bool:
        """Dismiss a visible confirmation once a newer decision replaced it.

        The confirmation stays while the pending candidate is still the one
        on screen, so accept always applies the domain the user was shown.
        """
        shown = self._shown_candidate
        if shown is None:
            return False
        if self._state.need_to_prompt and self._state.fetched_domain == shown:
            return False
        logger.info(
            "dismissing outdated domain confirmation",
            extra={"shown": shown, "fetched": self._state.fetched_domain},
        )
        self.confirmation_closed()
        return True

    def redo_search(self, domain: str) -> Optional[str]:
        search_url = self._state.last_search_url or self._state.pending_search_url
        if not search_url:
            logger.debug("no search on record to redo")
            return None
        rewritten = rewrite_host(search_url, domain)
        if not rewritten:
            logger.debug("search url could not be rewritten", extra={"url": search_url})
            return None
        self._state.last_search_url = rewritten
        logger.info("redoing search on new domain", extra={"url": rewritten})
        self._navigator.open_url(rewritten)
        return rewritten
