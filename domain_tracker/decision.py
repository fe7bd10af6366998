from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from urllib.parse import urlsplit, urlunsplit

from .events import EventBus
from .prefs import PreferenceStore
from .state import TrackerState

logger = logging.getLogger(__name__)


class Decision(str, enum.Enum):
    IGNORED_FAILURE = "ignored_failure"
    IGNORED_MALFORMED = "ignored_malformed"
    SILENT_ACCEPT = "silent_accept"
    ALREADY_DECIDED = "already_decided"
    SILENT_RECONCILE = "silent_reconcile"
    PROMPT = "prompt"


@dataclass(frozen=True)
class PreferenceKeys:
    last_known_domain: str
    last_prompted_domain: str


def normalize_domain_url(raw: str) -> str:
    """Canonical form used for every stored and compared domain.

    Scheme and host are lowercased and an empty path becomes ``/``, so
    ``http://www.Google.co.uk`` and ``http://www.google.co.uk/`` compare equal.
    Returns ``""`` for values that are not absolute http(s) URLs.
    """
    value = raw.strip()
    if not value:
        return ""
    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError:
        return ""
    if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
        return ""
    if any(char.isspace() for char in parts.hostname):
        return ""
    netloc = parts.hostname.lower()
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit(
        (parts.scheme.lower(), netloc, parts.path or "/", parts.query, parts.fragment)
    )


def candidate_from_probe_body(body: str, prefix: str) -> str:
    trimmed = body.strip()
    if not trimmed.lower().startswith(prefix.lower()):
        return ""
    return normalize_domain_url("http://www" + trimmed)


class DomainDecisionEngine:
    def __init__(
        self,
        state: TrackerState,
        prefs: PreferenceStore,
        events: EventBus,
        *,
        keys: PreferenceKeys,
        response_prefix: str,
    ):
        self._state = state
        self._prefs = prefs
        self._events = events
        self._keys = keys
        self._response_prefix = response_prefix

    def on_probe_complete(self, success: bool, http_status: int, body: str) -> Decision:
        if not success or http_status != 200:
            self._state.already_fetched = False
            logger.info(
                "domain probe failed",
                extra={"success": success, "http_status": http_status},
            )
            return Decision.IGNORED_FAILURE

        candidate = candidate_from_probe_body(body, self._response_prefix)
        if not candidate:
            logger.info("domain probe response ignored", extra={"body": body[:100]})
            return Decision.IGNORED_MALFORMED

        self._state.fetched_domain = candidate
        self._state.need_to_prompt = False
        # An unreadable store must not turn a known user into a first run.
        last_prompted = (
            normalize_domain_url(self._prefs.get_string(self._keys.last_prompted_domain))
            or self._state.last_prompted_domain
        )
        self._state.last_prompted_domain = last_prompted

        # First run: nothing has ever been prompted, switch silently.
        if not last_prompted:
            self.accept_candidate(candidate)
            self._remember_prompted(candidate)
            return self._log_decision(Decision.SILENT_ACCEPT, candidate)

        if candidate == last_prompted:
            return self._log_decision(Decision.ALREADY_DECIDED, candidate)

        if candidate == self._state.current_domain:
            # Back on the original domain; record it so a later move prompts again.
            self._remember_prompted(candidate)
            return self._log_decision(Decision.SILENT_RECONCILE, candidate)

        self._state.need_to_prompt = True
        return self._log_decision(Decision.PROMPT, candidate)

    def accept_candidate(self, domain: str) -> None:
        self._state.current_domain = domain
        self._prefs.set_string(self._keys.last_known_domain, domain)
        self._remember_prompted(domain)
        self._events.emit_domain_changed(domain)
        self._state.need_to_prompt = False

    def cancel_candidate(self, domain: str) -> None:
        self._remember_prompted(domain)
        self._state.need_to_prompt = False

    def _remember_prompted(self, domain: str) -> None:
        if not domain:
            return
        self._state.last_prompted_domain = domain
        self._prefs.set_string(self._keys.last_prompted_domain, domain)

    def _log_decision(self, decision: Decision, candidate: str) -> Decision:
        logger.info(
            "domain probe decided",
            extra={
                "decision": decision.value,
                "candidate": candidate,
                "current_domain": self._state.current_domain,
            },
        )
        return decision
