from __future__ import annotations

from typing import Optional

from .config import settings
from .host import TrackerHost


def preferences_ready(host: Optional[TrackerHost]) -> bool:
    if not settings.redis_health_required:
        return True
    if host is None:
        return False
    ping = getattr(host.prefs, "ping", None)
    if ping is None:
        return True
    return bool(ping())


def tracker_ready(host: Optional[TrackerHost]) -> bool:
    return host is not None and host.tracker.started


def readiness_state(host: Optional[TrackerHost]) -> tuple[bool, dict[str, bool]]:
    checks = {
        "preferences": preferences_ready(host),
        "tracker": tracker_ready(host),
    }
    return all(checks.values()), checks
