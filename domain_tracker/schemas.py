from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field


class GoogleURL(BaseModel):
    google_url: str


class TrackerStatus(BaseModel):
    current_domain: str
    fetched_domain: str
    last_prompted_domain: str
    in_startup_sleep: bool
    already_fetched: bool
    need_to_fetch: bool
    context_available: bool
    need_to_prompt: bool
    probe_in_flight: bool
    pending_search_url: Optional[str] = None
    last_search_url: Optional[str] = None
    can_fetch_now: bool
    background_networking_disabled: bool
    probes_started: int
    session_state: str
    confirmation_visible: bool
    last_decision: Optional[str] = None
    started: bool


class NavigationPending(BaseModel):
    url: Annotated[str, Field(min_length=1, max_length=8_192)]


class Confirmation(BaseModel):
    candidate_domain: str
    current_domain: str
    shown_at: datetime


class AcceptResult(BaseModel):
    google_url: str
    redo_search_url: Optional[str] = None


class CancelResult(BaseModel):
    google_url: str
    last_prompted_domain: str
