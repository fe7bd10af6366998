from fastapi import APIRouter, Depends, Response, status

from .. import schemas
from ..errors import ConfirmationNotPending
from ..host import ConfirmationRequest, TrackerHost, get_tracker_host

router = APIRouter(prefix="/confirmation", tags=["Confirmation"])


def _require_confirmation(host: TrackerHost) -> ConfirmationRequest:
    current = host.confirmation.current
    if current is None:
        raise ConfirmationNotPending(current_domain=host.tracker.google_url())
    return current


@router.get("", response_model=schemas.Confirmation)
async def get_confirmation(host: TrackerHost = Depends(get_tracker_host)):
    current = _require_confirmation(host)
    return {
        "candidate_domain": current.candidate_domain,
        "current_domain": host.tracker.google_url(),
        "shown_at": current.shown_at,
    }


@router.post("/accept", response_model=schemas.AcceptResult)
async def accept_confirmation(host: TrackerHost = Depends(get_tracker_host)):
    _require_confirmation(host)
    redo_url = host.tracker.accept_prompt()
    return {"google_url": host.tracker.google_url(), "redo_search_url": redo_url}


@router.post("/cancel", response_model=schemas.CancelResult)
async def cancel_confirmation(host: TrackerHost = Depends(get_tracker_host)):
    _require_confirmation(host)
    host.tracker.cancel_prompt()
    return {
        "google_url": host.tracker.google_url(),
        "last_prompted_domain": host.tracker.state.last_prompted_domain,
    }


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def close_confirmation(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.on_confirmation_closed()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
