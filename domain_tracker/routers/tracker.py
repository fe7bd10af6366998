from fastapi import APIRouter, Depends, status

from .. import schemas
from ..host import TrackerHost, get_tracker_host

router = APIRouter(prefix="/tracker", tags=["Tracker"])

# Handlers are async so every tracker call runs on the event loop.


@router.get("/google-url", response_model=schemas.GoogleURL)
async def google_url(host: TrackerHost = Depends(get_tracker_host)):
    return {"google_url": host.tracker.google_url()}


@router.get("/status", response_model=schemas.TrackerStatus)
async def tracker_status(host: TrackerHost = Depends(get_tracker_host)):
    return host.tracker.snapshot()


@router.post(
    "/server-check",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=schemas.TrackerStatus,
)
async def request_server_check(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.request_server_check()
    return host.tracker.snapshot()


@router.post(
    "/network/context-ready",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=schemas.TrackerStatus,
)
async def network_context_ready(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.on_network_context_ready()
    return host.tracker.snapshot()


@router.post(
    "/network/ip-changed",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=schemas.TrackerStatus,
)
async def ip_address_changed(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.on_ip_address_changed()
    return host.tracker.snapshot()
