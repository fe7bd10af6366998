from fastapi import APIRouter, Depends, Response, status

from .. import schemas
from ..host import TrackerHost, get_tracker_host

router = APIRouter(prefix="/navigation", tags=["Navigation"])


@router.post("/search-committed", status_code=status.HTTP_204_NO_CONTENT)
async def search_committed(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.search_committed()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/pending", status_code=status.HTTP_204_NO_CONTENT)
async def navigation_pending(
    payload: schemas.NavigationPending,
    host: TrackerHost = Depends(get_tracker_host),
):
    host.tracker.on_navigation_pending(payload.url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/committed", status_code=status.HTTP_204_NO_CONTENT)
async def navigation_committed(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.on_navigation_committed()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/closed", status_code=status.HTTP_204_NO_CONTENT)
async def tab_closed(host: TrackerHost = Depends(get_tracker_host)):
    host.tracker.on_tab_closed()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
