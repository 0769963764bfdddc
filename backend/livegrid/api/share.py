from fastapi import APIRouter, Depends, HTTPException

from livegrid.api.deps import get_share_service
from livegrid.schemas.share import (
    GridShareRequest,
    MultiTrackShareRequest,
    ShareResult,
    SharedGridRead,
)
from livegrid.services.share import ShareService

router = APIRouter(prefix="/share", tags=["share"])


@router.post("/grid", response_model=ShareResult)
def create_grid_share(
    payload: GridShareRequest,
    service: ShareService = Depends(get_share_service),
):
    return service.find_or_create_share(payload.grid_state)


@router.post("/grid/check")
def check_grid_share(
    payload: GridShareRequest,
    service: ShareService = Depends(get_share_service),
):
    return {"has_existing": service.has_existing_share(payload.grid_state)}


@router.get("/grid/{share_id}")
def get_grid_share(share_id: str, service: ShareService = Depends(get_share_service)):
    record = service.get_shared_grid(share_id)
    return {"success": True, "data": SharedGridRead.model_validate(record)}


@router.post("/multi-track", response_model=ShareResult)
def create_multi_track_share(
    payload: MultiTrackShareRequest,
    service: ShareService = Depends(get_share_service),
):
    urls = [u.strip() for u in payload.urls if u.strip()]
    if not urls:
        raise HTTPException(status_code=400, detail="URLs array is required")
    return service.find_or_create_multi_track_share(urls)


@router.get("/multi-track/{share_id}")
def get_multi_track_share(share_id: str, service: ShareService = Depends(get_share_service)):
    return {"success": True, "data": service.get_shared_multi_track(share_id)}


@router.get("/count")
def share_count(service: ShareService = Depends(get_share_service)):
    return {"success": True, "data": {"total": service.repository.count()}}
