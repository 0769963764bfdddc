from fastapi import APIRouter, Depends, HTTPException

from livegrid.api.deps import get_livetrack_client
from livegrid.core.time_utils import utc_now_iso
from livegrid.schemas.tracking import (
    AthleteRequest,
    FetchBatchRequest,
    LoadAthletesRequest,
    StatsRequest,
    UpdatesBatchRequest,
)
from livegrid.services.athletes import compute_map_center, load_athletes
from livegrid.services.batch import fetch_tracking_batch, fetch_updates_batch, results_in_order
from livegrid.services.livetrack import LiveTrackClient
from livegrid.services.stats import compute_athlete_stats

router = APIRouter(prefix="/livetrack", tags=["livetrack"])


@router.post("/fetch")
async def fetch_athlete(
    payload: AthleteRequest,
    client: LiveTrackClient = Depends(get_livetrack_client),
):
    if not payload.session_id or not payload.token:
        raise HTTPException(status_code=400, detail="session_id and token are required")
    data = await client.fetch_tracking_data(payload.session_id, payload.token, payload.begin)
    return {
        "success": True,
        "data": data,
        "metadata": {
            "coordinate_count": len(data.coordinates),
            "course_point_count": len(data.course_points),
            "latest_position": data.coordinates[-1] if data.coordinates else None,
            "fetched_at": utc_now_iso(),
        },
    }


@router.post("/fetch/batch")
async def fetch_athletes_batch(
    payload: FetchBatchRequest,
    client: LiveTrackClient = Depends(get_livetrack_client),
):
    if not payload.athletes:
        raise HTTPException(status_code=400, detail="No athletes provided")
    results = await fetch_tracking_batch(client, payload.athletes)
    return {"success": True, "results": results_in_order(payload.athletes, results)}


@router.post("/updates/batch")
async def fetch_updates(
    payload: UpdatesBatchRequest,
    client: LiveTrackClient = Depends(get_livetrack_client),
):
    """Lean incremental fetch: coordinates only, since each athlete's `begin`."""
    if not payload.athletes:
        raise HTTPException(status_code=400, detail="No athletes provided")
    results = await fetch_updates_batch(client, payload.athletes)
    return {
        "success": True,
        "results": [
            r.model_copy(update={"data": None})
            for r in results_in_order(payload.athletes, results)
        ],
    }


@router.post("/athletes")
async def load_athlete_list(
    payload: LoadAthletesRequest,
    client: LiveTrackClient = Depends(get_livetrack_client),
):
    urls = [u.strip() for u in payload.urls if u.strip()]
    if not urls:
        raise HTTPException(status_code=400, detail="Please enter at least one LiveTrack URL")
    athletes = await load_athletes(client, urls)
    lat, lon = compute_map_center(athletes)
    return {"success": True, "athletes": athletes, "map_center": [lat, lon]}


@router.post("/stats")
def athlete_stats(payload: StatsRequest):
    return {"success": True, "data": compute_athlete_stats(payload.coordinates)}
