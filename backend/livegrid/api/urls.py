import httpx
from fastapi import APIRouter, Depends, HTTPException

from livegrid.api.deps import get_http_client
from livegrid.schemas.tracking import ExpandUrlBatchRequest, ExpandUrlRequest
from livegrid.services.urls import expand_url, expand_urls_batch

router = APIRouter(prefix="/expand-url", tags=["urls"])


@router.post("")
async def expand_single_url(
    payload: ExpandUrlRequest,
    http: httpx.AsyncClient = Depends(get_http_client),
):
    if not payload.url.strip():
        raise HTTPException(status_code=400, detail="URL is required")
    expanded = await expand_url(http, payload.url.strip())
    return {"success": True, "expanded_url": expanded}


@router.post("/batch")
async def expand_url_batch(
    payload: ExpandUrlBatchRequest,
    http: httpx.AsyncClient = Depends(get_http_client),
):
    if not payload.urls:
        raise HTTPException(status_code=400, detail="urls array is required")
    results = await expand_urls_batch(http, [u.strip() for u in payload.urls])
    return {"success": True, "results": results}
