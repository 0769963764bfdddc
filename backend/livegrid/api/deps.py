import httpx
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from livegrid.core.config import settings
from livegrid.db import get_db
from livegrid.repositories.shared_grids import SharedGridRepository
from livegrid.services.livetrack import LiveTrackClient
from livegrid.services.share import ShareService


# Outbound HTTP client, one per request; tests override this dependency
async def get_http_client():
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client


def get_livetrack_client(http: httpx.AsyncClient = Depends(get_http_client)) -> LiveTrackClient:
    return LiveTrackClient(http)


def get_share_service(request: Request, db: Session = Depends(get_db)) -> ShareService:
    base_url = settings.public_base_url or str(request.base_url).rstrip("/")
    return ShareService(SharedGridRepository(db), base_url=base_url)
