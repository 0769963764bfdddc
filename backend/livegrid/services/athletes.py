"""Turning a list of LiveTrack URLs into the athletes shown on the map."""

import asyncio
import logging

from livegrid.core.constants import ATHLETE_COLORS, DEFAULT_MAP_CENTER, FETCH_ERROR, PARSE_ERROR
from livegrid.core.time_utils import parse_iso, utc_now_iso
from livegrid.schemas.tracking import Athlete, AthleteRequest, Coordinate, Profile
from livegrid.services.batch import fetch_tracking_batch
from livegrid.services.livetrack import LiveTrackClient
from livegrid.services.urls import resolve_livetrack_url

logger = logging.getLogger(__name__)


def split_url_list(text: str) -> list[str]:
    """One URL per line; surrounding whitespace and blank lines dropped."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def _placeholder(index: int, url: str, error: str, session_id: str = "", token: str = "") -> Athlete:
    return Athlete(
        id=f"athlete-{index}",
        session_id=session_id,
        token=token,
        profile=Profile(name=f"Athlete {index + 1}", location=""),
        color=ATHLETE_COLORS[index % len(ATHLETE_COLORS)],
        original_url=url,
        last_update=utc_now_iso(),
        error=error,
    )


async def load_athletes(client: LiveTrackClient, urls: list[str]) -> list[Athlete]:
    """Resolve, fetch and build one athlete per input URL, in input order.

    URLs that cannot be parsed and sessions that fail to fetch come back as
    placeholders carrying an error instead of failing the whole list.
    """
    parsed = await asyncio.gather(
        *(resolve_livetrack_url(client.http, u) for u in urls), return_exceptions=True
    )

    requests = [
        AthleteRequest(session_id=p.session_id, token=p.token)
        for p in parsed
        if p is not None and not isinstance(p, BaseException)
    ]
    results = await fetch_tracking_batch(client, requests) if requests else {}

    athletes: list[Athlete] = []
    for i, (url, p) in enumerate(zip(urls, parsed)):
        if p is None or isinstance(p, BaseException):
            athletes.append(_placeholder(i, url, PARSE_ERROR))
            continue
        result = results.get(p.session_id)
        if result is None or not result.success or result.data is None:
            athletes.append(_placeholder(i, url, FETCH_ERROR, p.session_id, p.token))
            continue
        data = result.data
        athletes.append(
            Athlete(
                id=f"athlete-{i}",
                session_id=data.session_id,
                token=data.token,
                profile=data.profile,
                coordinates=list(data.coordinates),
                course_points=list(data.course_points),
                color=ATHLETE_COLORS[i % len(ATHLETE_COLORS)],
                original_url=url,
                last_update=data.last_update,
            )
        )

    failed = sum(1 for a in athletes if a.error)
    logger.info("Loaded %d athletes (%d with errors)", len(athletes), failed)
    return athletes


def compute_map_center(athletes: list[Athlete]) -> tuple[float, float]:
    """Midpoint of the bounding box over every athlete's coordinates."""
    lats = [c.position.lat for a in athletes for c in a.coordinates]
    lons = [c.position.lon for a in athletes for c in a.coordinates]
    if not lats:
        return DEFAULT_MAP_CENTER
    return ((min(lats) + max(lats)) / 2, (min(lons) + max(lons)) / 2)


def merge_coordinates(existing: list[Coordinate], new: list[Coordinate]) -> list[Coordinate]:
    """Append samples strictly newer than the last known one.

    The `begin` cursor may echo the sample it starts from, so anything at or
    before the last timestamp is dropped. History is never replaced.
    """
    if not existing:
        return list(new)
    last_raw = existing[-1].timestamp
    last = parse_iso(last_raw)
    fresh = []
    for c in new:
        ts = parse_iso(c.timestamp)
        if last is not None and ts is not None:
            newer = ts > last
        else:
            # unparseable on either side: compare the raw ISO strings
            newer = c.timestamp > last_raw
        if newer:
            fresh.append(c)
    return existing + fresh
