"""Concurrent fan-out over many athletes.

Every sub-fetch settles independently: one athlete failing never blocks or
fails the others. Requests are deduplicated by session id so repeated URLs
for the same session cost one set of upstream calls.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

from livegrid.schemas.tracking import AthleteFetchResult, AthleteRequest
from livegrid.services.livetrack import LiveTrackClient

logger = logging.getLogger(__name__)


def dedupe_requests(requests: Iterable[AthleteRequest]) -> list[AthleteRequest]:
    """First request per session id wins; order of first appearance is kept."""
    seen: dict[str, AthleteRequest] = {}
    for req in requests:
        seen.setdefault(req.session_id, req)
    return list(seen.values())


async def _settle(
    requests: list[AthleteRequest],
    fetch: Callable[[AthleteRequest], Awaitable[AthleteFetchResult]],
) -> dict[str, AthleteFetchResult]:
    unique = dedupe_requests(requests)
    outcomes = await asyncio.gather(*(fetch(r) for r in unique), return_exceptions=True)

    results: dict[str, AthleteFetchResult] = {}
    for req, outcome in zip(unique, outcomes):
        if isinstance(outcome, Exception):
            logger.warning("Fetch failed for session %s: %s", req.session_id, outcome)
            results[req.session_id] = AthleteFetchResult(
                session_id=req.session_id, success=False, error=str(outcome) or type(outcome).__name__
            )
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results[req.session_id] = outcome
    return results


async def fetch_tracking_batch(
    client: LiveTrackClient, requests: list[AthleteRequest]
) -> dict[str, AthleteFetchResult]:
    """Full fetch (profile, coordinates, course) for each distinct session."""

    async def one(req: AthleteRequest) -> AthleteFetchResult:
        data = await client.fetch_tracking_data(req.session_id, req.token, req.begin)
        return AthleteFetchResult(session_id=req.session_id, success=True, data=data)

    return await _settle(requests, one)


async def fetch_updates_batch(
    client: LiveTrackClient, requests: list[AthleteRequest]
) -> dict[str, AthleteFetchResult]:
    """New coordinates since each request's ``begin``.

    A request without a cursor gets a full fetch and its coordinates are
    returned as the update.
    """

    async def one(req: AthleteRequest) -> AthleteFetchResult:
        if req.begin is None:
            data = await client.fetch_tracking_data(req.session_id, req.token)
            return AthleteFetchResult(
                session_id=req.session_id, success=True, data=data, coordinates=data.coordinates
            )
        coords = await client.fetch_updates(req.session_id, req.token, req.begin)
        return AthleteFetchResult(session_id=req.session_id, success=True, coordinates=coords)

    return await _settle(requests, one)


def results_in_order(
    requests: list[AthleteRequest], results: dict[str, AthleteFetchResult]
) -> list[AthleteFetchResult]:
    """One result per input request, in input order (duplicates share a result)."""
    return [results[r.session_id] for r in requests]
