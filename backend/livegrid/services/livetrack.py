"""Client for the Garmin LiveTrack GraphQL endpoint.

Three operations are used per athlete: session metadata, the track-point
window and the planned course. Responses are mapped into our schemas.
"""

import logging
from datetime import datetime, timedelta, timezone

import httpx

from livegrid.core.config import settings
from livegrid.core.errors import GraphQLQueryError, SessionNotFoundError, UpstreamError
from livegrid.core.time_utils import to_iso_z, utc_now_iso
from livegrid.schemas.tracking import (
    Coordinate,
    CoursePoint,
    FitnessData,
    Position,
    Profile,
    TrackingData,
)

logger = logging.getLogger(__name__)


SESSION_QUERY = """
query getSession($sessionId: String!, $token: String!) {
  sessionById(sessionId: $sessionId, token: $token) {
    sessionId
    sessionToken
    userDisplayName
    sessionName
    activity {
      name
    }
    publisher {
      nickname
    }
  }
}
"""

TRACK_POINTS_QUERY = """
query getTrackPoints(
  $sessionId: String!
  $token: String!
  $begin: String
  $disablePolling: Boolean
) {
  trackPointsBySessionId(
    sessionId: $sessionId
    token: $token
    begin: $begin
    limit: %(limit)d
    disablePolling: $disablePolling
  ) {
    trackPoints {
      fitnessPointData {
        totalDistanceMeters
        activityType
        heartRateBeatsPerMin
        powerWatts
        cadenceCyclesPerMin
      }
      position {
        lat
        lon
      }
      dateTime
      speed
      altitude
    }
    sessionId
  }
}
"""

COURSE_QUERY = """
query getCourseData($sessionId: String!, $token: String!, $disablePolling: Boolean) {
  courseBySessionId(sessionId: $sessionId, token: $token, disablePolling: $disablePolling) {
    courses {
      coursePoints {
        position {
          lat
          lon
        }
      }
    }
  }
}
"""


def _to_coordinate(point: dict) -> Coordinate:
    fp = point.get("fitnessPointData")
    fitness = None
    if fp:
        fitness = FitnessData(
            heart_rate=fp.get("heartRateBeatsPerMin"),
            power=fp.get("powerWatts"),
            cadence=fp.get("cadenceCyclesPerMin"),
            distance_meters=fp.get("totalDistanceMeters"),
            activity_type=fp.get("activityType"),
        )
    pos = point.get("position") or {}
    return Coordinate(
        position=Position(lat=pos["lat"], lon=pos["lon"]),
        timestamp=point["dateTime"],
        altitude=point.get("altitude"),
        speed=point.get("speed"),
        fitness_data=fitness,
    )


def _to_coordinates(points: list[dict]) -> list[Coordinate]:
    try:
        return [_to_coordinate(p) for p in points]
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamError(f"Malformed track point: {e}") from e


def _to_profile(session: dict, track_points: list[dict]) -> Profile:
    publisher = session.get("publisher") or {}
    first_fp = (track_points[0].get("fitnessPointData") or {}) if track_points else {}
    return Profile(
        name=session.get("userDisplayName") or publisher.get("nickname") or "Unknown Athlete",
        location=session.get("sessionName") or "",
        session_name=session.get("sessionName"),
        activity_type=first_fp.get("activityType"),
    )


class LiveTrackClient:
    """Thin async wrapper; the httpx client is owned by the caller."""

    def __init__(self, http: httpx.AsyncClient, graphql_url: str | None = None):
        self.http = http
        self.graphql_url = graphql_url or settings.livetrack_graphql_url

    def _headers(self, session_id: str, token: str) -> dict:
        origin = settings.livetrack_origin
        return {
            "accept": "*/*",
            "content-type": "application/json",
            "origin": origin,
            "referer": f"{origin}/session/{session_id}/token/{token}",
            "user-agent": settings.user_agent,
        }

    async def _query(self, operation: str, query: str, variables: dict) -> dict:
        """POST one GraphQL operation and return its ``data`` object.

        Raises UpstreamError on transport failure or non-2xx status and
        GraphQLQueryError when the payload carries ``errors``.
        """
        payload = {"query": query, "variables": variables, "operationName": operation}
        try:
            r = await self.http.post(
                self.graphql_url,
                json=payload,
                headers=self._headers(variables["sessionId"], variables["token"]),
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"{operation} request failed: {e}") from e
        if r.status_code < 200 or r.status_code >= 300:
            raise UpstreamError(f"{operation} failed: HTTP {r.status_code} {r.reason_phrase}")
        try:
            body = r.json()
        except ValueError as e:
            raise UpstreamError(f"{operation} returned invalid JSON") from e
        if body.get("errors"):
            raise GraphQLQueryError(f"GraphQL errors in {operation}", details=body["errors"])
        return body.get("data") or {}

    async def fetch_session(self, session_id: str, token: str) -> dict:
        data = await self._query(
            "getSession", SESSION_QUERY, {"sessionId": session_id, "token": token}
        )
        session = data.get("sessionById")
        if not session:
            raise SessionNotFoundError("No session data found")
        return session

    async def fetch_track_points(self, session_id: str, token: str, begin: str | None = None) -> list[dict]:
        data = await self._query(
            "getTrackPoints",
            TRACK_POINTS_QUERY % {"limit": settings.track_point_limit},
            {
                "sessionId": session_id,
                "token": token,
                "begin": begin,
                "disablePolling": True,
            },
        )
        return (data.get("trackPointsBySessionId") or {}).get("trackPoints") or []

    async def fetch_course(self, session_id: str, token: str) -> list[CoursePoint]:
        """Planned route; any failure yields an empty course."""
        try:
            data = await self._query(
                "getCourseData",
                COURSE_QUERY,
                {"sessionId": session_id, "token": token, "disablePolling": True},
            )
            courses = (data.get("courseBySessionId") or {}).get("courses") or []
            points = (courses[0].get("coursePoints") or []) if courses else []
            return [CoursePoint(position=Position(**p["position"])) for p in points]
        except (UpstreamError, GraphQLQueryError, KeyError, TypeError, ValueError) as e:
            logger.info("Course unavailable for session %s: %s", session_id, e)
            return []

    async def fetch_tracking_data(self, session_id: str, token: str, begin: str | None = None) -> TrackingData:
        """Session, track points and course for one athlete.

        Without a cursor the window starts ``default_lookback_hours`` ago.
        """
        session = await self.fetch_session(session_id, token)
        if begin is None:
            since = datetime.now(timezone.utc) - timedelta(hours=settings.default_lookback_hours)
            begin = to_iso_z(since)
        points = await self.fetch_track_points(session_id, token, begin)
        course = await self.fetch_course(session_id, token)

        return TrackingData(
            session_id=session_id,
            token=token,
            profile=_to_profile(session, points),
            coordinates=_to_coordinates(points),
            course_points=course,
            last_update=utc_now_iso(),
        )

    async def fetch_updates(self, session_id: str, token: str, begin: str) -> list[Coordinate]:
        """Only the track points since ``begin``; no session or course calls."""
        points = await self.fetch_track_points(session_id, token, begin)
        return _to_coordinates(points)
