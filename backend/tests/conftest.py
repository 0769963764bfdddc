import json
import os

# Use in-memory sqlite for tests; must be set before livegrid.db is imported
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from datetime import datetime, timedelta, timezone

import httpx
import pytest

def iso_ago(minutes: float) -> str:
    """Timestamp `minutes` before now, formatted like LiveTrack's dateTime."""
    dt = datetime.now(timezone.utc) - timedelta(minutes=minutes)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def make_point(ts, lat=45.0, lon=6.0, altitude=None, speed=None, hr=None, distance=None, activity="RUNNING"):
    """Track point shaped like LiveTrack's trackPointsBySessionId payload."""
    return {
        "position": {"lat": lat, "lon": lon},
        "dateTime": ts,
        "altitude": altitude,
        "speed": speed,
        "fitnessPointData": {
            "totalDistanceMeters": distance,
            "activityType": activity,
            "heartRateBeatsPerMin": hr,
            "powerWatts": None,
            "cadenceCyclesPerMin": None,
        },
    }


class FakeLiveTrack:
    """Stand-in for the LiveTrack GraphQL endpoint and the gar.mn shortener.

    sessions: {session_id: {"session": dict | None, "points": [...],
                            "course": [...], "fail": None | "http" | "graphql",
                            "course_fail": bool}}
    redirects: {short_url: long_url}
    """

    def __init__(self):
        self.sessions: dict[str, dict] = {}
        self.redirects: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []
        self.begins: list[str | None] = []

    def add_session(self, session_id, name="Jane Runner", points=None, course=None, **opts):
        self.sessions[session_id] = {
            "session": {
                "sessionId": session_id,
                "sessionToken": "tok",
                "userDisplayName": name,
                "sessionName": "Morning Run",
                "activity": {"name": "Run"},
                "publisher": {"nickname": "jr"},
            },
            "points": points or [],
            "course": course or [],
            **opts,
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.method == "HEAD":
            if url in self.redirects:
                return httpx.Response(302, headers={"location": self.redirects[url]})
            if request.url.host == "unreachable.example":
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200)

        body = json.loads(request.content)
        op = body["operationName"]
        variables = body["variables"]
        sid = variables["sessionId"]
        self.calls.append((op, sid))
        entry = self.sessions.get(sid)

        if op == "getSession":
            if entry is None:
                return httpx.Response(200, json={"data": {"sessionById": None}})
            if entry.get("fail") == "http":
                return httpx.Response(500, json={})
            if entry.get("fail") == "graphql":
                return httpx.Response(200, json={"errors": [{"message": "bad token"}]})
            return httpx.Response(200, json={"data": {"sessionById": entry["session"]}})

        if op == "getTrackPoints":
            self.begins.append(variables.get("begin"))
            points = entry["points"] if entry else []
            begin = variables.get("begin")
            if begin:
                points = [p for p in points if p["dateTime"] >= begin]
            return httpx.Response(
                200,
                json={"data": {"trackPointsBySessionId": {"trackPoints": points, "sessionId": sid}}},
            )

        if op == "getCourseData":
            if entry is None or entry.get("course_fail"):
                return httpx.Response(503, text="unavailable")
            course = [{"coursePoints": entry["course"]}] if entry["course"] else []
            return httpx.Response(200, json={"data": {"courseBySessionId": {"courses": course}}})

        return httpx.Response(400, json={"errors": [{"message": f"unknown op {op}"}]})

    def count(self, op: str) -> int:
        return sum(1 for o, _ in self.calls if o == op)


@pytest.fixture(name="make_point")
def make_point_fixture():
    return make_point


@pytest.fixture(name="iso_ago")
def iso_ago_fixture():
    return iso_ago


@pytest.fixture
def fake_livetrack():
    return FakeLiveTrack()


@pytest.fixture
def http_factory(fake_livetrack):
    """Builds an AsyncClient wired to the fake; create it inside the running loop."""

    def build() -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(fake_livetrack.handler))

    return build


@pytest.fixture
def api_client(fake_livetrack):
    from fastapi.testclient import TestClient  # noqa: WPS433
    from livegrid.api.deps import get_http_client  # noqa: WPS433
    from livegrid.main import app  # noqa: WPS433

    async def override_http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(fake_livetrack.handler)) as client:
            yield client

    app.dependency_overrides[get_http_client] = override_http_client
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_http_client, None)


@pytest.fixture
def db_session():
    from livegrid.db import Base, SessionLocal, engine  # noqa: WPS433
    from livegrid.models.shared_grid import SharedGrid  # noqa: F401, WPS433

    # The in-memory engine is shared with api_client; start from empty tables
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
