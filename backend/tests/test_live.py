import asyncio

from livegrid.schemas.tracking import (
    Athlete,
    AthleteFetchResult,
    Coordinate,
    Position,
    Profile,
)
from livegrid.services.live import LiveState, LiveTracker


def c(ts):
    return Coordinate(position=Position(lat=45.0, lon=6.0), timestamp=ts)


def athlete(i, session_id="s", token="t", coords=None, error=None):
    return Athlete(
        id=f"athlete-{i}",
        session_id=session_id,
        token=token,
        profile=Profile(name=f"Athlete {i + 1}"),
        coordinates=coords or [],
        color="#e6194b",
        last_update="2025-03-02T08:00:00Z",
        error=error,
    )


class FakeUpdates:
    """Scripted updates fetcher recording the requests it receives."""

    def __init__(self, responses=None, gate: asyncio.Event | None = None):
        self.responses = responses or {}
        self.requests = []
        self.gate = gate
        self.completed = 0

    async def __call__(self, requests):
        self.requests.append(requests)
        if self.gate is not None:
            await self.gate.wait()
        self.completed += 1
        results = {}
        for r in requests:
            outcome = self.responses.get(r.session_id)
            if outcome is None:
                results[r.session_id] = AthleteFetchResult(session_id=r.session_id, success=False, error="boom")
            else:
                results[r.session_id] = AthleteFetchResult(
                    session_id=r.session_id, success=True, coordinates=outcome
                )
        return results


def test_tick_appends_new_samples_using_last_timestamp_as_cursor():
    fetcher = FakeUpdates(
        {"s1": [c("2025-03-02T08:00:10Z"), c("2025-03-02T08:00:20Z")]}
    )
    tracker = LiveTracker(fetcher, athletes=[athlete(0, "s1", coords=[c("2025-03-02T08:00:10Z")])])

    changed = asyncio.run(tracker.tick())

    assert changed
    assert fetcher.requests[0][0].begin == "2025-03-02T08:00:10Z"
    assert [x.timestamp for x in tracker.athletes[0].coordinates] == [
        "2025-03-02T08:00:10Z",
        "2025-03-02T08:00:20Z",
    ]


def test_failed_athlete_keeps_prior_state():
    before = athlete(0, "s1", coords=[c("2025-03-02T08:00:00Z")])
    ok = athlete(1, "s2", coords=[c("2025-03-02T08:00:00Z")])
    fetcher = FakeUpdates({"s2": [c("2025-03-02T08:00:30Z")]})
    tracker = LiveTracker(fetcher, athletes=[before, ok])

    asyncio.run(tracker.tick())

    assert tracker.athletes[0] == before
    assert len(tracker.athletes[1].coordinates) == 2


def test_invalid_athletes_are_not_polled():
    fetcher = FakeUpdates()
    tracker = LiveTracker(
        fetcher,
        athletes=[athlete(0, session_id="", token=""), athlete(1, "s2", error="Failed to fetch tracking data")],
    )
    assert asyncio.run(tracker.tick()) is False
    assert fetcher.requests == []


def test_start_without_valid_athletes_does_not_arm():
    async def run():
        tracker = LiveTracker(FakeUpdates(), athletes=[athlete(0, session_id="")], interval=0.01)
        armed = tracker.start()
        return tracker, armed

    tracker, armed = asyncio.run(run())
    assert tracker.state == LiveState.live
    assert armed is False
    assert not tracker.is_armed


def test_timer_polls_until_stopped():
    async def run():
        fetcher = FakeUpdates({"s1": []})
        tracker = LiveTracker(fetcher, athletes=[athlete(0, "s1")], interval=0.01)
        assert tracker.start()
        await asyncio.sleep(0.1)
        tracker.stop()
        polls = len(fetcher.requests)
        await asyncio.sleep(0.05)
        return tracker, polls, len(fetcher.requests)

    tracker, polls_at_stop, polls_after = asyncio.run(run())
    assert polls_at_stop >= 1
    assert polls_after == polls_at_stop
    assert tracker.state == LiveState.paused
    assert not tracker.is_armed


def test_toggle_and_close():
    async def run():
        tracker = LiveTracker(FakeUpdates({"s1": []}), athletes=[athlete(0, "s1")], interval=10)
        states = [tracker.toggle(), tracker.is_armed]
        states += [tracker.toggle(), tracker.is_armed]
        tracker.start()
        await tracker.close()
        states.append(tracker.is_armed)
        return states

    assert asyncio.run(run()) == [True, True, False, False, False]


def test_stale_tick_is_discarded_after_athletes_replaced():
    async def run():
        gate = asyncio.Event()
        fetcher = FakeUpdates({"s1": [c("2025-03-02T08:00:30Z")]}, gate=gate)
        tracker = LiveTracker(fetcher, athletes=[athlete(0, "s1", coords=[c("2025-03-02T08:00:00Z")])])

        pending = asyncio.ensure_future(tracker.tick())
        await asyncio.sleep(0)
        replacement = [athlete(0, "s9", coords=[c("2025-03-02T09:00:00Z")])]
        tracker.set_athletes(replacement)
        gate.set()
        changed = await pending
        return tracker, changed, replacement

    tracker, changed, replacement = asyncio.run(run())
    assert changed is False
    assert tracker.athletes == replacement


def test_on_update_callback_receives_merged_list():
    seen = []
    fetcher = FakeUpdates({"s1": [c("2025-03-02T08:00:30Z")]})
    tracker = LiveTracker(fetcher, athletes=[athlete(0, "s1")], on_update=seen.append)
    asyncio.run(tracker.tick())
    assert len(seen) == 1
    assert seen[0][0].coordinates[0].timestamp == "2025-03-02T08:00:30Z"


def test_stop_lets_in_flight_fetch_finish_and_drops_its_result():
    async def run():
        gate = asyncio.Event()
        fetcher = FakeUpdates({"s1": [c("2025-03-02T08:00:30Z")]}, gate=gate)
        before = athlete(0, "s1", coords=[c("2025-03-02T08:00:00Z")])
        tracker = LiveTracker(fetcher, athletes=[before], interval=0.01)
        assert tracker.start()
        while not fetcher.requests:
            await asyncio.sleep(0.005)

        tracker.stop()
        gate.set()
        await asyncio.sleep(0.05)
        return tracker, fetcher, before

    tracker, fetcher, before = asyncio.run(run())
    assert fetcher.completed == 1
    assert len(fetcher.requests) == 1
    assert tracker.athletes == [before]
    assert not tracker.is_armed


def test_set_athletes_arms_live_tracker_once_a_valid_athlete_appears():
    async def run():
        fetcher = FakeUpdates({"s1": []})
        tracker = LiveTracker(fetcher, athletes=[athlete(0, session_id="")], interval=0.01)
        armed_before = tracker.start()
        tracker.set_athletes([athlete(0, "s1")])
        armed_after = tracker.is_armed
        await asyncio.sleep(0.05)
        await tracker.close()
        return armed_before, armed_after, len(fetcher.requests)

    armed_before, armed_after, polls = asyncio.run(run())
    assert armed_before is False
    assert armed_after is True
    assert polls >= 1


def test_set_athletes_disarms_when_no_valid_athlete_remains():
    async def run():
        tracker = LiveTracker(FakeUpdates({"s1": []}), athletes=[athlete(0, "s1")], interval=10)
        tracker.start()
        armed = tracker.is_armed
        tracker.set_athletes([athlete(0, session_id="")])
        return armed, tracker.is_armed, tracker.state

    armed, armed_after, state = asyncio.run(run())
    assert armed is True
    assert armed_after is False
    assert state == LiveState.live
