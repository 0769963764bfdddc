"""Live polling of athlete positions.

``LiveTracker`` keeps the current athlete list and, while LIVE, re-fetches
new samples for every trackable athlete on a fixed interval. Ticks always
read the latest list at tick time, and a generation counter lets a tick
detect that the list was replaced while its requests were in flight.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from livegrid.core.config import settings
from livegrid.core.time_utils import utc_now_iso
from livegrid.schemas.tracking import Athlete, AthleteFetchResult, AthleteRequest
from livegrid.services.athletes import merge_coordinates

logger = logging.getLogger(__name__)

UpdatesFetcher = Callable[[list[AthleteRequest]], Awaitable[dict[str, AthleteFetchResult]]]


class LiveState(str, Enum):
    live = "live"
    paused = "paused"


class LiveTracker:
    def __init__(
        self,
        fetch_updates: UpdatesFetcher,
        athletes: list[Athlete] | None = None,
        interval: float | None = None,
        on_update: Callable[[list[Athlete]], None] | None = None,
    ):
        self._fetch_updates = fetch_updates
        self._athletes: list[Athlete] = list(athletes or [])
        self.interval = interval if interval is not None else settings.live_update_interval
        self.on_update = on_update
        self.state = LiveState.paused
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._stop: asyncio.Event | None = None

    # --------- state --------- #

    @property
    def athletes(self) -> list[Athlete]:
        return self._athletes

    @property
    def is_live(self) -> bool:
        return self.state == LiveState.live

    @property
    def is_armed(self) -> bool:
        return self._task is not None and not self._task.done()

    def trackable(self) -> list[Athlete]:
        return [a for a in self._athletes if a.is_trackable]

    def set_athletes(self, athletes: list[Athlete]) -> None:
        """Replace the list (new URLs or reset). Pending ticks are invalidated."""
        self._athletes = list(athletes)
        self._generation += 1
        if self.is_live:
            self._sync_timer()

    # --------- transitions --------- #

    def start(self) -> bool:
        """Enter LIVE. Returns True if polling is actually scheduled."""
        self.state = LiveState.live
        self._sync_timer()
        if self.is_armed:
            logger.info("Live tracking started for %d athletes", len(self.trackable()))
        return self.is_armed

    def stop(self) -> None:
        self.state = LiveState.paused
        # A tick still waiting on its fetch finishes but its result is dropped
        self._generation += 1
        self._disarm()
        logger.info("Live tracking stopped")

    def toggle(self) -> bool:
        if self.is_live:
            self.stop()
            return False
        return self.start()

    async def close(self) -> None:
        """Tear down the timer and wait for a running tick to finish."""
        task = self._task
        self._generation += 1
        self._disarm()
        if task is not None:
            await task

    def _sync_timer(self) -> None:
        if self.is_live and self.trackable():
            if not self.is_armed:
                self._stop = asyncio.Event()
                self._task = asyncio.get_running_loop().create_task(self._run(self._stop))
        else:
            self._disarm()

    def _disarm(self) -> None:
        # Only the wait between ticks is interrupted; in-flight requests run on
        if self._stop is not None:
            self._stop.set()
        self._stop = None
        self._task = None

    async def _run(self, stop: asyncio.Event) -> None:
        while True:
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
                return
            except asyncio.TimeoutError:
                pass
            try:
                await self.tick()
            except Exception:
                logger.exception("Live update tick failed")

    # --------- polling --------- #

    async def tick(self) -> bool:
        """Fetch and merge new samples. Returns True if anything changed."""
        generation = self._generation
        snapshot = self._athletes
        requests = [
            AthleteRequest(session_id=a.session_id, token=a.token, begin=a.last_timestamp)
            for a in snapshot
            if a.is_trackable
        ]
        if not requests:
            return False

        results = await self._fetch_updates(requests)

        if generation != self._generation:
            logger.debug("Discarding stale live update (generation %d)", generation)
            return False

        changed = 0
        merged: list[Athlete] = []
        # Merge into whatever is current now, not the snapshot taken above
        for athlete in self._athletes:
            result = results.get(athlete.session_id) if athlete.is_trackable else None
            if result is None or not result.success:
                merged.append(athlete)
                continue
            new_coords = result.coordinates or []
            coords = merge_coordinates(athlete.coordinates, new_coords)
            if len(coords) == len(athlete.coordinates):
                merged.append(athlete)
                continue
            update = {"coordinates": coords, "last_update": utc_now_iso(), "error": None}
            if result.data is not None:
                update["profile"] = result.data.profile
            merged.append(athlete.model_copy(update=update))
            changed += 1

        if changed:
            self._athletes = merged
            logger.info("Live update: appended samples for %d athletes", changed)
            if self.on_update is not None:
                self.on_update(merged)
        return changed > 0
