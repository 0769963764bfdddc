#!/usr/bin/env python3
"""
Follow one or more Garmin LiveTrack sessions from the terminal.

Loads every URL (short gar.mn links or long livetrack.garmin.com links),
then polls for new positions on the live interval and logs a stats line
per athlete whenever something new arrives.

Usage examples:
  - python backend/scripts/watch_athletes.py https://gar.mn/Q7XWnDPBGV
  - python backend/scripts/watch_athletes.py --file urls.txt --interval 30
  - python backend/scripts/watch_athletes.py --once <url> <url>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

import httpx

from livegrid.core.config import settings
from livegrid.core.logging import setup_logging
from livegrid.core.time_utils import format_distance, format_duration, format_elevation, format_speed
from livegrid.schemas.tracking import Athlete
from livegrid.services.athletes import compute_map_center, load_athletes, split_url_list
from livegrid.services.batch import fetch_updates_batch
from livegrid.services.live import LiveTracker
from livegrid.services.livetrack import LiveTrackClient
from livegrid.services.stats import compute_athlete_stats

logger = logging.getLogger("livegrid.watch")


def describe(athlete: Athlete) -> str:
    if athlete.error:
        return f"{athlete.profile.name}: {athlete.error} ({athlete.original_url})"
    stats = compute_athlete_stats(athlete.coordinates)
    if stats is None:
        return f"{athlete.profile.name}: no positions yet"
    return (
        f"{athlete.profile.name} [{stats.activity_type}] "
        f"{format_distance(stats.total_distance)} in {format_duration(stats.total_time)}, "
        f"avg {format_speed(stats.avg_speed)}, +{format_elevation(stats.elevation_gain)}"
    )


def log_athletes(athletes: list[Athlete]) -> None:
    for a in athletes:
        logger.info(describe(a))


async def watch(urls: list[str], interval: float, once: bool) -> None:
    async with httpx.AsyncClient(timeout=settings.http_timeout) as http:
        client = LiveTrackClient(http)
        athletes = await load_athletes(client, urls)
        lat, lon = compute_map_center(athletes)
        logger.info("Map center: %.5f, %.5f", lat, lon)
        log_athletes(athletes)
        if once:
            return

        tracker = LiveTracker(
            lambda requests: fetch_updates_batch(client, requests),
            athletes=athletes,
            interval=interval,
            on_update=log_athletes,
        )
        if not tracker.start():
            logger.warning("No trackable athletes; nothing to poll")
            return
        try:
            while tracker.is_armed:
                await asyncio.sleep(1)
        finally:
            await tracker.close()


def main() -> None:
    ap = argparse.ArgumentParser(description="Follow Garmin LiveTrack sessions")
    ap.add_argument("urls", nargs="*", help="LiveTrack URLs")
    ap.add_argument("--file", type=Path, help="File with one URL per line")
    ap.add_argument("--interval", type=float, default=settings.live_update_interval, help="Seconds between polls")
    ap.add_argument("--once", action="store_true", help="Load and print stats once, then exit")
    ap.add_argument("--log-level", default=settings.log_level)
    args = ap.parse_args()

    setup_logging(args.log_level)

    urls = list(args.urls)
    if args.file:
        urls.extend(split_url_list(args.file.read_text(encoding="utf-8")))
    if not urls:
        ap.error("at least one URL is required")

    try:
        asyncio.run(watch(urls, args.interval, args.once))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
