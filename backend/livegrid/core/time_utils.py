from datetime import datetime, timezone


def parse_iso(ts: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as sent by LiveTrack.

    Accepts a trailing 'Z' and fractional seconds, e.g.
    '2025-03-02T08:15:30.000Z'. Naive values are taken as UTC.
    Returns None for empty or unparseable input.
    """
    if not ts:
        return None
    try:
        dt = datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def utc_now_iso() -> str:
    """Current UTC time as 'YYYY-MM-DDTHH:MM:SS.mmmZ'."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_iso_z(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def seconds_between(start: str | None, end: str | None) -> float:
    """Elapsed seconds between two ISO timestamps, 0 if either is missing."""
    a, b = parse_iso(start), parse_iso(end)
    if a is None or b is None:
        return 0.0
    return (b - a).total_seconds()


def format_duration(total_seconds: float) -> str:
    """
    Format seconds as 'H:MM:SS', or 'M:SS' under an hour.
    Example: 3725 -> '1:02:05', 125 -> '2:05'
    """
    total = int(total_seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    seconds = total % 60
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def format_distance(meters: float) -> str:
    """
    Example: 12345 -> '12.3 km', 850.4 -> '850 m'
    """
    if meters >= 1000:
        return f"{meters / 1000:.1f} km"
    return f"{round(meters)} m"


def format_speed(mps: float) -> str:
    """Meters per second -> '12.6 km/h'."""
    return f"{mps * 3.6:.1f} km/h"


def format_elevation(meters: float) -> str:
    return f"{round(meters)} m"
