from livegrid.core.time_utils import seconds_between
from livegrid.schemas.tracking import AthleteStats, Coordinate


def compute_athlete_stats(coordinates: list[Coordinate]) -> AthleteStats | None:
    """Summary stats over an ordered list of samples.

    - distance is the last sample's cumulative distance, not re-derived
      from positions
    - speed and heart rate averages only count strictly positive samples
    - elevation deltas compare consecutive samples that have an altitude,
      by list position; samples without one are skipped

    Returns None when there are no samples yet.
    """
    if not coordinates:
        return None

    first, latest = coordinates[0], coordinates[-1]
    latest_fd = latest.fitness_data

    total_distance = (latest_fd.distance_meters if latest_fd else None) or 0.0
    activity_type = (latest_fd.activity_type if latest_fd else None) or "Unknown"
    total_time = seconds_between(first.timestamp, latest.timestamp)

    speeds = [c.speed for c in coordinates if c.speed is not None and c.speed > 0]
    avg_speed = sum(speeds) / len(speeds) if speeds else 0.0
    max_speed = max(speeds) if speeds else 0.0

    altitudes = [c.altitude for c in coordinates if c.altitude is not None]
    elev_gain = 0.0
    elev_loss = 0.0
    for prev, cur in zip(altitudes, altitudes[1:]):
        de = cur - prev
        if de > 0:
            elev_gain += de
        else:
            elev_loss += -de

    heart_rates = [
        c.fitness_data.heart_rate
        for c in coordinates
        if c.fitness_data and c.fitness_data.heart_rate and c.fitness_data.heart_rate > 0
    ]
    avg_hr = sum(heart_rates) / len(heart_rates) if heart_rates else 0.0
    max_hr = max(heart_rates) if heart_rates else 0.0

    return AthleteStats(
        total_distance=float(total_distance),
        total_time=total_time,
        avg_speed=avg_speed,
        max_speed=max_speed,
        elevation_gain=elev_gain,
        elevation_loss=elev_loss,
        min_altitude=min(altitudes) if altitudes else 0.0,
        max_altitude=max(altitudes) if altitudes else 0.0,
        avg_heart_rate=avg_hr,
        max_heart_rate=max_hr,
        activity_type=activity_type,
    )
