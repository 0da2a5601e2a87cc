"""
Speed-versus-distance trace for a driver's reference lap.

The reference lap is the most recent lap that is both timed under the
valid-lap threshold (which excludes safety-car, formation and in/out laps)
and has a start timestamp. Location and car-data samples recorded inside
that lap's window are joined by nearest timestamp: every car-data sample
inherits the cumulative track distance of the location sample closest to
it in time.
"""
from typing import Sequence

import numpy as np
import pandas as pd

from paddock.config import cfg
from paddock.errors import NoValidData, NoValidLapError
from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.ingest_openf1.fetchers import fetch_car_data, fetch_laps, fetch_locations
from paddock.ingest_openf1.records import CarDataPoint, LapRecord, LocationPoint
from paddock.telemetry.models import SpeedDistance, TraceSample
from paddock.utils.logger import logger
from paddock.utils.time_utils import lap_window, to_epoch_ms


def select_reference_lap(
    laps: Sequence[LapRecord],
    max_lap_seconds: float | None = None,
) -> LapRecord:
    """
    Pick the most recent lap with ``lap_duration < max_lap_seconds`` and a start time.

    Raises:
        NoValidLapError: no lap qualifies.
    """
    limit = max_lap_seconds if max_lap_seconds is not None else cfg.telemetry.max_valid_lap_seconds
    candidates = [
        lap for lap in laps
        if lap.date_start is not None
        and lap.lap_duration is not None
        and lap.lap_duration < limit
    ]
    if not candidates:
        raise NoValidLapError(f"No lap under {limit:.1f}s with a start time among {len(laps)} laps")
    return max(candidates, key=lambda lap: lap.date_start)


def cumulative_distance(locations: Sequence[LocationPoint]) -> np.ndarray:
    """
    Running 3D Euclidean distance along a location trace.

    ``distance[0] == 0``; each following element adds the straight-line
    distance from the previous sample.
    """
    if not locations:
        return np.zeros(0, dtype=np.float64)
    coords = np.array([(p.x, p.y, p.z) for p in locations], dtype=np.float64)
    steps = np.linalg.norm(np.diff(coords, axis=0), axis=1)
    return np.concatenate(([0.0], np.cumsum(steps)))


def join_nearest_location(
    car_data: Sequence[CarDataPoint],
    locations: Sequence[LocationPoint],
    distance_scale: float | None = None,
) -> list[TraceSample]:
    """
    Attribute to each car-data sample the distance of its nearest location sample.

    Both inputs are sorted by timestamp first. Nearness is measured in whole
    milliseconds; when two location samples are equally close the earlier
    one wins. Distances are divided by ``distance_scale``.

    Returns:
        One TraceSample per car-data sample, in car-data timestamp order.
    """
    scale = distance_scale if distance_scale is not None else cfg.telemetry.distance_scale
    if not car_data:
        return []
    if not locations:
        raise NoValidData("No location samples to attribute distance from")

    car_sorted = sorted(car_data, key=lambda p: p.date)
    loc_sorted = sorted(locations, key=lambda p: p.date)
    distances = cumulative_distance(loc_sorted)

    car_df = pd.DataFrame({
        "ts": np.array([to_epoch_ms(p.date) for p in car_sorted], dtype=np.int64),
        "speed": [p.speed for p in car_sorted],
    })
    loc_df = pd.DataFrame({
        "ts": np.array([to_epoch_ms(p.date) for p in loc_sorted], dtype=np.int64),
        "distance": distances / scale,
        "x": [p.x for p in loc_sorted],
        "y": [p.y for p in loc_sorted],
    })
    # Samples sharing a millisecond are indistinguishable; the first one counts.
    loc_df = loc_df.drop_duplicates(subset="ts", keep="first")

    merged = pd.merge_asof(car_df, loc_df, on="ts", direction="nearest")

    return [
        TraceSample(
            date=point.date,
            speed=float(row.speed),
            distance=float(row.distance),
            x=float(row.x),
            y=float(row.y),
        )
        for point, row in zip(car_sorted, merged.itertuples(index=False))
    ]


def build_trace_samples(
    client: OpenF1Client,
    session_key: int,
    driver_number: int,
    max_lap_seconds: float | None = None,
    distance_scale: float | None = None,
) -> list[TraceSample]:
    """
    Fetch and join one driver's reference-lap telemetry.

    Any failure (no valid lap, upstream error) propagates: there is no
    partial trace.
    """
    laps = fetch_laps(client, session_key, driver_number=driver_number)
    lap = select_reference_lap(laps, max_lap_seconds)
    start, end = lap_window(lap.date_start, lap.lap_duration)
    logger.debug(
        f"Reference lap for #{driver_number} in session {session_key}: "
        f"lap {lap.lap_number} ({lap.lap_duration:.3f}s)"
    )

    locations = fetch_locations(client, session_key, driver_number, start, end)
    car_data = fetch_car_data(client, session_key, driver_number, start, end)

    samples = join_nearest_location(car_data, locations, distance_scale)
    logger.info(
        f"Built trace for #{driver_number} in session {session_key}: "
        f"{len(samples)} samples from {len(locations)} locations"
    )
    return samples


def build_speed_trace(
    client: OpenF1Client,
    session_key: int,
    driver_number: int,
    max_lap_seconds: float | None = None,
    distance_scale: float | None = None,
) -> list[SpeedDistance]:
    """(speed, distance) pairs for a driver's reference lap, in car-data order."""
    samples = build_trace_samples(client, session_key, driver_number, max_lap_seconds, distance_scale)
    return [s.to_speed_distance() for s in samples]
