"""
Minisector pace comparison between two drivers.

The longer of the two traces is cut into a fixed number of equal index
ranges (minisectors). For each range the driver with the higher mean
speed owns that minisector. The result is anchored on driver 1's track
position so it can be drawn as a coloured track map.
"""
from typing import Sequence

from paddock.config import cfg
from paddock.errors import InvalidRequest
from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.telemetry.models import PacePoint, TraceSample
from paddock.telemetry.speed_trace import build_trace_samples
from paddock.utils.logger import logger


def _mean_speed(samples: Sequence[TraceSample], start: int, end: int) -> float:
    window = samples[start:end]
    return sum(s.speed for s in window) / max(len(window), 1)


def compare_minisector_pace(
    trace_a: Sequence[TraceSample],
    trace_b: Sequence[TraceSample],
    minisectors: int | None = None,
) -> list[PacePoint]:
    """
    Decide, per minisector, which driver carried more average speed.

    Minisector ``i`` spans indices ``[int(i * w), int((i + 1) * w))`` with
    ``w = max(len(a), len(b)) / minisectors``. A range that is empty on the
    longer trace holds no samples and is not emitted, so identical traces
    of ``n`` samples yield ``min(minisectors, n)`` points. Ties go to
    driver 1. A minisector whose start index is past the end of trace A is
    skipped, since there is no position to anchor it to.
    """
    count = minisectors if minisectors is not None else cfg.telemetry.minisectors
    if count < 1:
        raise ValueError("minisectors must be >= 1")

    longest = max(len(trace_a), len(trace_b))
    if longest == 0:
        return []

    points: list[PacePoint] = []
    for i in range(count):
        # int(i * width) without float rounding
        start = i * longest // count
        end = (i + 1) * longest // count
        if end <= start:
            continue
        if start >= len(trace_a):
            continue

        avg_a = _mean_speed(trace_a, start, end)
        avg_b = _mean_speed(trace_b, start, end)
        anchor = trace_a[start]
        points.append(PacePoint(
            x=anchor.x,
            y=anchor.y,
            minisector=i,
            fastest_driver=2 if avg_b > avg_a else 1,
        ))
    return points


def fetch_race_pace(
    client: OpenF1Client,
    session_key: int,
    driver_1: int,
    driver_2: int,
    minisectors: int | None = None,
) -> list[PacePoint]:
    """
    Minisector pace map comparing two drivers' reference laps.

    Both traces are required; a failure for either driver propagates.
    """
    if driver_1 == driver_2:
        raise InvalidRequest("Pace comparison needs two different drivers")

    trace_a = build_trace_samples(client, session_key, driver_1)
    trace_b = build_trace_samples(client, session_key, driver_2)
    points = compare_minisector_pace(trace_a, trace_b, minisectors)

    owned = sum(1 for p in points if p.fastest_driver == 1)
    logger.info(
        f"Race pace {driver_1} vs {driver_2} in session {session_key}: "
        f"#{driver_1} faster in {owned}/{len(points)} minisectors"
    )
    return points
