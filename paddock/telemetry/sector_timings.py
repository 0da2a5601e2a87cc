"""
Fastest-lap sector breakdown for the podium finishers of a session.

Lap lists are fetched one driver at a time with a fixed pause between
requests to stay under the upstream rate limit. A driver whose data
cannot be fetched or has no timed lap is left out; the call fails only
when nobody is left.
"""
import time
from typing import Optional, Sequence

from paddock.config import cfg
from paddock.errors import NoValidData, PaddockError
from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.ingest_openf1.fetchers import fetch_laps, fetch_session_results
from paddock.ingest_openf1.records import LapRecord, SessionResult
from paddock.telemetry.models import FastestLapSector
from paddock.utils.logger import logger


def fastest_lap(laps: Sequence[LapRecord]) -> Optional[LapRecord]:
    """Lap with the smallest ``lap_duration``; laps without a duration are ignored."""
    timed = [lap for lap in laps if lap.lap_duration is not None]
    if not timed:
        return None
    return min(timed, key=lambda lap: lap.lap_duration)


def sector_breakdown(position: int, driver_number: int, lap: LapRecord) -> FastestLapSector:
    return FastestLapSector(
        position=position,
        driver_number=driver_number,
        fastest_lap=lap.lap_duration,
        sector_1=lap.duration_sector_1 or 0.0,
        sector_2=lap.duration_sector_2 or 0.0,
        sector_3=lap.duration_sector_3 or 0.0,
    )


def podium_finishers(results: Sequence[SessionResult], podium_size: int) -> list[SessionResult]:
    """Classified finishers in rank order, capped at ``podium_size``."""
    classified = [r for r in results if r.position is not None and r.position <= podium_size]
    classified.sort(key=lambda r: r.position)
    return classified[:podium_size]


def fetch_sector_timings(
    client: OpenF1Client,
    session_key: int,
    podium_size: int | None = None,
    request_delay: float | None = None,
) -> list[FastestLapSector]:
    """
    Sector times of each podium finisher's fastest lap, ordered by position.

    Args:
        client: OpenF1Client instance.
        session_key: Unique session identifier.
        podium_size: Number of finishers to include (default 3).
        request_delay: Seconds to wait between consecutive lap fetches.

    Raises:
        NoValidData: no finisher produced a fastest lap.
    """
    size = podium_size if podium_size is not None else cfg.telemetry.podium_size
    delay = request_delay if request_delay is not None else cfg.telemetry.podium_request_delay

    results = fetch_session_results(client, session_key, max_position=size)
    finishers = podium_finishers(results, size)

    sectors: list[FastestLapSector] = []
    for i, result in enumerate(finishers):
        if i > 0 and delay > 0:
            time.sleep(delay)

        try:
            laps = fetch_laps(client, session_key, driver_number=result.driver_number)
        except PaddockError as e:
            logger.warning(f"Skipping #{result.driver_number} (P{result.position}) in session {session_key}: {e}")
            continue

        lap = fastest_lap(laps)
        if lap is None:
            logger.warning(f"Skipping #{result.driver_number} (P{result.position}): no timed laps")
            continue
        sectors.append(sector_breakdown(result.position, result.driver_number, lap))

    if not sectors:
        raise NoValidData(f"No sector timings available for session {session_key}")

    sectors.sort(key=lambda s: s.position)
    logger.info(f"Sector timings for session {session_key}: {len(sectors)}/{len(finishers)} drivers")
    return sectors
