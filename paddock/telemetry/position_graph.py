"""
Position-over-laps graph for every driver in a session.

Laps and position changes arrive as two independent streams. For each
driver both are sorted by time and merged with a single forward sweep:
the position in effect when a lap starts is the last position record at
or before that lap's start (or the driver's first known position, for
laps that start before any record).
"""
from collections import defaultdict
from typing import Sequence

from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.ingest_openf1.fetchers import fetch_laps, fetch_positions
from paddock.ingest_openf1.records import LapRecord, PositionRecord
from paddock.telemetry.models import DriverLapGraph, LapPosition
from paddock.utils.logger import logger


def sweep_lap_positions(
    laps: Sequence[LapRecord],
    positions: Sequence[PositionRecord],
) -> list[LapPosition]:
    """
    Merge-join one driver's laps with their position changes.

    Both sequences must already be sorted by time. Laps without a start
    timestamp must have been removed.
    """
    if not positions:
        return []

    data: list[LapPosition] = []
    current = positions[0].position
    idx = 0
    for lap in laps:
        while idx < len(positions) and positions[idx].date <= lap.date_start:
            current = positions[idx].position
            idx += 1
        data.append(LapPosition(lap=lap.lap_number, position=current))
    return data


def build_position_graphs(
    laps: Sequence[LapRecord],
    positions: Sequence[PositionRecord],
) -> list[DriverLapGraph]:
    """
    Build per-driver lap/position graphs from a whole session's laps and positions.

    Drivers with no position records are skipped. Graphs are ordered by
    each driver's final recorded position, leader first.
    """
    laps_by_driver: dict[int, list[LapRecord]] = defaultdict(list)
    for lap in laps:
        if lap.date_start is not None:
            laps_by_driver[lap.driver_number].append(lap)

    positions_by_driver: dict[int, list[PositionRecord]] = defaultdict(list)
    for record in positions:
        positions_by_driver[record.driver_number].append(record)

    ranked: list[tuple[int, DriverLapGraph]] = []
    for driver_number, driver_laps in laps_by_driver.items():
        driver_positions = positions_by_driver.get(driver_number)
        if not driver_positions:
            logger.debug(f"No position records for #{driver_number}, skipping")
            continue

        driver_laps.sort(key=lambda lap: lap.date_start)
        driver_positions.sort(key=lambda rec: rec.date)

        graph = DriverLapGraph(
            driver_number=driver_number,
            data=sweep_lap_positions(driver_laps, driver_positions),
        )
        ranked.append((driver_positions[-1].position, graph))

    ranked.sort(key=lambda item: item[0])
    return [graph for _, graph in ranked]


def fetch_position_graphs(client: OpenF1Client, session_key: int) -> list[DriverLapGraph]:
    """Fetch a session's laps and positions (one call each) and build the graphs."""
    laps = fetch_laps(client, session_key)
    positions = fetch_positions(client, session_key)
    graphs = build_position_graphs(laps, positions)
    logger.info(
        f"Built position graphs for session {session_key}: {len(graphs)} drivers "
        f"from {len(laps)} laps and {len(positions)} position records"
    )
    return graphs
