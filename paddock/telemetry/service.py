"""
Cached entry points for the telemetry pipeline.

``TelemetryCaches`` bundles one TTL cache per result type and is built
once per process; ``TelemetryService`` routes every expensive computation
through the matching cache. A failed computation leaves its cache
untouched, so the next call retries.
"""
from dataclasses import dataclass, field

from paddock.cache.ttl_cache import TTLCache
from paddock.config import cfg
from paddock.ingest_ergast.client import ErgastClient, fetch_qualifying_results
from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.telemetry.minisectors import fetch_race_pace
from paddock.telemetry.models import (
    DriverLapGraph,
    FastestLapSector,
    PacePoint,
    QualifyingRankings,
    SpeedDistance,
)
from paddock.telemetry.position_graph import fetch_position_graphs
from paddock.telemetry.qualifying import build_qualifying_rankings
from paddock.telemetry.sector_timings import fetch_sector_timings
from paddock.telemetry.speed_trace import build_speed_trace


@dataclass
class TelemetryCaches:
    speed_traces: TTLCache[list[SpeedDistance]] = field(
        default_factory=lambda: TTLCache("speed_traces"))
    position_graphs: TTLCache[list[DriverLapGraph]] = field(
        default_factory=lambda: TTLCache("position_graphs"))
    sector_timings: TTLCache[list[FastestLapSector]] = field(
        default_factory=lambda: TTLCache("sector_timings"))
    race_pace: TTLCache[list[PacePoint]] = field(
        default_factory=lambda: TTLCache("race_pace"))
    qualifying: TTLCache[QualifyingRankings] = field(
        default_factory=lambda: TTLCache("qualifying"))

    def all(self) -> list[TTLCache]:
        return [
            self.speed_traces,
            self.position_graphs,
            self.sector_timings,
            self.race_pace,
            self.qualifying,
        ]

    def purge_expired(self) -> int:
        return sum(cache.purge_expired() for cache in self.all())


class TelemetryService:
    def __init__(
        self,
        openf1: OpenF1Client,
        ergast: ErgastClient,
        caches: TelemetryCaches | None = None,
        ttl_seconds: int | None = None,
    ) -> None:
        self.openf1 = openf1
        self.ergast = ergast
        self.caches = caches or TelemetryCaches()
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else cfg.cache.ttl_seconds

    def speed_trace(self, session_key: int, driver_number: int) -> list[SpeedDistance]:
        return self.caches.speed_traces.get_or_compute(
            f"{session_key}_{driver_number}",
            lambda: build_speed_trace(self.openf1, session_key, driver_number),
            self.ttl_seconds,
        )

    def position_graphs(self, session_key: int) -> list[DriverLapGraph]:
        return self.caches.position_graphs.get_or_compute(
            str(session_key),
            lambda: fetch_position_graphs(self.openf1, session_key),
            self.ttl_seconds,
        )

    def sector_timings(self, session_key: int) -> list[FastestLapSector]:
        return self.caches.sector_timings.get_or_compute(
            str(session_key),
            lambda: fetch_sector_timings(self.openf1, session_key),
            self.ttl_seconds,
        )

    def race_pace(self, session_key: int, driver_1: int, driver_2: int) -> list[PacePoint]:
        return self.caches.race_pace.get_or_compute(
            f"{session_key}_{driver_1}_{driver_2}",
            lambda: fetch_race_pace(self.openf1, session_key, driver_1, driver_2),
            self.ttl_seconds,
        )

    def qualifying(self, season: str, round_: str) -> QualifyingRankings:
        def compute() -> QualifyingRankings:
            return build_qualifying_rankings(fetch_qualifying_results(self.ergast, season, round_))

        return self.caches.qualifying.get_or_compute(f"{season}_{round_}", compute, self.ttl_seconds)
