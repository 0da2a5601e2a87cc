"""
Derived results produced by the telemetry pipeline.

These are what the caches hold and what the API serialises.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class DerivedModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class SpeedDistance(DerivedModel):
    speed: float
    distance: float


class TraceSample(DerivedModel):
    """One car-data sample joined to its nearest location sample."""

    date: datetime
    speed: float
    distance: float
    x: float
    y: float

    def to_speed_distance(self) -> SpeedDistance:
        return SpeedDistance(speed=self.speed, distance=self.distance)


class LapPosition(DerivedModel):
    lap: int
    position: int


class DriverLapGraph(DerivedModel):
    driver_number: int
    data: list[LapPosition]


class FastestLapSector(DerivedModel):
    position: int
    driver_number: int
    fastest_lap: float
    sector_1: float
    sector_2: float
    sector_3: float


class PacePoint(DerivedModel):
    x: float
    y: float
    minisector: int
    fastest_driver: Literal[1, 2]


class QualifyingRanking(DerivedModel):
    position: int
    driver_number: Optional[str] = None
    driver_code: Optional[str] = None
    driver_name: Optional[str] = None
    constructor: Optional[str] = None
    time: str
    time_seconds: Optional[float] = None


class QualifyingRankings(DerivedModel):
    q1: list[QualifyingRanking]
    q2: list[QualifyingRanking]
    q3: list[QualifyingRanking]
