"""
Typed records for OpenF1 responses.

OpenF1 returns flat JSON objects; each model below validates one of them.
Unknown fields are ignored so new upstream columns never break parsing.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class OpenF1Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class LapRecord(OpenF1Record):
    lap_number: int
    driver_number: int
    date_start: Optional[datetime] = None
    lap_duration: Optional[float] = None
    duration_sector_1: Optional[float] = None
    duration_sector_2: Optional[float] = None
    duration_sector_3: Optional[float] = None
    session_key: Optional[int] = None


class PositionRecord(OpenF1Record):
    position: int
    driver_number: int
    date: datetime


class LocationPoint(OpenF1Record):
    date: datetime
    x: float
    y: float
    z: float


class CarDataPoint(OpenF1Record):
    date: datetime
    driver_number: int
    speed: float
    throttle: Optional[float] = None
    brake: Optional[float] = None
    n_gear: Optional[int] = None
    rpm: Optional[int] = None
    drs: Optional[int] = None


class SessionResult(OpenF1Record):
    driver_number: int
    position: Optional[int] = None
    session_key: Optional[int] = None


class SessionInfo(OpenF1Record):
    session_key: int
    meeting_key: Optional[int] = None
    session_name: str
    session_type: Optional[str] = None
    date_start: Optional[datetime] = None
    country_name: Optional[str] = None
    year: Optional[int] = None


class WeatherRecord(OpenF1Record):
    date: datetime
    session_key: Optional[int] = None
    meeting_key: Optional[int] = None
    air_temperature: Optional[float] = None
    track_temperature: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    rainfall: Optional[float] = None
    wind_direction: Optional[float] = None
    wind_speed: Optional[float] = None
