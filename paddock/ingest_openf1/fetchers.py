"""
Endpoint-specific fetchers for the OpenF1 API.

Each fetcher issues one GET and returns typed records. Shape mismatches
are reported as ``UpstreamMalformed``; transport errors bubble up from the
client as ``UpstreamUnavailable``. Nothing here retries.
"""
from datetime import datetime
from typing import Any, Type, TypeVar

from pydantic import ValidationError

from paddock.errors import UpstreamMalformed
from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.ingest_openf1.records import (
    CarDataPoint,
    LapRecord,
    LocationPoint,
    OpenF1Record,
    PositionRecord,
    SessionInfo,
    SessionResult,
    WeatherRecord,
)
from paddock.utils.logger import logger
from paddock.utils.time_utils import format_openf1_timestamp

R = TypeVar("R", bound=OpenF1Record)


def parse_records(model: Type[R], rows: list[Any], endpoint: str) -> list[R]:
    """Validate every row of an OpenF1 response against ``model``."""
    try:
        return [model.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.error(f"Unexpected {endpoint} payload: {e.error_count()} validation error(s)")
        raise UpstreamMalformed(f"{endpoint} response did not match {model.__name__}") from e


def _window_filters(start: datetime, end: datetime) -> list[tuple[str, str, str]]:
    return [
        ("date", ">", format_openf1_timestamp(start)),
        ("date", "<", format_openf1_timestamp(end)),
    ]


def fetch_laps(
    client: OpenF1Client,
    session_key: int,
    driver_number: int | None = None,
) -> list[LapRecord]:
    """
    Fetch lap records for a session, optionally for one driver.

    Args:
        client: OpenF1Client instance.
        session_key: Unique session identifier.
        driver_number: Restrict to one car.

    Returns:
        List of LapRecord.
    """
    logger.debug(f"Fetching laps for session {session_key} driver={driver_number}...")
    rows = client.get("/laps", params={"session_key": session_key, "driver_number": driver_number})
    return parse_records(LapRecord, rows, "laps")


def fetch_positions(client: OpenF1Client, session_key: int) -> list[PositionRecord]:
    """Fetch every position change in a session (driver × timestamp)."""
    logger.debug(f"Fetching position for session {session_key}...")
    rows = client.get("/position", params={"session_key": session_key})
    return parse_records(PositionRecord, rows, "position")


def fetch_locations(
    client: OpenF1Client,
    session_key: int,
    driver_number: int,
    start: datetime,
    end: datetime,
) -> list[LocationPoint]:
    """
    Fetch 3D car positions for one driver inside a time window.

    The window bounds are exclusive on both ends.
    """
    logger.debug(f"Fetching location for #{driver_number} in session {session_key} ({start} → {end})...")
    rows = client.get(
        "/location",
        params={"session_key": session_key, "driver_number": driver_number},
        filters=_window_filters(start, end),
    )
    return parse_records(LocationPoint, rows, "location")


def fetch_car_data(
    client: OpenF1Client,
    session_key: int,
    driver_number: int,
    start: datetime,
    end: datetime,
) -> list[CarDataPoint]:
    """Fetch car telemetry samples (speed, throttle, gear...) inside a time window."""
    logger.debug(f"Fetching car_data for #{driver_number} in session {session_key} ({start} → {end})...")
    rows = client.get(
        "/car_data",
        params={"session_key": session_key, "driver_number": driver_number},
        filters=_window_filters(start, end),
    )
    return parse_records(CarDataPoint, rows, "car_data")


def fetch_session_results(
    client: OpenF1Client,
    session_key: int,
    max_position: int | None = None,
) -> list[SessionResult]:
    """
    Fetch the classification of a session.

    Args:
        max_position: Only return finishers at or above this position.
    """
    filters = [("position", "<=", max_position)] if max_position is not None else []
    logger.debug(f"Fetching session_result for session {session_key} (max_position={max_position})...")
    rows = client.get("/session_result", params={"session_key": session_key}, filters=filters)
    return parse_records(SessionResult, rows, "session_result")


def fetch_sessions(
    client: OpenF1Client,
    country_name: str | None = None,
    year: int | None = None,
) -> list[SessionInfo]:
    """Fetch session metadata, optionally filtered by country and season."""
    logger.debug(f"Fetching sessions for {country_name} {year}...")
    rows = client.get("/sessions", params={"country_name": country_name, "year": year})
    return parse_records(SessionInfo, rows, "sessions")


def fetch_weather(
    client: OpenF1Client,
    session_key: int | str = "latest",
    meeting_key: int | str = "latest",
) -> list[WeatherRecord]:
    """Fetch minute-level weather readings; OpenF1 accepts 'latest' for either key."""
    logger.debug(f"Fetching weather for meeting {meeting_key} session {session_key}...")
    rows = client.get("/weather", params={"meeting_key": meeting_key, "session_key": session_key})
    return parse_records(WeatherRecord, rows, "weather")
