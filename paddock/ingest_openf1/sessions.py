"""
Session-level lookups on top of the OpenF1 fetchers.
"""
from typing import Optional, Sequence

from pydantic import BaseModel

from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.ingest_openf1.fetchers import fetch_laps, fetch_sessions
from paddock.ingest_openf1.records import LapRecord, SessionInfo
from paddock.utils.logger import logger

SESSION_NAME_MAP: dict[str, str] = {
    "Practice 1": "FirstPractice",
    "Practice 2": "SecondPractice",
    "Practice 3": "ThirdPractice",
    "Qualifying": "Qualifying",
    "Race": "Race",
}


def map_session_name(external: str) -> Optional[str]:
    """OpenF1 session name -> internal session type, or None when unmapped."""
    return SESSION_NAME_MAP.get(external)


class MappedSession(BaseModel):
    session_type: str
    session_key: int
    meeting_key: Optional[int] = None
    session_name: str


def latest_lap_per_driver(laps: Sequence[LapRecord]) -> list[LapRecord]:
    """Each driver's lap with the latest start time. Laps without one are ignored."""
    latest: dict[int, LapRecord] = {}
    for lap in laps:
        if lap.date_start is None:
            continue
        current = latest.get(lap.driver_number)
        if current is None or lap.date_start > current.date_start:
            latest[lap.driver_number] = lap
    return [latest[number] for number in sorted(latest)]


def fetch_latest_laps(client: OpenF1Client, session_key: int) -> list[LapRecord]:
    laps = fetch_laps(client, session_key)
    latest = latest_lap_per_driver(laps)
    logger.debug(f"Latest laps for session {session_key}: {len(latest)} drivers")
    return latest


def map_sessions(sessions: Sequence[SessionInfo]) -> list[MappedSession]:
    """Keep the sessions with a known internal type (sprints etc. are dropped)."""
    mapped = []
    for session in sessions:
        session_type = map_session_name(session.session_name)
        if session_type is None:
            logger.debug(f"Ignoring unmapped session '{session.session_name}' ({session.session_key})")
            continue
        mapped.append(MappedSession(
            session_type=session_type,
            session_key=session.session_key,
            meeting_key=session.meeting_key,
            session_name=session.session_name,
        ))
    return mapped


def fetch_mapped_sessions(
    client: OpenF1Client,
    country_name: str,
    year: int,
) -> list[MappedSession]:
    return map_sessions(fetch_sessions(client, country_name=country_name, year=year))
