"""
Pytest fixtures for Paddock tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

import pytest

from paddock.errors import UpstreamUnavailable

BASE = datetime(2024, 3, 2, 15, 0, 0, tzinfo=timezone.utc)


def iso(dt: datetime) -> str:
    return dt.isoformat()


class FakeOpenF1Client:
    """
    Stand-in for OpenF1Client that serves canned rows per endpoint.

    ``routes`` maps an endpoint ('/laps') to either a list of rows or a
    callable ``(params, filters) -> rows``. Every call is recorded.
    """

    def __init__(self, routes: Optional[dict[str, Any]] = None) -> None:
        self.routes = routes or {}
        self.calls: list[tuple[str, dict, list]] = []

    def get(self, endpoint: str, params: Optional[dict] = None, filters: Iterable = ()) -> list[dict]:
        params = {k: v for k, v in (params or {}).items() if v is not None}
        filters = list(filters)
        self.calls.append((endpoint, params, filters))
        route = self.routes.get(endpoint, [])
        if callable(route):
            return route(params, filters)
        return route

    def calls_to(self, endpoint: str) -> list[tuple[str, dict, list]]:
        return [c for c in self.calls if c[0] == endpoint]


class FakeClock:
    """Settable 'now' for cache expiry tests."""

    def __init__(self) -> None:
        self.now = BASE

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def failing_for(driver_number: int, rows_by_driver: dict[int, list[dict]]) -> Callable:
    """Route handler that raises UpstreamUnavailable for one driver."""

    def handler(params: dict, filters: list) -> list[dict]:
        number = params.get("driver_number")
        if number == driver_number:
            raise UpstreamUnavailable(f"laps for #{number} timed out")
        return rows_by_driver.get(number, [])

    return handler


@pytest.fixture
def base_time() -> datetime:
    return BASE


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_client() -> FakeOpenF1Client:
    return FakeOpenF1Client()


@pytest.fixture
def session_laps() -> list[dict]:
    """Three laps for two drivers, 90s apart."""
    rows = []
    for driver in (1, 16):
        for lap in range(1, 4):
            rows.append({
                "lap_number": lap,
                "driver_number": driver,
                "date_start": iso(BASE + timedelta(seconds=90 * (lap - 1))),
                "lap_duration": 90.0,
            })
    return rows


@pytest.fixture
def session_positions() -> list[dict]:
    """Driver 1 starts P2 and takes the lead on lap 2; driver 16 the reverse."""
    return [
        {"position": 2, "driver_number": 1, "date": iso(BASE - timedelta(minutes=5))},
        {"position": 1, "driver_number": 16, "date": iso(BASE - timedelta(minutes=5))},
        {"position": 1, "driver_number": 1, "date": iso(BASE + timedelta(seconds=100))},
        {"position": 2, "driver_number": 16, "date": iso(BASE + timedelta(seconds=100))},
    ]


@pytest.fixture
def qualifying_rows() -> list[dict]:
    """Results-API QualifyingResults rows for three drivers."""

    def row(number: str, code: str, given: str, family: str, team: str, q1: str, q2: str = "", q3: str = "") -> dict:
        data = {
            "number": number,
            "position": "0",
            "Driver": {"permanentNumber": number, "code": code, "givenName": given, "familyName": family},
            "Constructor": {"name": team},
            "Q1": q1,
        }
        if q2:
            data["Q2"] = q2
        if q3:
            data["Q3"] = q3
        return data

    return [
        row("1", "VER", "Max", "Verstappen", "Red Bull", "1:30.500", "1:29.800", "1:29.100"),
        row("44", "HAM", "Lewis", "Hamilton", "Mercedes", "", ""),
        row("16", "LEC", "Charles", "Leclerc", "Ferrari", "1:29.999", "1:29.700"),
    ]
