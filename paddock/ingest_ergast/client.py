"""
Client for the Jolpica (Ergast-compatible) race results API.

Responses are nested under ``MRData``; the helpers below unwrap the one
list each endpoint is queried for.
"""
from typing import Any

import requests

from paddock.config import cfg
from paddock.errors import NotFound, UpstreamMalformed
from paddock.utils.http import build_session, get_json
from paddock.utils.logger import logger


class ErgastClient:
    """HTTP client for the Jolpica/Ergast F1 API."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = (base_url or cfg.ergast.base_url).rstrip("/")
        self.timeout = timeout or cfg.ergast.timeout
        self.session = session or build_session()

    def get(self, path: str) -> dict[str, Any]:
        url = f"{self.base_url}/{path.strip('/')}/?format=json"
        data = get_json(self.session, url, timeout=self.timeout)
        if not isinstance(data, dict) or "MRData" not in data:
            raise UpstreamMalformed(f"{path} response has no MRData envelope")
        return data["MRData"]

    def close(self) -> None:
        self.session.close()


def _dig(payload: dict[str, Any], path: str, *keys: Any) -> Any:
    node: Any = payload
    try:
        for key in keys:
            node = node[key]
    except (KeyError, IndexError, TypeError) as e:
        raise UpstreamMalformed(f"{path} response missing {'/'.join(map(str, keys))}") from e
    return node


def _first_list(payload: dict[str, Any], path: str, table: str, lists: str) -> dict[str, Any]:
    entries = _dig(payload, path, table, lists)
    if not isinstance(entries, list):
        raise UpstreamMalformed(f"{path} {lists} is not a list")
    if not entries:
        raise NotFound(f"No {lists} for {path}")
    return entries[0]


def fetch_driver_standings(client: ErgastClient, season: str | None = None) -> list[dict]:
    """Driver championship table for a season (defaults to the configured season)."""
    season = season or cfg.ergast.default_season
    path = f"{season}/driverstandings"
    logger.debug(f"Fetching driver standings for {season}...")
    standings = _first_list(client.get(path), path, "StandingsTable", "StandingsLists")
    return _dig(standings, path, "DriverStandings")


def fetch_constructor_standings(client: ErgastClient, season: str | None = None) -> list[dict]:
    """Constructor championship table for a season."""
    season = season or cfg.ergast.default_season
    path = f"{season}/constructorstandings"
    logger.debug(f"Fetching constructor standings for {season}...")
    standings = _first_list(client.get(path), path, "StandingsTable", "StandingsLists")
    return _dig(standings, path, "ConstructorStandings")


def fetch_last_race_results(client: ErgastClient, season: str | None = None) -> dict:
    """Most recent race of a season with its full classification."""
    season = season or cfg.ergast.default_season
    path = f"{season}/last/results"
    logger.debug(f"Fetching last race results for {season}...")
    return _first_list(client.get(path), path, "RaceTable", "Races")


def fetch_qualifying_results(client: ErgastClient, season: str, round_: str) -> list[dict]:
    """Raw ``QualifyingResults`` rows for one round."""
    path = f"{season}/{round_}/qualifying"
    logger.debug(f"Fetching qualifying for {season} round {round_}...")
    race = _first_list(client.get(path), path, "RaceTable", "Races")
    results = _dig(race, path, "QualifyingResults")
    if not isinstance(results, list):
        raise UpstreamMalformed(f"{path} QualifyingResults is not a list")
    return results
