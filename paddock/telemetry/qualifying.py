"""
Qualifying rankings per segment (Q1, Q2, Q3).

Every driver appears in every segment. Drivers without a valid time in a
segment are kept and ranked after all timed drivers, in the order the
results API listed them.
"""
import re
from typing import Any, Optional, Sequence

from paddock.errors import NoValidData
from paddock.telemetry.models import QualifyingRanking, QualifyingRankings
from paddock.utils.logger import logger

SEGMENTS = ("Q1", "Q2", "Q3")

_LAP_TIME_RE = re.compile(r"^(\d+):(\d+(?:\.\d+)?)$")


def parse_lap_time(value: Any) -> Optional[float]:
    """
    Parse a ``minutes:seconds`` lap time into seconds.

    >>> parse_lap_time("1:30.500")
    90.5
    >>> parse_lap_time("") is None
    True
    """
    if not isinstance(value, str) or not value:
        return None
    match = _LAP_TIME_RE.match(value.strip())
    if match is None:
        return None
    minutes, seconds = match.groups()
    return int(minutes) * 60 + float(seconds)


def _driver_fields(result: dict[str, Any]) -> dict[str, Optional[str]]:
    driver = result["Driver"]
    constructor = result.get("Constructor") or {}
    given = driver.get("givenName", "")
    family = driver.get("familyName", "")
    name = f"{given} {family}".strip() or None
    return {
        "driver_number": driver.get("permanentNumber") or result.get("number"),
        "driver_code": driver.get("code"),
        "driver_name": name,
        "constructor": constructor.get("name"),
    }


def _raw_time(value: Any) -> str:
    return value if isinstance(value, str) else ""


def rank_segment(entries: Sequence[dict[str, Any]]) -> list[QualifyingRanking]:
    """
    Rank one segment's entries by parsed time.

    Each entry holds the driver fields and the raw ``time`` string.
    Timed entries come first in ascending order; untimed ones follow in
    input order (the sort is stable).
    """
    parsed = [(entry, parse_lap_time(entry.get("time"))) for entry in entries]
    parsed.sort(key=lambda item: (item[1] is None, item[1] if item[1] is not None else 0.0))
    return [
        QualifyingRanking(
            position=index + 1,
            driver_number=entry.get("driver_number"),
            driver_code=entry.get("driver_code"),
            driver_name=entry.get("driver_name"),
            constructor=entry.get("constructor"),
            time=_raw_time(entry.get("time")),
            time_seconds=seconds,
        )
        for index, (entry, seconds) in enumerate(parsed)
    ]


def build_qualifying_rankings(results: Sequence[dict[str, Any]]) -> QualifyingRankings:
    """
    Build Q1/Q2/Q3 rankings from results-API ``QualifyingResults`` rows.

    Rows missing driver information are skipped with a warning.

    Raises:
        NoValidData: no usable row was found.
    """
    drivers: list[tuple[dict[str, Optional[str]], dict[str, Any]]] = []
    for row in results:
        try:
            drivers.append((_driver_fields(row), row))
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping malformed qualifying row: {e!r}")

    if not drivers:
        raise NoValidData("No qualifying results found")

    segments = {
        segment: rank_segment([{**fields, "time": row.get(segment) or ""} for fields, row in drivers])
        for segment in SEGMENTS
    }
    return QualifyingRankings(q1=segments["Q1"], q2=segments["Q2"], q3=segments["Q3"])
