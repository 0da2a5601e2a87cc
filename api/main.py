"""
FastAPI backend for Paddock.
Proxies OpenF1, Jolpica and news providers and serves cached telemetry
aggregates as JSON to the frontend.

Endpoints are plain ``def`` functions, so each request runs on its own
worker thread and the pipeline's pacing delays never stall other requests.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paddock.config import cfg
from paddock.errors import InvalidRequest, NoValidData, NotFound, PaddockError, UpstreamError
from paddock.ingest_ergast.client import (
    ErgastClient,
    fetch_constructor_standings,
    fetch_driver_standings,
    fetch_last_race_results,
)
from paddock.ingest_news.client import NewsArticle, NewsClient
from paddock.ingest_openf1.api_client import OpenF1Client
from paddock.ingest_openf1.fetchers import fetch_weather
from paddock.ingest_openf1.records import LapRecord, WeatherRecord
from paddock.ingest_openf1.sessions import MappedSession, fetch_latest_laps, fetch_mapped_sessions
from paddock.telemetry.models import (
    DriverLapGraph,
    FastestLapSector,
    PacePoint,
    QualifyingRankings,
    SpeedDistance,
)
from paddock.telemetry.service import TelemetryCaches, TelemetryService
from paddock.utils.logger import logger, setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logger(log_dir=cfg.server.log_dir, level=cfg.server.log_level, serialize=cfg.server.log_json)
    openf1 = OpenF1Client()
    ergast = ErgastClient()
    news = NewsClient()
    app.state.openf1 = openf1
    app.state.ergast = ergast
    app.state.news = news
    app.state.telemetry = TelemetryService(openf1, ergast, TelemetryCaches())
    logger.info(f"Paddock API ready (OpenF1 at {openf1.base_url}, cache TTL {cfg.cache.ttl_seconds}s)")

    yield

    logger.info("Shutting down Paddock API")
    openf1.close()
    ergast.close()
    news.close()


app = FastAPI(title="Paddock API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error mapping ────────────────────────────────────────────────────────────

_STATUS_BY_ERROR: list[tuple[type[PaddockError], int]] = [
    (InvalidRequest, 400),
    (NotFound, 404),
    (NoValidData, 404),
    (UpstreamError, 502),
]


@app.exception_handler(PaddockError)
async def paddock_error_handler(request: Request, exc: PaddockError) -> JSONResponse:
    status = next((code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind)), 500)
    if status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status, content={"detail": str(exc)})


# ── Dependencies ─────────────────────────────────────────────────────────────

def get_openf1(request: Request) -> OpenF1Client:
    return request.app.state.openf1


def get_ergast(request: Request) -> ErgastClient:
    return request.app.state.ergast


def get_news(request: Request) -> NewsClient:
    return request.app.state.news


def get_telemetry(request: Request) -> TelemetryService:
    return request.app.state.telemetry


# ── Sessions ─────────────────────────────────────────────────────────────────

@app.get("/api/sessions", response_model=list[MappedSession])
def list_sessions(
    country_name: str,
    year: Optional[int] = None,
    openf1: OpenF1Client = Depends(get_openf1),
):
    """OpenF1 sessions of a meeting, tagged with their internal session type."""
    if year is None:
        try:
            year = int(cfg.ergast.default_season)
        except ValueError:
            raise InvalidRequest(
                f"year is required (configured default season {cfg.ergast.default_season!r} is not a number)"
            ) from None
    sessions = fetch_mapped_sessions(openf1, country_name, year)
    if not sessions:
        raise NotFound(f"No matching session found for {country_name} {year}")
    return sessions


@app.get("/api/session/{session_key}/latest-laps", response_model=list[LapRecord])
def session_latest_laps(session_key: int, openf1: OpenF1Client = Depends(get_openf1)):
    """Most recent lap of every driver."""
    return fetch_latest_laps(openf1, session_key)


# ── Telemetry ────────────────────────────────────────────────────────────────

@app.get("/api/session/telemetry", response_model=list[SpeedDistance])
def driver_telemetry(
    session_key: int,
    driver_number: int,
    telemetry: TelemetryService = Depends(get_telemetry),
):
    """Speed vs distance over the driver's reference lap."""
    return telemetry.speed_trace(session_key, driver_number)


@app.get("/api/session/{session_key}/positions", response_model=list[DriverLapGraph])
def session_positions(session_key: int, telemetry: TelemetryService = Depends(get_telemetry)):
    """Position of every driver at the start of each lap."""
    return telemetry.position_graphs(session_key)


@app.get("/api/session/{session_key}/sector-timings", response_model=list[FastestLapSector])
def session_sector_timings(session_key: int, telemetry: TelemetryService = Depends(get_telemetry)):
    """Fastest-lap sector split of the podium finishers."""
    return telemetry.sector_timings(session_key)


@app.get("/api/session/{session_key}/race-pace", response_model=list[PacePoint])
def session_race_pace(
    session_key: int,
    driver_1: int,
    driver_2: int,
    telemetry: TelemetryService = Depends(get_telemetry),
):
    """Minisector-by-minisector pace comparison of two drivers."""
    return telemetry.race_pace(session_key, driver_1, driver_2)


@app.get("/api/qualifying/{season}/{round_}", response_model=QualifyingRankings)
def qualifying_rankings(season: str, round_: str, telemetry: TelemetryService = Depends(get_telemetry)):
    """Q1/Q2/Q3 rankings for one round."""
    return telemetry.qualifying(season, round_)


# ── Results & standings ──────────────────────────────────────────────────────

@app.get("/api/standings/drivers")
def driver_standings(season: Optional[str] = None, ergast: ErgastClient = Depends(get_ergast)):
    return fetch_driver_standings(ergast, season)


@app.get("/api/standings/constructors")
def constructor_standings(season: Optional[str] = None, ergast: ErgastClient = Depends(get_ergast)):
    return fetch_constructor_standings(ergast, season)


@app.get("/api/races/last")
def last_race(season: Optional[str] = None, ergast: ErgastClient = Depends(get_ergast)):
    """Most recent race of the season with its classification."""
    return fetch_last_race_results(ergast, season)


# ── Weather & news ───────────────────────────────────────────────────────────

@app.get("/api/weather", response_model=list[WeatherRecord])
def weather(
    session_key: str = "latest",
    meeting_key: str = "latest",
    openf1: OpenF1Client = Depends(get_openf1),
):
    return fetch_weather(openf1, session_key=session_key, meeting_key=meeting_key)


@app.get("/api/news", response_model=list[NewsArticle])
def news(client: NewsClient = Depends(get_news)):
    """Top headline from each news provider."""
    return client.headlines()


@app.get("/api/health")
def health():
    return {"status": "ok"}
