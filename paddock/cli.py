"""
Click-based CLI for the Paddock backend.

Usage:
    python -m paddock.cli serve --port 8000
    python -m paddock.cli trace --session 9161 --driver 1
    python -m paddock.cli positions --session 9161
    python -m paddock.cli sectors --session 9161
    python -m paddock.cli pace --session 9161 --driver-1 1 --driver-2 16
    python -m paddock.cli quali --season 2024 --round 5
"""
import json
from typing import Any

import click
from pydantic import BaseModel

from paddock.config import cfg
from paddock.errors import PaddockError
from paddock.utils.logger import setup_logger, logger


def _build_service():
    from paddock.ingest_ergast.client import ErgastClient
    from paddock.ingest_openf1.api_client import OpenF1Client
    from paddock.telemetry.service import TelemetryService

    return TelemetryService(OpenF1Client(), ErgastClient())


def _echo_json(result: Any) -> None:
    if isinstance(result, list):
        payload = [r.model_dump(mode="json") if isinstance(r, BaseModel) else r for r in result]
    elif isinstance(result, BaseModel):
        payload = result.model_dump(mode="json")
    else:
        payload = result
    click.echo(json.dumps(payload, indent=2))


def _run(compute) -> None:
    try:
        _echo_json(compute())
    except PaddockError as e:
        logger.error(f"{type(e).__name__}: {e}")
        raise click.ClickException(str(e)) from e


@click.group()
@click.option("--log-level", default=None, help="Override the configured log level.")
def cli(log_level: str | None) -> None:
    """🏎️  Paddock F1 data backend"""
    setup_logger(
        log_dir=cfg.server.log_dir,
        level=log_level or cfg.server.log_level,
        serialize=cfg.server.log_json,
    )


@cli.command()
@click.option("--host", default=None, help="Bind address.")
@click.option("--port", default=None, type=int, help="Bind port.")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the REST API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        reload=reload,
    )


@cli.command()
@click.option("--session", "session_key", required=True, type=int, help="OpenF1 session key.")
@click.option("--driver", "driver_number", required=True, type=int, help="Car number.")
def trace(session_key: int, driver_number: int) -> None:
    """Speed/distance trace of a driver's reference lap."""
    service = _build_service()
    _run(lambda: service.speed_trace(session_key, driver_number))


@cli.command()
@click.option("--session", "session_key", required=True, type=int, help="OpenF1 session key.")
def positions(session_key: int) -> None:
    """Lap-by-lap position graph of every driver."""
    service = _build_service()
    _run(lambda: service.position_graphs(session_key))


@cli.command()
@click.option("--session", "session_key", required=True, type=int, help="OpenF1 session key.")
def sectors(session_key: int) -> None:
    """Fastest-lap sectors of the podium finishers."""
    service = _build_service()
    _run(lambda: service.sector_timings(session_key))


@cli.command()
@click.option("--session", "session_key", required=True, type=int, help="OpenF1 session key.")
@click.option("--driver-1", required=True, type=int, help="Reference driver.")
@click.option("--driver-2", required=True, type=int, help="Driver compared against.")
def pace(session_key: int, driver_1: int, driver_2: int) -> None:
    """Minisector pace comparison of two drivers."""
    service = _build_service()
    _run(lambda: service.race_pace(session_key, driver_1, driver_2))


@cli.command()
@click.option("--season", required=True, help="Season, e.g. 2024.")
@click.option("--round", "round_", required=True, help="Round number within the season.")
def quali(season: str, round_: str) -> None:
    """Q1/Q2/Q3 rankings for a round."""
    service = _build_service()
    _run(lambda: service.qualifying(season, round_))


if __name__ == "__main__":
    cli()
