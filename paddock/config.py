"""
Project-wide configuration using Pydantic Settings.
Upstream endpoints, cache lifetimes and telemetry constants live here.
"""
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings


ROOT_DIR = Path(__file__).resolve().parent.parent


class APIConfig(BaseSettings):
    base_url: str = "https://api.openf1.org/v1"
    timeout: int = 30
    max_retries: int = 0  # callers decide whether to retry
    backoff_factor: float = 1.5
    rate_limit_delay: float = 0.0  # seconds between request starts
    max_concurrent: int = 4

    model_config = {"env_prefix": "OPENF1_"}


class ErgastConfig(BaseSettings):
    base_url: str = "https://api.jolpi.ca/ergast/f1"
    timeout: int = 30
    default_season: str = "2025"

    model_config = {"env_prefix": "ERGAST_"}


class NewsConfig(BaseSettings):
    newsapi_url: str = "https://newsapi.org/v2/everything"
    newsapi_key: str = ""
    worldnews_url: str = "https://api.worldnewsapi.com/search-news"
    worldnews_key: str = ""
    lookback_days: int = 14
    user_agent: str = "PaddockBackend/1.0"
    timeout: int = 15

    model_config = {"env_prefix": "NEWS_"}


class CacheConfig(BaseSettings):
    ttl_seconds: int = 3600

    model_config = {"env_prefix": "PADDOCK_CACHE_"}


class TelemetryConfig(BaseSettings):
    # Laps at or above this are safety-car / formation laps
    max_valid_lap_seconds: float = 120.0
    # Provider distance units per metre-equivalent
    distance_scale: float = 10.0
    minisectors: int = 26
    podium_size: int = 3
    podium_request_delay: float = Field(default=0.3, ge=0.0)

    model_config = {"env_prefix": "PADDOCK_TELEMETRY_"}


class ServerConfig(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    log_level: str = "INFO"
    log_json: bool = False
    log_dir: Path | None = None

    model_config = {"env_prefix": "PADDOCK_"}


class Config:
    """Unified project configuration."""

    api: APIConfig = APIConfig()
    ergast: ErgastConfig = ErgastConfig()
    news: NewsConfig = NewsConfig()
    cache: CacheConfig = CacheConfig()
    telemetry: TelemetryConfig = TelemetryConfig()
    server: ServerConfig = ServerConfig()


# Singleton instance
cfg = Config()
