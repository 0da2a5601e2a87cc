"""
HTTP client for the OpenF1 REST API with:
- Pooled connections shared across worker threads
- Client-wide rate limiting (concurrency cap + request spacing)
- Inequality filters rendered in OpenF1's ``field>value`` syntax
"""
from typing import Any, Iterable, Optional

import requests

from paddock.config import cfg
from paddock.errors import UpstreamMalformed
from paddock.utils.http import build_session, get_json
from paddock.utils.logger import logger
from paddock.utils.rate_limiter import RateLimiter

FILTER_OPERATORS = (">", "<", ">=", "<=")

Filter = tuple[str, str, Any]


def build_query(
    params: Optional[dict[str, Any]] = None,
    filters: Iterable[Filter] = (),
) -> str:
    """
    Render query parameters and inequality filters into a query string.

    >>> build_query({"session_key": 9161}, [("date", ">", "2023-09-16T13:03:35.200")])
    'session_key=9161&date>2023-09-16T13:03:35.200'
    """
    parts = [f"{key}={value}" for key, value in (params or {}).items() if value is not None]
    for field, op, value in filters:
        if op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {op!r}")
        parts.append(f"{field}{op}{value}")
    return "&".join(parts)


class OpenF1Client:
    """
    HTTP client for the OpenF1 REST API.

    One instance is created per process and shared by every request; the
    underlying ``requests.Session`` pools connections and the rate
    limiter is thread-safe.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.base_url = (base_url or cfg.api.base_url).rstrip("/")
        self.timeout = timeout or cfg.api.timeout
        self.rate_limiter = rate_limiter or RateLimiter(
            max_concurrent=cfg.api.max_concurrent,
            min_delay=cfg.api.rate_limit_delay,
        )
        self.session = session or build_session(
            max_retries=cfg.api.max_retries,
            backoff_factor=cfg.api.backoff_factor,
            pool_maxsize=max(cfg.api.max_concurrent, 10),
        )

    def url_for(
        self,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        filters: Iterable[Filter] = (),
    ) -> str:
        query = build_query(params, filters)
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        return f"{url}?{query}" if query else url

    def get(
        self,
        endpoint: str,
        params: Optional[dict[str, Any]] = None,
        filters: Iterable[Filter] = (),
    ) -> list[dict]:
        """
        Fetch data from an OpenF1 endpoint.

        Args:
            endpoint: API endpoint path (e.g. '/laps').
            params: Equality query parameters.
            filters: (field, operator, value) inequality filters.

        Returns:
            List of records (dicts) from the API response.
        """
        url = self.url_for(endpoint, params, filters)
        with self.rate_limiter.acquire():
            data = get_json(self.session, url, timeout=self.timeout)

        if not isinstance(data, list):
            logger.error(f"Expected a JSON array from {url}, got {type(data).__name__}")
            raise UpstreamMalformed(f"{endpoint} did not return a JSON array")
        return data

    def close(self) -> None:
        self.session.close()
