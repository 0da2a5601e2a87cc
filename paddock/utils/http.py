"""
Shared HTTP plumbing for the upstream API clients.

Every upstream call goes through ``get_json`` so that transport failures
and bad bodies surface as the same two exception types regardless of
which provider was called.
"""
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from paddock.errors import UpstreamMalformed, UpstreamUnavailable
from paddock.utils.logger import logger


def build_session(
    max_retries: int = 0,
    backoff_factor: float = 0.0,
    pool_maxsize: int = 10,
) -> requests.Session:
    """Create a pooled ``requests.Session`` that accepts JSON."""
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy, pool_maxsize=pool_maxsize)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


def get_json(
    session: requests.Session,
    url: str,
    timeout: float,
    params: Optional[dict[str, Any]] = None,
    headers: Optional[dict[str, str]] = None,
) -> Any:
    """
    GET ``url`` and decode the JSON body.

    Raises:
        UpstreamUnavailable: network error, timeout or non-2xx status.
        UpstreamMalformed: body is not valid JSON.
    """
    # Query params and exception text can carry credentials; log neither
    logger.debug(f"Fetching: {url}")
    try:
        response = session.get(url, params=params, headers=headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "?"
        logger.error(f"HTTP error for {url}: status {status}")
        raise UpstreamUnavailable(f"{url} answered {status}") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request failed for {url}: {type(e).__name__}")
        raise UpstreamUnavailable(f"Request to {url} failed: {type(e).__name__}") from e

    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Invalid JSON from {url}")
        raise UpstreamMalformed(f"{url} returned a non-JSON body") from e
