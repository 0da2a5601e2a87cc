"""
Headline aggregation from two news providers.

NewsAPI and World News API are queried for recent Formula 1 stories and
the top article of each is normalised into a ``NewsArticle``. A provider
that fails is skipped; the call only fails if both do.
"""
from datetime import timedelta
from typing import Any, Callable, Optional

import requests
from pydantic import BaseModel

from paddock.config import NewsConfig, cfg
from paddock.errors import UpstreamError, UpstreamUnavailable
from paddock.utils.http import build_session, get_json
from paddock.utils.logger import logger
from paddock.utils.time_utils import utc_now


class NewsArticle(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    image: Optional[str] = None
    source: str


def _top(items: Any) -> Optional[dict]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return None


class NewsClient:
    def __init__(
        self,
        config: NewsConfig | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config or cfg.news
        self.session = session or build_session()

    def _since(self) -> str:
        return (utc_now() - timedelta(days=self.config.lookback_days)).date().isoformat()

    def fetch_newsapi(self) -> Optional[NewsArticle]:
        data = get_json(
            self.session,
            self.config.newsapi_url,
            timeout=self.config.timeout,
            params={
                "q": "F1 OR Formula1",
                "language": "en",
                "from": self._since(),
            },
            headers={"User-Agent": self.config.user_agent, "X-Api-Key": self.config.newsapi_key},
        )
        article = _top(data.get("articles") if isinstance(data, dict) else None)
        if article is None:
            return None
        return NewsArticle(
            title=article.get("title"),
            description=article.get("description"),
            url=article.get("url"),
            image=article.get("urlToImage"),
            source="newsapi",
        )

    def fetch_worldnews(self) -> Optional[NewsArticle]:
        data = get_json(
            self.session,
            self.config.worldnews_url,
            timeout=self.config.timeout,
            params={
                "text": "Formula1",
                "language": "en",
                "earliest-publish-date": self._since(),
            },
            headers={"x-api-key": self.config.worldnews_key},
        )
        article = _top(data.get("news") if isinstance(data, dict) else None)
        if article is None:
            return None
        return NewsArticle(
            title=article.get("title"),
            description=article.get("text"),
            url=article.get("url"),
            image=article.get("image"),
            source="worldnews",
        )

    def headlines(self) -> list[NewsArticle]:
        """Top story from each provider, World News first."""
        providers: list[tuple[str, Callable[[], Optional[NewsArticle]]]] = [
            ("worldnews", self.fetch_worldnews),
            ("newsapi", self.fetch_newsapi),
        ]
        articles: list[NewsArticle] = []
        failures = 0
        for name, fetch in providers:
            try:
                article = fetch()
            except UpstreamError as e:
                failures += 1
                logger.warning(f"News provider {name} failed: {e}")
                continue
            if article is not None:
                articles.append(article)

        if failures == len(providers):
            raise UpstreamUnavailable("All news providers failed")
        return articles

    def close(self) -> None:
        self.session.close()
