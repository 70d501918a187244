from __future__ import annotations

import logging
from typing import Optional, Protocol

from bs4 import BeautifulSoup

from article_enhancer.http import IntervalLimiter


logger = logging.getLogger(__name__)


DEFAULT_SEARCH_URL = "https://www.google.com/search"
DEFAULT_QUERY_SUFFIX = "blog article"


# Substring matches (case-insensitive) that rule a URL out as a reference article.
_EXCLUDED_PATTERNS = (
    "google.com",
    "youtube.com",
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "linkedin.com",
    "reddit.com",
    "pinterest.com",
    "amazon.com",
    "ebay.com",
    "wikipedia.org",
    "/search?",
    "/url?",
    "accounts.google",
    "support.google",
    "policies.google",
    "maps.google",
    "news.google",
    "shopping.google",
)


# Organic result blocks first, then any absolute anchor on the page.
_RESULT_SELECTORS = (
    'div.g a[href^="http"]',
    'div.yuRUbf a[href^="http"]',
    'a[href^="http"]',
)


class TextFetcher(Protocol):
    async def get_text(self, url: str, params: Optional[dict] = None) -> Optional[str]: ...


def is_valid_url(url: str | None, excluded: tuple[str, ...] = _EXCLUDED_PATTERNS) -> bool:
    if not url:
        return False
    if not (url.startswith("http://") or url.startswith("https://")):
        return False
    url_l = url.lower()
    return not any(p in url_l for p in excluded)


def links_from_results_html(
    html: str,
    max_results: int,
    *,
    excluded: tuple[str, ...] = _EXCLUDED_PATTERNS,
) -> list[str]:
    """Scrape candidate article URLs from a search results page.

    Selectors are scanned in priority order; first-seen order is preserved and
    scanning stops once ``max_results`` URLs were accepted.
    """

    if max_results <= 0:
        return []

    soup = BeautifulSoup(html or "", "lxml")
    results: list[str] = []

    for sel in _RESULT_SELECTORS:
        for a in soup.select(sel):
            url = str(a.get("href") or "")
            if not is_valid_url(url, excluded):
                continue
            if url in results:
                continue
            results.append(url)
            if len(results) >= max_results:
                return results

    return results


class SearchProvider:
    def __init__(
        self,
        client: TextFetcher,
        *,
        base_url: str = DEFAULT_SEARCH_URL,
        query_suffix: str = DEFAULT_QUERY_SUFFIX,
        raw_results: int = 10,
        limiter: IntervalLimiter | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._suffix = query_suffix.strip()
        self._raw_results = raw_results
        self._limiter = limiter or IntervalLimiter(0)

    async def search(self, query: str, max_results: int = 2) -> list[str]:
        """Return up to ``max_results`` candidate URLs; an empty list on any failure."""

        logger.info('Searching for: "%s"', query)
        await self._limiter.acquire()

        # request more than needed, most anchors are filtered out
        params = {"q": query, "num": str(max(self._raw_results, max_results))}
        html = await self._client.get_text(self._base_url, params=params)
        if not html:
            logger.warning('Search for "%s" returned no page', query)
            return []

        try:
            results = links_from_results_html(html, max_results)
        except Exception as e:
            logger.warning('Could not parse search results for "%s": %s', query, e)
            return []

        logger.info("Found %d results", len(results))
        return results

    async def search_articles(self, query: str, max_results: int = 2) -> list[str]:
        """Search biased toward blog/article pages by appending the query suffix."""

        q = f"{query} {self._suffix}" if self._suffix else query
        return await self.search(q, max_results)
