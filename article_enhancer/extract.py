from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from bs4 import BeautifulSoup
from dateutil import parser as dateparser

from article_enhancer.http import IntervalLimiter
from article_enhancer.search import TextFetcher
from article_enhancer.types import ExtractedContent


logger = logging.getLogger(__name__)


UNTITLED = "Untitled"
MIN_CONTENT_CHARS = 200

Matcher = Callable[[BeautifulSoup], Optional[str]]


_NOISE_SELECTORS = "script, style, noscript, nav, header, footer, aside, .advertisement, .ads, .sidebar, .comments"

_CONTENT_SELECTORS = (
    "article",
    "main",
    '[role="main"]',
    ".post-content",
    ".article-content",
    ".entry-content",
    ".content",
    "#content",
    ".post-body",
    ".article-body",
)


def clean_text(text: str) -> str:
    text = re.sub(r"\s+", " ", text or "")
    text = re.sub(r"\n+", "\n", text)
    return text.strip()


def _meta(selector: str) -> Matcher:
    def match(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        if tag is None:
            return None
        return str(tag.get("content") or "")

    return match


def _element_text(selector: str) -> Matcher:
    def match(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        if tag is None:
            return None
        return tag.get_text(" ")

    return match


def _time_datetime(selector: str) -> Matcher:
    def match(soup: BeautifulSoup) -> Optional[str]:
        tag = soup.select_one(selector)
        if tag is None:
            return None
        return str(tag.get("datetime") or "") or tag.get_text(" ")

    return match


_TITLE_MATCHERS: tuple[Matcher, ...] = (
    _meta('meta[property="og:title"]'),
    _meta('meta[name="twitter:title"]'),
    _element_text("h1"),
    _element_text("title"),
)

_AUTHOR_MATCHERS: tuple[Matcher, ...] = (
    _meta('meta[name="author"]'),
    _meta('meta[property="article:author"]'),
    _element_text(".author"),
    _element_text(".by-author"),
    _element_text('[rel="author"]'),
    _element_text(".post-author"),
)

_DATE_MATCHERS: tuple[Matcher, ...] = (
    _meta('meta[property="article:published_time"]'),
    _meta('meta[name="publish_date"]'),
    _time_datetime("time[datetime]"),
    _element_text(".published-date"),
    _element_text(".post-date"),
)


def first_match(soup: BeautifulSoup, matchers: Sequence[Matcher]) -> Optional[str]:
    """Evaluate matchers in order and return the first non-empty trimmed value."""

    for m in matchers:
        value = m(soup)
        if value and value.strip():
            return " ".join(value.split())
    return None


def extract_title(soup: BeautifulSoup) -> str:
    return first_match(soup, _TITLE_MATCHERS) or UNTITLED


def extract_author(soup: BeautifulSoup) -> Optional[str]:
    return first_match(soup, _AUTHOR_MATCHERS)


def extract_published_date(soup: BeautifulSoup) -> Optional[str]:
    return first_match(soup, _DATE_MATCHERS)


def parse_published_at(value: str | None) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = dateparser.parse(value)
    except (ValueError, OverflowError):
        return None
    if dt is None:
        return None
    # Ensure tz-aware for consistent comparisons
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def extract_main_content(soup: BeautifulSoup, min_chars: int = MIN_CONTENT_CHARS) -> str:
    """Isolate the main body text. Mutates ``soup`` (noise elements are removed)."""

    for tag in soup.select(_NOISE_SELECTORS):
        tag.decompose()

    for sel in _CONTENT_SELECTORS:
        el = soup.select_one(sel)
        if el is None:
            continue
        text = el.get_text(" ").strip()
        if len(text) > min_chars:
            return clean_text(text)

    root = soup.body or soup
    return clean_text(root.get_text(" "))


def parse_page(url: str, html: str, min_chars: int = MIN_CONTENT_CHARS) -> Optional[ExtractedContent]:
    soup = BeautifulSoup(html, "lxml")

    # metadata first: body extraction strips headers/asides that often hold bylines
    title = extract_title(soup)
    author = extract_author(soup)
    published_date = extract_published_date(soup)

    content = extract_main_content(soup, min_chars)
    if not content:
        return None

    return ExtractedContent(
        url=url,
        title=title,
        content=content,
        author=author,
        published_date=published_date,
        published_at=parse_published_at(published_date),
        extracted_at=datetime.now(timezone.utc),
    )


class ContentExtractor:
    def __init__(
        self,
        client: TextFetcher,
        *,
        min_content_chars: int = MIN_CONTENT_CHARS,
        limiter: IntervalLimiter | None = None,
    ) -> None:
        self._client = client
        self._min_chars = min_content_chars
        self._limiter = limiter or IntervalLimiter(0)

    async def extract(self, url: str) -> Optional[ExtractedContent]:
        """Fetch and parse one page. Returns None on transport or parse failure."""

        logger.info("Extracting content from: %s", url)
        html = await self._client.get_text(url)
        if not html:
            logger.warning("Failed to fetch %s", url)
            return None

        try:
            result = parse_page(url, html, self._min_chars)
        except Exception as e:
            logger.warning("Failed to parse %s: %s", url, e)
            return None

        if result is None:
            logger.warning("No text content found at %s", url)
            return None

        logger.info('Extracted: "%s" (%d chars)', result.title, len(result.content))
        return result

    async def extract_multiple(self, urls: Sequence[str]) -> list[ExtractedContent]:
        """Extract sequentially, dropping failures; the limiter spaces out requests."""

        results: list[ExtractedContent] = []
        for url in urls:
            await self._limiter.acquire()
            content = await self.extract(url)
            if content is not None:
                results.append(content)
        return results
