from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Optional, Protocol

import aiohttp

from article_enhancer.http import HttpError
from article_enhancer.types import Article, EnhancementResult


logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The article store could not be reached or answered unexpectedly."""


class JsonTransport(Protocol):
    async def request_json(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any: ...


def _unwrap(payload: Any) -> Any:
    # {"success": true, "data": ...} envelope
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


class ArticleStore:
    def __init__(self, http: JsonTransport, base_url: str) -> None:
        self._http = http
        self._base = base_url.rstrip("/")

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self._base}{path}"
        try:
            return _unwrap(await self._http.request_json(method, url, **kwargs))
        except (HttpError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise StoreError(f"{method} {path} failed: {str(e) or type(e).__name__}") from e

    async def list_articles(self, params: Mapping[str, Any] | None = None) -> list[Article]:
        data = await self._call("GET", "/articles", params=dict(params or {}))
        if not isinstance(data, list):
            raise StoreError("GET /articles returned no article list")
        return [Article.from_api(d) for d in data if isinstance(d, dict)]

    async def get_non_enhanced(self, per_page: int) -> list[Article]:
        return await self.list_articles({"is_enhanced": 0, "per_page": per_page})

    async def get_article(self, slug: str) -> Article:
        data = await self._call("GET", f"/articles/{slug}")
        if not isinstance(data, dict):
            raise StoreError(f"GET /articles/{slug} returned no article")
        return Article.from_api(data)

    async def update_article(self, slug: str, fields: Mapping[str, Any]) -> Article:
        data = await self._call("PUT", f"/articles/{slug}", json=dict(fields))
        if not isinstance(data, dict):
            raise StoreError(f"PUT /articles/{slug} returned no article")
        return Article.from_api(data)

    async def save_enhancement(self, slug: str, result: EnhancementResult) -> Article:
        logger.info("Updating article %s in store", slug)
        return await self.update_article(
            slug,
            {
                "enhanced_content": result.enhanced_content,
                "citations": list(result.citations),
                "is_enhanced": True,
            },
        )
