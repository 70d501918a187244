from __future__ import annotations

from dataclasses import replace
from typing import Any, Optional

import pytest

from article_enhancer.llm import Completion
from article_enhancer.store import StoreError
from article_enhancer.types import Article, EnhancementResult, Usage


class FakeFetcher:
    """Stands in for HttpClient.get_text: maps URL -> HTML (None means transport failure)."""

    def __init__(self, pages: dict[str, Optional[str]] | None = None, default: Optional[str] = None) -> None:
        self.pages = dict(pages or {})
        self.default = default
        self.calls: list[tuple[str, Optional[dict]]] = []

    async def get_text(self, url: str, params: Optional[dict] = None) -> Optional[str]:
        self.calls.append((url, params))
        return self.pages.get(url, self.default)


class FakeModel:
    def __init__(self, text: str = "Rewritten body.", error: Exception | None = None) -> None:
        self.model = "test/model"
        self.text = text
        self.error = error
        self.prompts: list[str] = []
        self.kwargs: list[dict[str, Any]] = []

    async def complete(self, prompt: str, *, max_tokens: int, temperature: Optional[float] = None) -> Completion:
        self.prompts.append(prompt)
        self.kwargs.append({"max_tokens": max_tokens, "temperature": temperature})
        if self.error is not None:
            raise self.error
        return Completion(texts=[self.text], usage=Usage(10, 20, 30), model=self.model)

    async def test_connection(self) -> bool:
        return self.error is None


class FakeStore:
    """In-memory article store with the ArticleStore surface the pipeline uses."""

    def __init__(self, articles: list[Article] | None = None, fail_list: bool = False, fail_update: bool = False) -> None:
        self.articles = {a.slug: a for a in (articles or [])}
        self.fail_list = fail_list
        self.fail_update = fail_update
        self.list_params: list[dict] = []
        self.updates: list[tuple[str, EnhancementResult]] = []

    async def list_articles(self, params: dict | None = None) -> list[Article]:
        self.list_params.append(dict(params or {}))
        if self.fail_list:
            raise StoreError("GET /articles failed: connection refused")
        items = list(self.articles.values())
        if (params or {}).get("is_enhanced") == 0:
            items = [a for a in items if not a.is_enhanced]
        per_page = (params or {}).get("per_page")
        return items[:per_page] if per_page else items

    async def get_non_enhanced(self, per_page: int) -> list[Article]:
        return await self.list_articles({"is_enhanced": 0, "per_page": per_page})

    async def get_article(self, slug: str) -> Article:
        return self.articles[slug]

    async def save_enhancement(self, slug: str, result: EnhancementResult) -> Article:
        if self.fail_update:
            raise StoreError(f"PUT /articles/{slug} failed: HTTP 500")
        self.updates.append((slug, result))
        updated = replace(
            self.articles[slug],
            enhanced_content=result.enhanced_content,
            citations=list(result.citations),
            is_enhanced=True,
        )
        self.articles[slug] = updated
        return updated


def make_article(slug: str = "chatbots-101", title: str = "Chatbots 101", content: str | None = None) -> Article:
    return Article(
        id=1,
        slug=slug,
        title=title,
        url=f"https://blog.example.com/{slug}",
        content=content if content is not None else "Original article text. " * 20,
    )


def article_page(title: str, body_words: int = 80) -> str:
    body = " ".join(["Useful insight about customer support automation."] * (body_words // 6 + 1))
    return f"""
    <html>
      <head><title>{title} | Site</title><meta property="og:title" content="{title}"></head>
      <body>
        <nav>Home About Contact</nav>
        <article><h1>{title}</h1><p>{body}</p></article>
        <footer>Copyright</footer>
      </body>
    </html>
    """


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()
