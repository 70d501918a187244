from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import aiohttp

from article_enhancer.config import Config
from article_enhancer.enhance import ContentEnhancer, OriginalArticle
from article_enhancer.extract import ContentExtractor
from article_enhancer.http import HttpClient, IntervalLimiter
from article_enhancer.llm import ChatClient
from article_enhancer.search import SearchProvider
from article_enhancer.store import ArticleStore
from article_enhancer.types import Article, ArticleOutcome, PipelineRunReport


logger = logging.getLogger(__name__)


NO_SEARCH_RESULTS = "No search results found"
EXTRACTION_FAILED = "Failed to extract content from search results"


def _describe(e: BaseException) -> str:
    return str(e) or type(e).__name__


class EnhancementPipeline:
    """Search -> Extract -> Enhance -> Persist, one article at a time."""

    def __init__(
        self,
        store: ArticleStore,
        searcher: SearchProvider,
        extractor: ContentExtractor,
        enhancer: ContentEnhancer,
        *,
        references_per_article: int = 2,
    ) -> None:
        self.store = store
        self.searcher = searcher
        self.extractor = extractor
        self.enhancer = enhancer
        self._refs = references_per_article

    async def fetch_candidates(self, limit: int, skip_enhanced: bool = True) -> list[Article]:
        if skip_enhanced:
            return await self.store.get_non_enhanced(per_page=limit)
        return await self.store.list_articles({"per_page": limit})

    async def run(self, limit: int = 5, skip_enhanced: bool = True) -> PipelineRunReport:
        """Process up to ``limit`` candidates.

        Only a failure while fetching candidates propagates (StoreError); every
        per-article problem is recorded in the report instead.
        """

        report = PipelineRunReport()

        logger.info("Fetching articles from store...")
        articles = await self.fetch_candidates(limit, skip_enhanced)

        to_process = articles[: max(0, limit)]
        report.total = len(to_process)
        logger.info("Found %d articles (processing %d)", len(articles), report.total)

        if not to_process:
            logger.warning("No articles to enhance")
            return report

        for i, article in enumerate(to_process, start=1):
            logger.info('Processing article %d/%d: "%s"', i, report.total, article.title)
            outcome = await self.enhance_article(article)
            if outcome.status == "failed":
                logger.error('Failed to enhance "%s": %s', article.title, outcome.error)
            report.record(outcome)

        return report

    async def enhance_article(self, article: Article) -> ArticleOutcome:
        def failed(reason: str) -> ArticleOutcome:
            return ArticleOutcome(slug=article.slug, title=article.title, status="failed", error=reason)

        if not article.slug or not article.content.strip():
            return ArticleOutcome(
                slug=article.slug,
                title=article.title,
                status="skipped",
                error="Article has no slug or no content",
            )

        try:
            urls = await self.searcher.search_articles(article.title, self._refs)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return failed(f"Search failed: {_describe(e)}")
        if not urls:
            return failed(NO_SEARCH_RESULTS)
        for n, url in enumerate(urls, start=1):
            logger.info("  %d. %s", n, url)

        try:
            references = await self.extractor.extract_multiple(urls)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return failed(f"Extraction failed: {_describe(e)}")
        if not references:
            return failed(EXTRACTION_FAILED)
        logger.info("Extracted content from %d articles", len(references))

        try:
            result = await self.enhancer.enhance(OriginalArticle(title=article.title, content=article.content), references)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return failed(_describe(e))

        try:
            await self.store.save_enhancement(article.slug, result)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            return failed(f"Failed to save enhancement: {_describe(e)}")

        return ArticleOutcome(
            slug=article.slug,
            title=article.title,
            status="enhanced",
            original_length=len(article.content),
            enhanced_length=len(result.enhanced_content),
            citations=list(result.citations),
        )

    async def test_components(self) -> dict[str, bool]:
        async def check_store() -> bool:
            await self.store.list_articles({"per_page": 1})
            return True

        async def check_search() -> bool:
            # empty results still prove the request path works
            await self.searcher.search("test query", 1)
            return True

        checks: list[tuple[str, Callable[[], Awaitable[bool]]]] = [
            ("Article store", check_store),
            ("Search provider", check_search),
            ("Generative model", self.enhancer.test_connection),
        ]

        results: dict[str, bool] = {}
        for name, check in checks:
            logger.info("Testing %s...", name)
            try:
                ok = bool(await check())
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error("%s: ERROR - %s", name, _describe(e))
                ok = False
            logger.info("%s: %s", name, "PASSED" if ok else "FAILED")
            results[name] = ok
        return results


def build_pipeline(cfg: Config, client: HttpClient, api_key: str) -> EnhancementPipeline:
    search_cfg = cfg.search
    extract_cfg = cfg.extract
    enhance_cfg = cfg.enhance

    searcher = SearchProvider(
        client,
        base_url=search_cfg["base_url"],
        query_suffix=search_cfg["query_suffix"],
        raw_results=search_cfg["raw_results"],
        limiter=IntervalLimiter(search_cfg["delay_seconds"]),
    )
    extractor = ContentExtractor(
        client,
        min_content_chars=extract_cfg["min_content_chars"],
        limiter=IntervalLimiter(extract_cfg["delay_seconds"]),
    )
    model = ChatClient(client, api_key, model=cfg.model, api_url=cfg.llm_url)
    enhancer = ContentEnhancer(
        model,
        max_tokens=enhance_cfg["max_tokens"],
        temperature=enhance_cfg["temperature"],
        reference_chars=enhance_cfg["reference_chars"],
        length_factor=enhance_cfg["length_factor"],
        min_target_chars=enhance_cfg["min_target_chars"],
        limiter=IntervalLimiter(enhance_cfg["delay_seconds"]),
    )
    store = ArticleStore(client, cfg.api_base_url)

    return EnhancementPipeline(
        store,
        searcher,
        extractor,
        enhancer,
        references_per_article=search_cfg["references_per_article"],
    )


@asynccontextmanager
async def open_pipeline(cfg: Config) -> AsyncIterator[EnhancementPipeline]:
    """Build a pipeline bound to one aiohttp session.

    The credential is resolved before any connection is opened, so a missing
    key fails fast with ConfigError.
    """

    api_key = cfg.api_key
    connector = aiohttp.TCPConnector(limit=cfg.max_connections)
    async with aiohttp.ClientSession(connector=connector) as session:
        client = HttpClient(
            session=session,
            user_agent=cfg.user_agent,
            timeout_seconds=cfg.timeout_seconds,
        )
        yield build_pipeline(cfg, client, api_key)


async def run_pipeline(cfg: Config, limit: int, *, skip_enhanced: bool = True) -> PipelineRunReport:
    async with open_pipeline(cfg) as pipeline:
        return await pipeline.run(limit=limit, skip_enhanced=skip_enhanced)
