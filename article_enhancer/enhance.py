"""Rewrite an article using extracted reference articles as context.

Citations are structural: every supplied reference's URL is cited, in the order
given, whether or not the generated text draws on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Protocol, Sequence

from article_enhancer.http import IntervalLimiter
from article_enhancer.llm import Completion
from article_enhancer.types import EnhancementResult, ExtractedContent


logger = logging.getLogger(__name__)


class CompletionModel(Protocol):
    model: str

    async def complete(self, prompt: str, *, max_tokens: int, temperature: Optional[float] = None) -> Completion: ...

    async def test_connection(self) -> bool: ...


@dataclass(frozen=True)
class OriginalArticle:
    title: str
    content: str


@dataclass(frozen=True)
class EnhanceAttempt:
    original: OriginalArticle
    result: Optional[EnhancementResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def build_context(references: Sequence[ExtractedContent], max_chars: int = 2000) -> str:
    parts: list[str] = []
    for i, ref in enumerate(references, start=1):
        parts.append(f"\n--- Top Ranking Article {i} ---\n")
        parts.append(f"Title: {ref.title}\n")
        parts.append(f"Content: {ref.content[:max_chars]}...\n")
        parts.append(f"URL: {ref.url}\n")
    return "".join(parts)


def target_length(content: str, factor: float = 1.5, floor: int = 1000) -> int:
    return max(int(len(content) * factor), floor)


def build_prompt(title: str, content: str, context: str, target_chars: int) -> str:
    return f"""You are an expert content writer tasked with enhancing a blog article.

ORIGINAL ARTICLE:
Title: {title}
Content: {content}

TOP-RANKING ARTICLES FOR REFERENCE:
{context}

TASK:
Enhance the original article by:
1. Improving the writing quality, clarity, and readability
2. Incorporating insights and best practices from the top-ranking articles
3. Maintaining the original article's core message and intent
4. Using a professional, engaging tone
5. Ensuring proper formatting with clear paragraphs
6. Adding relevant examples or explanations where appropriate
7. Making it more comprehensive and valuable to readers

IMPORTANT GUIDELINES:
- Do NOT plagiarize from the reference articles
- Use the reference articles only for inspiration and to understand what makes content rank well
- Keep the enhanced content focused on the original topic
- Aim for approximately {target_chars} characters
- Write in a clear, professional style
- Use markdown formatting for better readability

OUTPUT:
Provide ONLY the enhanced article content without any preamble or explanation."""


class ContentEnhancer:
    def __init__(
        self,
        model: CompletionModel,
        *,
        max_tokens: int = 4000,
        temperature: Optional[float] = 0.7,
        reference_chars: int = 2000,
        length_factor: float = 1.5,
        min_target_chars: int = 1000,
        limiter: IntervalLimiter | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._reference_chars = reference_chars
        self._length_factor = length_factor
        self._min_target = min_target_chars
        self._limiter = limiter or IntervalLimiter(0)

    async def enhance(self, original: OriginalArticle, references: Sequence[ExtractedContent]) -> EnhancementResult:
        """Generate the rewritten article. Model failures propagate to the caller."""

        logger.info('Enhancing article: "%s" (model %s)', original.title, self._model.model)

        context = build_context(references, self._reference_chars)
        prompt = build_prompt(
            original.title,
            original.content,
            context,
            target_length(original.content, self._length_factor, self._min_target),
        )

        completion = await self._model.complete(
            prompt,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )

        return EnhancementResult(
            enhanced_content=completion.text,
            citations=[ref.url for ref in references],
            enhanced_at=datetime.now(timezone.utc),
            model=completion.model,
            usage=completion.usage,
        )

    async def enhance_multiple(
        self,
        items: Sequence[tuple[OriginalArticle, Sequence[ExtractedContent]]],
    ) -> list[EnhanceAttempt]:
        attempts: list[EnhanceAttempt] = []
        for original, references in items:
            await self._limiter.acquire()
            try:
                result = await self.enhance(original, references)
            except Exception as e:
                logger.error('Failed to enhance "%s": %s', original.title, e)
                attempts.append(EnhanceAttempt(original=original, error=str(e) or type(e).__name__))
                continue
            attempts.append(EnhanceAttempt(original=original, result=result))
        return attempts

    async def test_connection(self) -> bool:
        return await self._model.test_connection()
