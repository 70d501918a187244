from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class Article:
    slug: str
    title: str
    url: str
    content: str
    id: Optional[int] = None

    # populated once enhanced
    enhanced_content: Optional[str] = None
    citations: list[str] = field(default_factory=list)
    is_enhanced: bool = False

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Article":
        citations = data.get("citations") or []
        return cls(
            id=data.get("id"),
            slug=str(data.get("slug") or ""),
            title=str(data.get("title") or ""),
            url=str(data.get("url") or ""),
            content=str(data.get("content") or ""),
            enhanced_content=data.get("enhanced_content"),
            citations=[str(c) for c in citations],
            is_enhanced=bool(data.get("is_enhanced", False)),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass(frozen=True)
class ExtractedContent:
    url: str
    title: str
    content: str
    author: Optional[str] = None
    published_date: Optional[str] = None
    published_at: Optional[datetime] = None
    extracted_at: Optional[datetime] = None


@dataclass(frozen=True)
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class EnhancementResult:
    enhanced_content: str
    citations: list[str]
    enhanced_at: datetime
    model: Optional[str] = None
    usage: Optional[Usage] = None


@dataclass(frozen=True)
class ArticleOutcome:
    slug: str
    title: str
    status: str  # "enhanced" | "failed" | "skipped"
    error: Optional[str] = None

    # success metrics
    original_length: int = 0
    enhanced_length: int = 0
    citations: list[str] = field(default_factory=list)

    @property
    def citations_count(self) -> int:
        return len(self.citations)


@dataclass
class PipelineRunReport:
    total: int = 0
    enhanced: int = 0
    failed: int = 0
    skipped: int = 0
    articles: list[ArticleOutcome] = field(default_factory=list)

    def record(self, outcome: ArticleOutcome) -> None:
        self.articles.append(outcome)
        if outcome.status == "enhanced":
            self.enhanced += 1
        elif outcome.status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1

    def first_enhanced(self) -> Optional[ArticleOutcome]:
        for a in self.articles:
            if a.status == "enhanced":
                return a
        return None
