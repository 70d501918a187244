from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pandas as pd

from article_enhancer.types import PipelineRunReport


RULE = "=" * 50


def format_summary(report: PipelineRunReport) -> str:
    lines = [
        RULE,
        "PIPELINE SUMMARY",
        RULE,
        f"Total Articles: {report.total}",
        f"Enhanced: {report.enhanced}",
        f"Failed: {report.failed}",
        f"Skipped: {report.skipped}",
        RULE,
    ]

    enhanced = [a for a in report.articles if a.status == "enhanced"]
    if enhanced:
        lines.append("")
        lines.append("Successfully Enhanced Articles:")
        for i, a in enumerate(enhanced, start=1):
            lines.append(f"{i}. {a.title}")
            lines.append(f"   Slug: {a.slug}")
            lines.append(f"   Citations: {a.citations_count}")
            lines.append(f"   Length: {a.original_length} -> {a.enhanced_length} chars")

    failed = [a for a in report.articles if a.status != "enhanced"]
    if failed:
        lines.append("")
        lines.append("Failed / Skipped Articles:")
        for i, a in enumerate(failed, start=1):
            lines.append(f"{i}. {a.title} [{a.status}]")
            lines.append(f"   Error: {a.error}")

    return "\n".join(lines)


def report_to_frame(report: PipelineRunReport, run_at: datetime | None = None) -> pd.DataFrame:
    ts = (run_at or datetime.now(timezone.utc)).isoformat()
    rows = []
    for a in report.articles:
        rows.append(
            {
                "run_at": ts,
                "slug": a.slug,
                "title": a.title,
                "status": a.status,
                "error": a.error,
                "original_length": a.original_length,
                "enhanced_length": a.enhanced_length,
                "citations_count": a.citations_count,
                "citations": " ".join(a.citations),
            }
        )
    return pd.DataFrame(
        rows,
        columns=[
            "run_at",
            "slug",
            "title",
            "status",
            "error",
            "original_length",
            "enhanced_length",
            "citations_count",
            "citations",
        ],
    )


def write_report(path: str | Path, report: PipelineRunReport) -> pd.DataFrame:
    """Upsert this run's outcomes into a CSV keyed by slug; the latest run wins."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    frame = report_to_frame(report)
    if path.exists():
        frame = pd.concat([pd.read_csv(path), frame], ignore_index=True)
    frame = frame.drop_duplicates(subset=["slug"], keep="last")

    frame.to_csv(path, index=False, encoding="utf-8")
    return frame
