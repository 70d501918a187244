"""Render citation URL lists as reference appendices. Pure functions, no I/O."""

from __future__ import annotations

import html
import re
from typing import Any, Sequence
from urllib.parse import urlparse


def extract_domain(url: str) -> str:
    try:
        host = urlparse(url).hostname
    except ValueError:
        return url
    if not host:
        return url
    return host.removeprefix("www.")


def title_from_url(url: str) -> str:
    """Turn the last path segment into a readable title, e.g. ``/seo-tips.html`` -> ``Seo Tips``."""

    try:
        path = urlparse(url).path
    except ValueError:
        return url

    segs = [s for s in path.split("/") if s]
    if not segs:
        return extract_domain(url)

    last = re.sub(r"\.[^/.]+$", "", segs[-1])
    words = re.sub(r"[-_]", " ", last).split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words)


def format_markdown(citations: Sequence[str] | None) -> str:
    if not citations:
        return ""
    lines = [f"{i}. [{extract_domain(url)}]({url})" for i, url in enumerate(citations, start=1)]
    return "\n\n## References\n\n" + "\n".join(lines) + "\n"


def format_html(citations: Sequence[str] | None) -> str:
    if not citations:
        return ""
    items = [
        f'  <li><a href="{html.escape(url, quote=True)}" target="_blank" rel="noopener">'
        f"{html.escape(extract_domain(url))}</a></li>"
        for url in citations
    ]
    return '\n<div class="citations">\n<h3>References</h3>\n<ol>\n' + "\n".join(items) + "\n</ol>\n</div>\n"


def format_plain_text(citations: Sequence[str] | None) -> str:
    if not citations:
        return ""
    lines = [f"[{i}] {url}" for i, url in enumerate(citations, start=1)]
    return "\n\nReferences:\n" + "\n".join(lines) + "\n"


def format_json(citations: Sequence[str] | None) -> list[dict[str, Any]]:
    return [
        {"id": i, "url": url, "domain": extract_domain(url), "title": title_from_url(url)}
        for i, url in enumerate(citations or [], start=1)
    ]


_FORMATTERS = {
    "markdown": format_markdown,
    "html": format_html,
    "plain": format_plain_text,
}


def append_citations(content: str, citations: Sequence[str] | None, fmt: str = "markdown") -> str:
    """Append a references section; unknown formats fall back to markdown."""

    if not citations:
        return content
    formatter = _FORMATTERS.get(fmt.lower(), format_markdown)
    return content + formatter(citations)
