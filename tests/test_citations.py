from __future__ import annotations

from article_enhancer.citations import (
    append_citations,
    extract_domain,
    format_html,
    format_json,
    format_markdown,
    format_plain_text,
    title_from_url,
)


CITATIONS = ["https://www.blog-one.com/chatbot-guide", "https://blog-two.com/ai/support_tips.html"]


def test_extract_domain_strips_www() -> None:
    assert extract_domain("https://www.blog-one.com/x") == "blog-one.com"
    assert extract_domain("not a url") == "not a url"


def test_title_from_url() -> None:
    assert title_from_url("https://blog-two.com/ai/support_tips.html") == "Support Tips"
    assert title_from_url("https://www.blog-one.com/") == "blog-one.com"


def test_format_markdown() -> None:
    assert format_markdown(CITATIONS) == (
        "\n\n## References\n\n"
        "1. [blog-one.com](https://www.blog-one.com/chatbot-guide)\n"
        "2. [blog-two.com](https://blog-two.com/ai/support_tips.html)\n"
    )


def test_format_html() -> None:
    out = format_html(CITATIONS)
    assert out.startswith('\n<div class="citations">\n<h3>References</h3>\n<ol>\n')
    assert '<li><a href="https://www.blog-one.com/chatbot-guide" target="_blank" rel="noopener">blog-one.com</a></li>' in out
    assert out.endswith("</ol>\n</div>\n")


def test_format_plain_text() -> None:
    assert format_plain_text(CITATIONS) == (
        "\n\nReferences:\n[1] https://www.blog-one.com/chatbot-guide\n[2] https://blog-two.com/ai/support_tips.html\n"
    )


def test_format_json() -> None:
    assert format_json(CITATIONS)[1] == {
        "id": 2,
        "url": "https://blog-two.com/ai/support_tips.html",
        "domain": "blog-two.com",
        "title": "Support Tips",
    }


def test_empty_citations() -> None:
    assert format_markdown([]) == ""
    assert format_html(None) == ""
    assert format_plain_text([]) == ""
    assert format_json(None) == []
    assert append_citations("body", []) == "body"


def test_formatting_is_idempotent() -> None:
    for fmt in (format_markdown, format_html, format_plain_text):
        assert fmt(CITATIONS) == fmt(list(CITATIONS))


def test_append_citations_formats() -> None:
    assert append_citations("body", CITATIONS) == "body" + format_markdown(CITATIONS)
    assert append_citations("body", CITATIONS, "HTML") == "body" + format_html(CITATIONS)
    assert append_citations("body", CITATIONS, "plain") == "body" + format_plain_text(CITATIONS)
    assert append_citations("body", CITATIONS, "rst") == "body" + format_markdown(CITATIONS)
