"""Tests for the response renderer."""

from __future__ import annotations

import json
import re

import pytest

from perplexity_chat.models.api_models import Message
from perplexity_chat.services.response_renderer import (
    FindingItem,
    FindingList,
    Heading,
    LabeledText,
    Link,
    LinkList,
    Markdown,
    PlainText,
    block_to_html,
    render_message,
)
from perplexity_chat.utils.markdown_renderer import render_markdown


def links(html: str) -> list:
    return re.findall(r'<a [^>]*href="([^"]*)"[^>]*>(.*?)</a>', html)


def structured(content: str) -> Message:
    return Message(role="assistant", content=content, is_research_response=True)


# ---------------------------------------------------------------------------
# User and plain assistant messages
# ---------------------------------------------------------------------------


class TestUserMessages:
    def test_rendered_verbatim(self) -> None:
        rendered = render_message(Message("user", "**not bold** [1]"))
        assert rendered.blocks == [PlainText("**not bold** [1]")]

    def test_user_json_is_not_parsed(self) -> None:
        content = json.dumps({"title": "T", "sections": [{"heading": "H", "content": "c"}]})
        rendered = render_message(Message("user", content, is_research_response=True))
        assert rendered.blocks == [PlainText(content)]


class TestPlainAssistantMessages:
    """Markdown with citations resolved by position."""

    def test_marker_resolved_by_position(self) -> None:
        message = Message("assistant", "first [1] second [2]", citations=["https://a.test", "https://b.test"])
        blocks = render_message(message).blocks
        assert links(blocks[0].html) == [("https://a.test", "[1]"), ("https://b.test", "[2]")]

    def test_unresolved_marker_is_literal(self) -> None:
        message = Message("assistant", "see [5]", citations=["https://a.test", "https://b.test"])
        blocks = render_message(message).blocks
        assert blocks[0].html == "<p>see [5]</p>"

    def test_citation_list_follows(self) -> None:
        message = Message("assistant", "text", citations=["https://a.test"])
        blocks = render_message(message).blocks
        assert blocks[1] == LinkList("Citations", [Link("https://a.test", "https://a.test")])

    def test_no_citations(self) -> None:
        blocks = render_message(Message("assistant", "see [1]")).blocks
        assert blocks == [Markdown("see [1]", "<p>see [1]</p>")]


# ---------------------------------------------------------------------------
# Structured replies
# ---------------------------------------------------------------------------


class TestArticleRendering:
    """Sectioned article replies."""

    def test_scenario_valid_article(self) -> None:
        content = ('{"title":"T","sections":[{"heading":"H1","content":"intro [1]"}],'
                   '"citations":[{"number":1,"url":"https://x.test"}]}')
        rendered = render_message(structured(content))
        assert rendered.blocks[0] == Heading(1, "T")
        assert rendered.blocks[1] == Heading(2, "H1")
        assert links(rendered.blocks[2].html) == [("https://x.test", "[1]")]
        assert not rendered.fallback

    def test_structure(self, article: dict) -> None:
        blocks = render_message(structured(json.dumps(article))).blocks
        headings = [(b.level, b.text) for b in blocks if isinstance(b, Heading)]
        assert headings == [
            (1, "Solar Power in 2024"),
            (2, "Overview"),
            (3, "Europe"),
            (2, "Outlook"),
            (3, "Summary"),
        ]

    def test_citations_resolved_by_declared_number(self, article: dict) -> None:
        blocks = render_message(structured(json.dumps(article))).blocks
        overview = blocks[2]
        assert links(overview.html) == [
            ("https://iea.test/report", "[1]"),
            ("https://irena.test/costs", "[3]"),
        ]
        europe = blocks[4]
        assert links(europe.html) == [("https://bnetza.test/solar", "[2]")]

    def test_unknown_number_stays_literal(self, article: dict) -> None:
        blocks = render_message(structured(json.dumps(article))).blocks
        outlook = blocks[6]
        assert outlook.html == "<p>Growth should continue [9].</p>"

    def test_summary_table_uses_tables(self, article: dict) -> None:
        blocks = render_message(structured(json.dumps(article))).blocks
        table = blocks[-2]
        assert isinstance(table, Markdown)
        assert "<table>" in table.html

    def test_citation_list(self, article: dict) -> None:
        blocks = render_message(structured(json.dumps(article))).blocks
        assert blocks[-1] == LinkList("Citations", [
            Link("[1] https://iea.test/report", "https://iea.test/report"),
            Link("[3] https://irena.test/costs", "https://irena.test/costs"),
            Link("[2] https://bnetza.test/solar", "https://bnetza.test/solar"),
        ])

    def test_without_summary_table(self, article: dict) -> None:
        del article["summary_table"]
        blocks = render_message(structured(json.dumps(article))).blocks
        assert Heading(3, "Summary") not in blocks


class TestResearchRendering:
    """Flat research replies."""

    RESEARCH = {
        "summary": "S",
        "analysis": "A",
        "methodology": "M",
        "findings": [{"point": "P", "evidence": "E", "citations": ["x", "y"]}],
        "limitations": "L",
        "sources": ["https://s.test"],
        "nextSteps": "N",
    }

    def test_labeled_blocks(self) -> None:
        blocks = render_message(structured(json.dumps(self.RESEARCH))).blocks
        labels = [b.label for b in blocks]
        assert labels == ["Summary", "Analysis", "Key Findings", "Methodology", "Limitations", "Next Steps", "Sources"]
        assert blocks[0] == LabeledText("Summary", "S")
        assert blocks[5] == LabeledText("Next Steps", "N")

    def test_findings_numbered_with_joined_citations(self) -> None:
        blocks = render_message(structured(json.dumps(self.RESEARCH))).blocks
        assert blocks[2] == FindingList("Key Findings", [FindingItem(1, "P", "E", "x, y")])

    def test_citations_list_when_present(self) -> None:
        research = dict(self.RESEARCH, citations=["https://c.test"])
        blocks = render_message(structured(json.dumps(research))).blocks
        assert blocks[-2] == LinkList("Citations", [Link("https://c.test", "https://c.test")])
        assert blocks[-1] == LinkList("Sources", [Link("https://s.test", "https://s.test")])


class TestFallback:
    """Unparseable structured replies degrade to markdown."""

    def test_scenario_malformed_json(self) -> None:
        rendered = render_message(structured("{not json"))
        assert rendered.fallback
        assert rendered.blocks == [Markdown("{not json", render_markdown("{not json", tables=True))]

    @pytest.mark.parametrize("content", ["", "plain *markdown* [1]", "[1, 2]", "null", '{"sections": 5}'])
    def test_never_raises(self, content: str) -> None:
        rendered = render_message(structured(content))
        assert rendered.fallback
        assert isinstance(rendered.blocks[0], Markdown)

    def test_fallback_does_not_resolve_citations(self) -> None:
        message = Message("assistant", "see [1]", citations=["https://a.test"], is_research_response=True)
        assert links(render_message(message).to_html()) == []


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestProperties:
    def test_idempotent(self, article: dict) -> None:
        message = structured(json.dumps(article))
        assert render_message(message) == render_message(message)
        assert render_message(message).to_html() == render_message(message).to_html()

    def test_to_html_escapes_text(self) -> None:
        html = render_message(Message("user", "<script>x</script>")).to_html()
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_block_to_html_rejects_unknown(self) -> None:
        with pytest.raises(TypeError):
            block_to_html(object())

    def test_article_html(self, article: dict) -> None:
        html = render_message(structured(json.dumps(article))).to_html()
        assert "<h1>Solar Power in 2024</h1>" in html
        assert "<h2>Overview</h2>" in html
        assert '<a href="https://iea.test/report" target="_blank" rel="noopener noreferrer">' in html


class TestUntrustedReplies:
    """Raw HTML and script urls from the model are neutralised in every branch."""

    def test_plain_reply(self) -> None:
        message = Message("assistant", "hi <img src=x onerror=alert(1)> [1]", citations=["javascript:alert(1)"])
        html = render_message(message).to_html()
        assert "<img" not in html
        assert 'href="javascript' not in html
        assert "javascript:alert(1)" in html

    def test_article_reply(self) -> None:
        content = json.dumps({
            "title": "<b>T</b>",
            "sections": [{"heading": "H", "content": "<script>alert(1)</script> intro [1]"}],
            "citations": [{"number": 1, "url": "javascript:alert(2)"}],
        })
        html = render_message(structured(content)).to_html()
        assert "<script" not in html
        assert "<b>" not in html
        assert 'href="javascript' not in html
        assert "intro [1]" in html

    def test_research_reply(self) -> None:
        content = json.dumps({
            "summary": "<iframe src=x></iframe>",
            "sources": ["javascript:alert(3)", "https://s.test"],
        })
        html = render_message(structured(content)).to_html()
        assert "<iframe" not in html
        assert 'href="javascript' not in html
        assert links(html) == [("https://s.test", "https://s.test")]

    def test_fallback_reply(self) -> None:
        html = render_message(structured("{oops <script>alert(1)</script>")).to_html()
        assert "<script" not in html

    def test_non_string_content_falls_back(self) -> None:
        rendered = render_message(Message("assistant", {"title": "T"}, is_research_response=True))
        assert rendered.fallback
        assert rendered.blocks[0].source == "{'title': 'T'}"
