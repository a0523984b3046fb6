"""Turn stored chat messages into display blocks"""

import html
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Union

from ..models.api_models import Message
from ..models.response_models import (
    ArticleResponse,
    ResearchResponse,
    StructuredReply,
    parse_structured_reply,
)
from ..utils.citation_tokenizer import by_number, by_position
from ..utils.markdown_renderer import render_markdown
from ..utils.web_utils import is_web_url

logger = logging.getLogger(__name__)

SUMMARY_TABLE_HEADING = "Summary"


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class Markdown:
    """Markdown source together with its rendered HTML"""
    source: str
    html: str


@dataclass(frozen=True)
class LabeledText:
    label: str
    text: str


@dataclass(frozen=True)
class FindingItem:
    number: int
    point: str
    evidence: str
    citations: str


@dataclass(frozen=True)
class FindingList:
    label: str
    items: List[FindingItem]


@dataclass(frozen=True)
class Link:
    label: str
    url: str


@dataclass(frozen=True)
class LinkList:
    label: str
    links: List[Link]


Block = Union[PlainText, Heading, Markdown, LabeledText, FindingList, LinkList]


@dataclass(frozen=True)
class RenderedMessage:
    """Display tree for one message"""
    role: str
    blocks: List[Block] = field(default_factory=list)
    fallback: bool = False

    def to_html(self) -> str:
        return "\n".join(block_to_html(block) for block in self.blocks)


def _anchor(link: Link) -> str:
    if not is_web_url(link.url):
        return html.escape(link.label)
    return (
        f'<a href="{html.escape(link.url)}" target="_blank" rel="noopener noreferrer">'
        f"{html.escape(link.label)}</a>"
    )


def block_to_html(block: Block) -> str:
    """Serialize a single block to HTML"""
    if isinstance(block, PlainText):
        return f'<p style="white-space: pre-wrap">{html.escape(block.text)}</p>'
    if isinstance(block, Heading):
        return f"<h{block.level}>{html.escape(block.text)}</h{block.level}>"
    if isinstance(block, Markdown):
        return block.html
    if isinstance(block, LabeledText):
        return f"<h3>{html.escape(block.label)}</h3>\n<p>{html.escape(block.text)}</p>"
    if isinstance(block, FindingList):
        items = "\n".join(
            f"<li><p><strong>{item.number}. {html.escape(item.point)}</strong></p>"
            f"<p>{html.escape(item.evidence)}</p>"
            f"<p><small>Citations: {html.escape(item.citations)}</small></p></li>"
            for item in block.items
        )
        return f"<h3>{html.escape(block.label)}</h3>\n<ul>\n{items}\n</ul>"
    if isinstance(block, LinkList):
        items = "\n".join(f"<li>{_anchor(link)}</li>" for link in block.links)
        return f"<h3>{html.escape(block.label)}</h3>\n<ol>\n{items}\n</ol>"
    raise TypeError(f"Unknown block type: {type(block).__name__}")


def _render_article(article: ArticleResponse) -> List[Block]:
    resolve = by_number(article.citation_map())
    blocks: List[Block] = [Heading(1, article.title)]
    for section in article.sections:
        blocks.append(Heading(2, section.heading))
        blocks.append(Markdown(section.content, render_markdown(section.content, resolve)))
        for subsection in section.subsections:
            blocks.append(Heading(3, subsection.heading))
            blocks.append(Markdown(subsection.content, render_markdown(subsection.content, resolve)))
    if article.summary_table:
        blocks.append(Heading(3, SUMMARY_TABLE_HEADING))
        blocks.append(Markdown(article.summary_table, render_markdown(article.summary_table, tables=True)))
    blocks.append(LinkList(
        "Citations",
        [Link(f"[{citation.number}] {citation.url}", citation.url) for citation in article.citations],
    ))
    return blocks


def _render_research(research: ResearchResponse) -> List[Block]:
    findings = [
        FindingItem(
            number=index,
            point=finding.point,
            evidence=finding.evidence,
            citations=", ".join(finding.citations),
        )
        for index, finding in enumerate(research.findings, start=1)
    ]
    blocks: List[Block] = [
        LabeledText("Summary", research.summary),
        LabeledText("Analysis", research.analysis),
        FindingList("Key Findings", findings),
        LabeledText("Methodology", research.methodology),
        LabeledText("Limitations", research.limitations),
        LabeledText("Next Steps", research.next_steps),
    ]
    if research.citations:
        blocks.append(LinkList("Citations", [Link(url, url) for url in research.citations]))
    blocks.append(LinkList("Sources", [Link(url, url) for url in research.sources]))
    return blocks


def _render_reply(reply: StructuredReply) -> List[Block]:
    if isinstance(reply, ArticleResponse):
        return _render_article(reply)
    if isinstance(reply, ResearchResponse):
        return _render_research(reply)
    raise TypeError(f"Unknown reply type: {type(reply).__name__}")


def _render_plain(message: Message) -> List[Block]:
    resolve = by_position(message.citations)
    blocks: List[Block] = [Markdown(message.content, render_markdown(message.content, resolve))]
    if message.citations:
        blocks.append(LinkList("Citations", [Link(url, url) for url in message.citations]))
    return blocks


def parse_reply(message: Message) -> Optional[StructuredReply]:
    """Parse a structured reply, or return None when the content does not fit"""
    try:
        return parse_structured_reply(message.content)
    except (TypeError, ValueError) as e:
        logger.debug("Structured reply could not be parsed, falling back to markdown: %s", e)
        return None


def render_message(message: Message) -> RenderedMessage:
    """Build the display tree for a message

    User messages are shown verbatim. Structured replies are parsed as an
    article or a research object and fall back to plain markdown when the
    content is not valid JSON of either shape. Other assistant messages are
    rendered as markdown with ``[n]`` markers linked by position.
    """
    if message.role == "user":
        return RenderedMessage(message.role, [PlainText(message.content)])

    if message.is_research_response:
        reply = parse_reply(message)
        if reply is None:
            content = message.content if isinstance(message.content, str) else str(message.content)
            return RenderedMessage(
                message.role,
                [Markdown(content, render_markdown(content, tables=True))],
                fallback=True,
            )
        return RenderedMessage(message.role, _render_reply(reply))

    return RenderedMessage(message.role, _render_plain(message))
