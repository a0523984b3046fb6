"""Models for structured assistant replies"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class Subsection:
    heading: str
    content: str


@dataclass(frozen=True)
class Section:
    heading: str
    content: str
    subsections: List[Subsection] = field(default_factory=list)


@dataclass(frozen=True)
class ArticleCitation:
    """A numbered source; the number is the marker used inline, not a list position"""
    number: int
    url: str


@dataclass(frozen=True)
class ArticleResponse:
    """Titled, sectioned article reply"""
    title: str
    sections: List[Section]
    citations: List[ArticleCitation] = field(default_factory=list)
    summary_table: Optional[str] = None

    def citation_map(self) -> Dict[int, str]:
        """Map declared citation numbers to urls; the first entry wins on duplicates"""
        urls: Dict[int, str] = {}
        for citation in self.citations:
            urls.setdefault(citation.number, citation.url)
        return urls


@dataclass(frozen=True)
class Finding:
    point: str
    evidence: str
    citations: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ResearchResponse:
    """Flat research reply with labeled blocks"""
    summary: str = ""
    analysis: str = ""
    methodology: str = ""
    findings: List[Finding] = field(default_factory=list)
    limitations: str = ""
    sources: List[str] = field(default_factory=list)
    next_steps: str = ""
    citations: List[str] = field(default_factory=list)


StructuredReply = Union[ArticleResponse, ResearchResponse]


def _text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, (str, int, float)):
        raise ValueError(f"Expected text, got {type(value).__name__}")
    return str(value)


def _list(value: Any) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"Expected a list, got {type(value).__name__}")
    return value


def _object(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"Expected an object, got {type(value).__name__}")
    return value


def _citation_number(value: Any) -> int:
    # JSON numbers may arrive as 1.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Citation number must be an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"Citation number must be an integer, got {value!r}")
    return int(value)


def _parse_article(data: Dict[str, Any]) -> ArticleResponse:
    sections = []
    for raw_section in _list(data.get("sections")):
        raw_section = _object(raw_section)
        subsections = [
            Subsection(heading=_text(sub.get("heading")), content=_text(sub.get("content")))
            for sub in map(_object, _list(raw_section.get("subsections")))
        ]
        sections.append(Section(
            heading=_text(raw_section.get("heading")),
            content=_text(raw_section.get("content")),
            subsections=subsections,
        ))
    citations = [
        ArticleCitation(number=_citation_number(raw.get("number")), url=_text(raw.get("url")))
        for raw in map(_object, _list(data.get("citations")))
    ]
    summary_table = data.get("summary_table")
    return ArticleResponse(
        title=_text(data.get("title")),
        sections=sections,
        citations=citations,
        summary_table=_text(summary_table) if summary_table else None,
    )


def _parse_research(data: Dict[str, Any]) -> ResearchResponse:
    findings = [
        Finding(
            point=_text(raw.get("point")),
            evidence=_text(raw.get("evidence")),
            citations=[_text(c) for c in _list(raw.get("citations"))],
        )
        for raw in map(_object, _list(data.get("findings")))
    ]
    return ResearchResponse(
        summary=_text(data.get("summary")),
        analysis=_text(data.get("analysis")),
        methodology=_text(data.get("methodology")),
        findings=findings,
        limitations=_text(data.get("limitations")),
        sources=[_text(s) for s in _list(data.get("sources"))],
        next_steps=_text(data.get("nextSteps")),
        citations=[_text(c) for c in _list(data.get("citations"))],
    )


def parse_structured_reply(content: str) -> StructuredReply:
    """Parse reply content into one of the known shapes

    An object with a non-empty ``sections`` list is an article; any other
    object is read as a research reply.

    Args:
        content: Raw message content

    Returns:
        ArticleResponse or ResearchResponse

    Raises:
        ValueError: If the content is not JSON or does not fit either shape
    """
    data = _object(json.loads(content))
    if data.get("sections"):
        return _parse_article(data)
    return _parse_research(data)
