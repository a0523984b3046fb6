"""Split text into literal runs and inline citation markers"""

import re
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence, Union, Mapping

from .web_utils import is_web_url

CITATION_PATTERN = re.compile(r"\[(\d+)\]")


@dataclass(frozen=True)
class TextToken:
    text: str


@dataclass(frozen=True)
class CitationToken:
    """A ``[n]`` marker; ``text`` keeps the marker exactly as written"""
    number: int
    text: str


Token = Union[TextToken, CitationToken]

# Maps a marker number to a url, or None when it cannot be resolved
CitationResolver = Callable[[int], Optional[str]]


def tokenize(text: str) -> Iterator[Token]:
    """Yield literal and citation tokens in order; empty literals are skipped"""
    position = 0
    for match in CITATION_PATTERN.finditer(text):
        if match.start() > position:
            yield TextToken(text[position:match.start()])
        yield CitationToken(number=int(match.group(1)), text=match.group(0))
        position = match.end()
    if position < len(text):
        yield TextToken(text[position:])


def by_position(citations: Optional[Sequence[str]]) -> CitationResolver:
    """Resolve ``[k]`` to ``citations[k - 1]``; only http(s) urls resolve"""
    urls = list(citations or [])

    def resolve(number: int) -> Optional[str]:
        if 1 <= number <= len(urls):
            url = urls[number - 1]
            return url if is_web_url(url) else None
        return None

    return resolve


def by_number(citations: Mapping[int, str]) -> CitationResolver:
    """Resolve ``[k]`` against declared citation numbers"""

    def resolve(number: int) -> Optional[str]:
        url = citations.get(number)
        return url if url and is_web_url(url) else None

    return resolve
