"""Markdown to HTML with inline citation links"""

import xml.etree.ElementTree as etree
from typing import List, Optional

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from .citation_tokenizer import CitationResolver, CitationToken, tokenize
from .web_utils import is_safe_href, is_web_url

# Children of these elements are never rewritten
_SKIP_TAGS = {"a", "code", "pre"}


def _link(url: str, label: str) -> etree.Element:
    anchor = etree.Element("a")
    anchor.set("href", url)
    anchor.set("target", "_blank")
    anchor.set("rel", "noopener noreferrer")
    anchor.text = label
    return anchor


def _split(text: str, resolve: CitationResolver) -> Optional[List[object]]:
    """Return text and link pieces, or None when nothing resolves"""
    pieces: List[object] = []
    changed = False
    for token in tokenize(text):
        url = resolve(token.number) if isinstance(token, CitationToken) else None
        if url and is_web_url(url):
            pieces.append(_link(url, token.text))
            changed = True
        elif pieces and isinstance(pieces[-1], str):
            pieces[-1] += token.text
        else:
            pieces.append(token.text)
    return pieces if changed else None


class CitationLinkProcessor(Treeprocessor):
    """Rewrite ``[n]`` markers inside paragraphs into links"""

    def __init__(self, md, resolve: CitationResolver):
        super().__init__(md)
        self.resolve = resolve

    def run(self, root):
        for paragraph in list(root.iter("p")):
            self._rewrite(paragraph)

    def _rewrite(self, element: etree.Element) -> None:
        for child in list(element):
            if child.tag not in _SKIP_TAGS:
                self._rewrite(child)
            self._rewrite_tail(element, child)
        self._rewrite_text(element)

    def _rewrite_text(self, element: etree.Element) -> None:
        pieces = _split(element.text or "", self.resolve)
        if pieces is None:
            return
        element.text = None
        for offset, piece in enumerate(self._attach(pieces, element, None)):
            element.insert(offset, piece)

    def _rewrite_tail(self, parent: etree.Element, child: etree.Element) -> None:
        pieces = _split(child.tail or "", self.resolve)
        if pieces is None:
            return
        child.tail = None
        index = list(parent).index(child) + 1
        for offset, piece in enumerate(self._attach(pieces, parent, child)):
            parent.insert(index + offset, piece)

    @staticmethod
    def _attach(pieces, parent, previous):
        """Fold plain strings into text/tail and return the new elements in order"""
        elements = []
        for piece in pieces:
            if isinstance(piece, str):
                if elements:
                    elements[-1].tail = (elements[-1].tail or "") + piece
                elif previous is not None:
                    previous.tail = (previous.tail or "") + piece
                else:
                    parent.text = (parent.text or "") + piece
            else:
                elements.append(piece)
        return elements


class CitationLinkExtension(Extension):
    """Python-Markdown extension wiring in :class:`CitationLinkProcessor`"""

    def __init__(self, resolve: CitationResolver, **kwargs):
        self.resolve = resolve
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        # After inline patterns (priority 20) so emphasis and links already exist
        md.treeprocessors.register(CitationLinkProcessor(md, self.resolve), "citation_links", 15)


class UnsafeLinkProcessor(Treeprocessor):
    """Drop href and src attributes that point outside the web"""

    def run(self, root):
        for element in root.iter():
            for attribute in ("href", "src"):
                value = element.get(attribute)
                if value is not None and not is_safe_href(value):
                    del element.attrib[attribute]


class SafeHtmlExtension(Extension):
    """Treat raw HTML in model output as text and strip script urls"""

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        md.treeprocessors.register(UnsafeLinkProcessor(md), "unsafe_links", 5)


def render_markdown(text: str, resolve: Optional[CitationResolver] = None, tables: bool = False) -> str:
    """Render markdown to HTML

    Raw HTML in ``text`` is escaped rather than passed through.

    Args:
        text: Markdown source
        resolve: Optional citation resolver; markers are left alone when omitted
        tables: Enable the GFM-style table extension

    Returns:
        HTML fragment
    """
    extensions: List[object] = [SafeHtmlExtension()]
    if tables:
        extensions.append("tables")
    if resolve is not None:
        extensions.append(CitationLinkExtension(resolve))
    return markdown.markdown(text, extensions=extensions)
