"""Restricted rich text rendering.

Summaries and descriptions are HTML produced by the browser editor. Only
paragraphs, bold, italic, line breaks and ordered/unordered lists are
rendered; any other tag is unwrapped so its text still shows, and
``script``/``style`` contents are dropped.
"""

import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from resume_builder.schemas.layout import RichList, RichParagraph, Span

BOLD_TAGS = {"strong", "b"}
ITALIC_TAGS = {"em", "i"}
LIST_TAGS = {"ul", "ol"}
DROPPED_TAGS = {"script", "style", "head", "title"}

_WHITESPACE = re.compile(r"\s+")


def _inline_spans(node, bold: bool = False, italic: bool = False) -> list[Span]:
    """Collect formatted spans under ``node`` in document order."""
    if isinstance(node, PreformattedString):
        # comments, doctypes, CDATA
        return []
    if isinstance(node, NavigableString):
        text = _WHITESPACE.sub(" ", str(node))
        return [Span(text, bold=bold, italic=italic)] if text else []
    if not isinstance(node, Tag) or node.name in DROPPED_TAGS:
        return []
    if node.name == "br":
        return [Span("\n", bold=bold, italic=italic)]

    bold = bold or node.name in BOLD_TAGS
    italic = italic or node.name in ITALIC_TAGS
    spans: list[Span] = []
    for child in node.children:
        spans.extend(_inline_spans(child, bold, italic))
    return spans


def _merge(spans: list[Span]) -> tuple[Span, ...]:
    """Join adjacent spans with equal formatting and trim outer whitespace."""
    merged: list[Span] = []
    for span in spans:
        if merged and (merged[-1].bold, merged[-1].italic) == (span.bold, span.italic):
            merged[-1] = Span(merged[-1].text + span.text, span.bold, span.italic)
        else:
            merged.append(span)

    if merged:
        merged[0] = Span(merged[0].text.lstrip(" "), merged[0].bold, merged[0].italic)
        merged[-1] = Span(merged[-1].text.rstrip(" "), merged[-1].bold, merged[-1].italic)
    return tuple(span for span in merged if span.text)


def _paragraph(spans: list[Span]) -> RichParagraph | None:
    merged = _merge(spans)
    if not merged or not "".join(s.text for s in merged).strip():
        return None
    return RichParagraph(spans=merged)


def _list_block(tag: Tag) -> RichList | None:
    items = []
    for child in tag.find_all("li", recursive=False):
        paragraph = _paragraph(_inline_spans(child))
        if paragraph is not None:
            items.append(paragraph)
    if not items:
        return None
    return RichList(ordered=tag.name == "ol", items=tuple(items))


def _blocks(parent) -> list[RichParagraph | RichList]:
    """Split a container into block-level nodes."""
    blocks: list[RichParagraph | RichList] = []
    pending: list[Span] = []

    def flush():
        paragraph = _paragraph(pending)
        if paragraph is not None:
            blocks.append(paragraph)
        pending.clear()

    for child in parent.children:
        if isinstance(child, Tag) and child.name in DROPPED_TAGS:
            continue
        if isinstance(child, Tag) and child.name == "p":
            flush()
            paragraph = _paragraph(_inline_spans(child))
            if paragraph is not None:
                blocks.append(paragraph)
        elif isinstance(child, Tag) and child.name in LIST_TAGS:
            flush()
            block = _list_block(child)
            if block is not None:
                blocks.append(block)
        elif isinstance(child, Tag) and child.find(["p", "ul", "ol"]) is not None:
            # unknown wrapper (div, blockquote...) around block content
            flush()
            blocks.extend(_blocks(child))
        else:
            pending.extend(_inline_spans(child))
    flush()
    return blocks


def render_rich_text(html: str | None) -> tuple[RichParagraph | RichList, ...]:
    """Render restricted HTML into layout nodes.

    Args:
        html: Editor HTML, plain text, or None

    Returns:
        Tuple of paragraphs and lists; empty when there is no visible text
    """
    if not html or not html.strip():
        return ()
    soup = BeautifulSoup(html, "html.parser")
    return tuple(_blocks(soup))


def has_visible_text(html: str | None) -> bool:
    """True when the rich text renders at least one non-empty node."""
    return bool(render_rich_text(html))
