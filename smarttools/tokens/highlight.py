"""Highlight spans for editor rendering."""

from __future__ import annotations

from smarttools.tokens.models import HighlightSpan
from smarttools.tokens.scanner import scan


def highlight(content: str) -> list[HighlightSpan]:
    """Map scanned tokens to ordered, non-overlapping spans."""

    return [
        HighlightSpan(start=token.start, end=token.end, type=token.type)
        for token in scan(content)
    ]


def render_markup(content: str) -> str:
    """Render a plain-text preview with each token wrapped as ``[[type:raw]]``."""

    chunks: list[str] = []
    cursor = 0
    for span in highlight(content):
        chunks.append(content[cursor : span.start])
        chunks.append(f"[[{span.type.value}:{content[span.start : span.end]}]]")
        cursor = span.end
    chunks.append(content[cursor:])
    return "".join(chunks)
