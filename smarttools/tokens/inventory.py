"""Identifier inventories and token statistics for template text."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from functools import reduce

from smarttools.templates.models import TemplateSection
from smarttools.tokens.models import SmartListRef, SmartToolsSummary, TokenType
from smarttools.tokens.scanner import scan


def extract_smartlink_identifiers(content: str) -> list[str]:
    """Return sorted, unique SmartLink identifiers (case-sensitive)."""

    return sorted(
        {token.identifier for token in scan(content) if token.type is TokenType.SMART_LINK}
    )


def extract_dotphrase_identifiers(content: str) -> list[str]:
    """Return sorted, unique DotPhrase identifiers."""

    return sorted(
        {token.identifier for token in scan(content) if token.type is TokenType.DOT_PHRASE}
    )


def extract_smartlists(content: str) -> list[SmartListRef]:
    """Return one reference per catalog id; the first occurrence keeps its display name."""

    refs: list[SmartListRef] = []
    seen_ids: set[str] = set()
    for token in scan(content):
        if token.type is not TokenType.SMART_LIST or token.catalog_id is None:
            continue
        if token.catalog_id in seen_ids:
            continue
        seen_ids.add(token.catalog_id)
        refs.append(SmartListRef(catalog_id=token.catalog_id, display_name=token.identifier))
    return refs


def extract_template_smartlists(sections: Iterable[TemplateSection]) -> list[SmartListRef]:
    """Unique SmartList references across sections, in section order."""

    refs: list[SmartListRef] = []
    seen_ids: set[str] = set()
    for section in sections:
        for ref in extract_smartlists(section.content):
            if ref.catalog_id in seen_ids:
                continue
            seen_ids.add(ref.catalog_id)
            refs.append(ref)
    return refs


def summarize(content: str) -> SmartToolsSummary:
    """Count tokens per type."""

    counts: Counter[TokenType] = Counter(token.type for token in scan(content))
    return SmartToolsSummary(
        smart_links=counts[TokenType.SMART_LINK],
        dot_phrases=counts[TokenType.DOT_PHRASE],
        wildcards=counts[TokenType.WILDCARD],
        smart_lists=counts[TokenType.SMART_LIST],
    )


def summarize_template(sections: Iterable[TemplateSection]) -> SmartToolsSummary:
    """Sum of per-section summaries."""

    return reduce(
        lambda total, section: total + summarize(section.content),
        sections,
        SmartToolsSummary(),
    )


def contains_smarttools(content: str) -> bool:
    return bool(scan(content))
