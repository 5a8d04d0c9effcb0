"""Token-preserving text transforms used when preparing Epic output."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from smarttools.tokens.models import TokenType
from smarttools.tokens.scanner import scan

_SELECTED_SMARTLIST_RE = re.compile(r"\{([^{}:\n]+):([^{}:\n]+)::\s*\"([^\"]*)\"\s*\}")


@dataclass(frozen=True)
class SmartListSelection:
    """Parsed SmartList text, with the chosen value when one was recorded."""

    display_name: str
    catalog_id: str
    selected_value: str | None = None


def smartlinks_to_dotphrases(content: str) -> str:
    """Rewrite every ``@IDENT@`` as ``.IDENT``."""

    return _replace_tokens(
        content,
        {TokenType.SMART_LINK},
        lambda token: f".{token.identifier}",
    )


def replace_wildcards(content: str, replacements: Sequence[str]) -> str:
    """Fill wildcards in order; wildcards past the end of ``replacements`` stay."""

    remaining = iter(replacements)
    return _replace_tokens(
        content,
        {TokenType.WILDCARD},
        lambda token: next(remaining, token.raw),
    )


def format_smartlist_selection(display_name: str, catalog_id: str, selected_value: str) -> str:
    return f'{{{display_name}:{catalog_id}:: "{selected_value}"}}'


def parse_smartlist_selection(text: str) -> SmartListSelection | None:
    """Parse ``{Display:ID}`` or ``{Display:ID:: "value"}``."""

    selected = _SELECTED_SMARTLIST_RE.search(text)
    if selected is not None:
        return SmartListSelection(
            display_name=selected.group(1).strip(),
            catalog_id=selected.group(2).strip(),
            selected_value=selected.group(3),
        )

    for token in scan(text):
        if token.type is TokenType.SMART_LIST and token.catalog_id is not None:
            return SmartListSelection(display_name=token.identifier, catalog_id=token.catalog_id)
    return None


def find_smartlist_selections(text: str) -> list[SmartListSelection]:
    """All ``{Display:ID:: "value"}`` selections in order of appearance."""

    return [
        SmartListSelection(
            display_name=match.group(1).strip(),
            catalog_id=match.group(2).strip(),
            selected_value=match.group(3),
        )
        for match in _SELECTED_SMARTLIST_RE.finditer(text)
    ]


def _replace_tokens(content: str, types: set[TokenType], render) -> str:
    chunks: list[str] = []
    cursor = 0
    for token in scan(content):
        if token.type not in types:
            continue
        chunks.append(content[cursor : token.start])
        chunks.append(render(token))
        cursor = token.end
    chunks.append(content[cursor:])
    return "".join(chunks)
