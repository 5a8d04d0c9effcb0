"""Single-pass SmartTools token scanner.

Grammar, decided by the character at the scan position:

- ``{Display:CatalogId}``  SmartList (display has no ``{}:`` or newline,
  catalog id has no ``{}`` or newline, both non-blank)
- ``@IDENT@``              SmartLink (``A-Z``, ``0-9``, ``_``)
- ``***``                  Wildcard (a run of exactly three asterisks)
- ``.phrase``              DotPhrase (lowercase letter then ``a-z0-9``), only at
  start of text, after whitespace, or right after another token

Malformed sequences are left as literal text; ``scan`` never raises.
"""

from __future__ import annotations

import re

from smarttools.tokens.models import Token, TokenType

_SMARTLIST_RE = re.compile(r"\{([^{}:\n]+):([^{}\n]+)\}")
_SMARTLINK_RE = re.compile(r"@([A-Z0-9_]+)@")
_DOTPHRASE_RE = re.compile(r"\.([a-z][a-z0-9]*)(?![A-Za-z0-9_])")
_WILDCARD = "***"


def scan(content: str) -> list[Token]:
    """Scan template text into tokens ordered by offset."""

    tokens: list[Token] = []
    if not content:
        return tokens

    position = 0
    last_end = -1
    length = len(content)

    while position < length:
        token = _match_at(content, position, last_end)
        if token is None:
            position += 1
            continue
        tokens.append(token)
        position = token.end
        last_end = token.end

    return tokens


def _match_at(content: str, position: int, last_end: int) -> Token | None:
    char = content[position]
    if char == "{":
        return _match_smartlist(content, position)
    if char == "@":
        return _match_smartlink(content, position)
    if char == "*":
        return _match_wildcard(content, position)
    if char == ".":
        return _match_dotphrase(content, position, last_end)
    return None


def _match_smartlist(content: str, position: int) -> Token | None:
    match = _SMARTLIST_RE.match(content, position)
    if match is None:
        return None
    display = match.group(1).strip()
    catalog_id = match.group(2).strip()
    if not display or not catalog_id:
        return None
    return Token(
        type=TokenType.SMART_LIST,
        raw=match.group(0),
        start=match.start(),
        end=match.end(),
        identifier=display,
        catalog_id=catalog_id,
    )


def _match_smartlink(content: str, position: int) -> Token | None:
    match = _SMARTLINK_RE.match(content, position)
    if match is None:
        return None
    return Token(
        type=TokenType.SMART_LINK,
        raw=match.group(0),
        start=match.start(),
        end=match.end(),
        identifier=match.group(1),
    )


def _match_wildcard(content: str, position: int) -> Token | None:
    if not content.startswith(_WILDCARD, position):
        return None
    if position > 0 and content[position - 1] == "*":
        return None
    end = position + len(_WILDCARD)
    if end < len(content) and content[end] == "*":
        return None
    return Token(
        type=TokenType.WILDCARD,
        raw=_WILDCARD,
        start=position,
        end=end,
        identifier="",
    )


def _match_dotphrase(content: str, position: int, last_end: int) -> Token | None:
    if not _at_word_boundary(content, position, last_end):
        return None
    match = _DOTPHRASE_RE.match(content, position)
    if match is None:
        return None
    return Token(
        type=TokenType.DOT_PHRASE,
        raw=match.group(0),
        start=match.start(),
        end=match.end(),
        identifier=match.group(1),
    )


def _at_word_boundary(content: str, position: int, last_end: int) -> bool:
    if position == 0 or position == last_end:
        return True
    return content[position - 1].isspace()
