"""Data models for SmartTools token scanning, highlighting, and inventories."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TokenType(str, Enum):
    """Closed set of SmartTools token kinds."""

    SMART_LINK = "smartlink"
    DOT_PHRASE = "dotphrase"
    WILDCARD = "wildcard"
    SMART_LIST = "smartlist"


@dataclass(frozen=True)
class Token:
    """A SmartTools token found in template text.

    ``start``/``end`` are offsets into the scanned string (end exclusive).
    ``catalog_id`` is only set for SmartList tokens.
    """

    type: TokenType
    raw: str
    start: int
    end: int
    identifier: str
    catalog_id: str | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "type": self.type.value,
            "raw": self.raw,
            "start": self.start,
            "end": self.end,
            "identifier": self.identifier,
            "catalog_id": self.catalog_id,
        }


@dataclass(frozen=True)
class HighlightSpan:
    """Presentation span for one token."""

    start: int
    end: int
    type: TokenType

    def as_dict(self) -> dict[str, object]:
        return {"start": self.start, "end": self.end, "type": self.type.value}


@dataclass(frozen=True)
class SmartListRef:
    """SmartList placeholder reference, unique per catalog id."""

    catalog_id: str
    display_name: str


@dataclass(frozen=True)
class SmartToolsSummary:
    """Token counts per type (not deduplicated)."""

    smart_links: int = 0
    dot_phrases: int = 0
    wildcards: int = 0
    smart_lists: int = 0

    @property
    def total(self) -> int:
        return self.smart_links + self.dot_phrases + self.wildcards + self.smart_lists

    def __add__(self, other: SmartToolsSummary) -> SmartToolsSummary:
        if not isinstance(other, SmartToolsSummary):
            return NotImplemented
        return SmartToolsSummary(
            smart_links=self.smart_links + other.smart_links,
            dot_phrases=self.dot_phrases + other.dot_phrases,
            wildcards=self.wildcards + other.wildcards,
            smart_lists=self.smart_lists + other.smart_lists,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "smart_links": self.smart_links,
            "dot_phrases": self.dot_phrases,
            "wildcards": self.wildcards,
            "smart_lists": self.smart_lists,
            "total": self.total,
        }
