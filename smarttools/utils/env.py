"""Environment-variable configuration; unparseable values fall back to defaults."""

from __future__ import annotations

import os
from pathlib import Path

_DEFAULT_MAX_CONTENT_CHARS = 200_000
_FALSE_VALUES = {"0", "false", "off", "no"}


def meta_enabled() -> bool:
    raw = os.getenv("SMARTTOOLS_ENABLE_META", "1").strip().lower()
    return raw not in _FALSE_VALUES


def catalog_path() -> Path | None:
    return _optional_path("SMARTTOOLS_CATALOG_PATH")


def manifest_path() -> Path | None:
    return _optional_path("SMARTTOOLS_MANIFEST_PATH")


def max_content_chars() -> int:
    raw = os.getenv("SMARTTOOLS_MAX_CONTENT_CHARS")
    if raw is None:
        return _DEFAULT_MAX_CONTENT_CHARS
    try:
        parsed = int(raw)
    except ValueError:
        return _DEFAULT_MAX_CONTENT_CHARS
    return parsed if parsed > 0 else _DEFAULT_MAX_CONTENT_CHARS


def _optional_path(name: str) -> Path | None:
    raw = os.getenv(name, "").strip()
    return Path(raw) if raw else None
