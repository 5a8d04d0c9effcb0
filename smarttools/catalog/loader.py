"""SmartList catalog file loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from smarttools.catalog.models import SmartListCatalogEntry

_RESERVED_KEYS = {"smartLists", "groups"}


def load_catalog(path: Path) -> dict[str, SmartListCatalogEntry]:
    """Load a catalog file into a mapping keyed by catalog id.

    Entries are read from a nested ``smartLists`` object and from top-level
    keys (older catalog layout). The top-level key is used as the entry
    ``identifier`` when the entry does not name one.
    """

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Catalog file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML/JSON in catalog file: {path}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Catalog file must contain a mapping: {path}")

    return parse_catalog(raw, source=str(path))


def parse_catalog(
    raw: dict[str, Any], *, source: str = "<inline>"
) -> dict[str, SmartListCatalogEntry]:
    """Validate already-decoded catalog data."""

    candidates: list[tuple[str, Any]] = []
    nested = raw.get("smartLists")
    if isinstance(nested, dict):
        candidates.extend(nested.items())
    candidates.extend(
        (key, value)
        for key, value in raw.items()
        if key not in _RESERVED_KEYS and _looks_like_entry(value)
    )

    catalog: dict[str, SmartListCatalogEntry] = {}
    for key, value in candidates:
        if not _looks_like_entry(value):
            continue
        payload = dict(value)
        payload.setdefault("identifier", str(key))
        try:
            entry = SmartListCatalogEntry.model_validate(payload)
        except ValidationError as exc:
            raise ValueError(f"Invalid catalog entry '{key}' in {source}") from exc
        catalog[entry.catalog_id] = entry

    return catalog


def _looks_like_entry(value: object) -> bool:
    if not isinstance(value, dict):
        return False
    has_id = any(key in value for key in ("epicId", "catalogId", "catalog_id"))
    return has_id and "options" in value
