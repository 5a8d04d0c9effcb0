"""Template file loading (JSON or YAML)."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from smarttools.templates.models import NoteTemplate


def load_template(path: Path) -> NoteTemplate:
    """Load and validate a template file.

    The file holds either a list of sections or a mapping with a ``sections``
    key plus optional ``name``, ``setting`` and ``visit_type``.
    """

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Template file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML/JSON in template file: {path}") from exc

    if isinstance(raw, list):
        raw = {"name": path.stem, "sections": raw}
    if not isinstance(raw, dict):
        raise ValueError(f"Template file must contain a mapping or a list: {path}")

    try:
        return NoteTemplate.model_validate(_normalize_keys(raw))
    except ValidationError as exc:
        raise ValueError(f"Invalid template schema: {path}") from exc


def _normalize_keys(raw: dict[object, object]) -> dict[object, object]:
    normalized = dict(raw)
    if "visitType" in normalized and "visit_type" not in normalized:
        normalized["visit_type"] = normalized.pop("visitType")
    return normalized
