"""CLI I/O helpers for input loading and atomic output writing."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from smarttools.prompts.models import CompiledPrompt


def read_text_input(path: Path | None) -> str | None:
    """Read an optional UTF-8 text input file."""

    if path is None:
        return None
    return path.read_text(encoding="utf-8")


def load_compiled_prompt(path: Path) -> CompiledPrompt:
    """Load a prompt artifact written by ``smarttools compile --out``."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in prompt file: {path}") from exc
    if not isinstance(raw, dict):
        raise ValueError("Prompt JSON must be an object")
    try:
        return CompiledPrompt.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid prompt schema: {path}") from exc


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Write one JSON artifact atomically using a temporary file + replace."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, separators=(",", ":"))

    tmp_path.replace(path)


def write_text_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, raw_tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f"{path.name}.",
        suffix=".tmp",
    )
    os.close(fd)
    tmp_path = Path(raw_tmp_path)

    try:
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(path)
    except Exception:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)
        raise
