from __future__ import annotations

from pathlib import Path

import pytest

from smarttools.prompts.manifest_loader import load_manifest


def test_load_default_manifest() -> None:
    manifest = load_manifest()

    assert manifest.version == "1"
    assert manifest.clinical.smarttools_rules.startswith("CRITICAL SMARTTOOLS INSTRUCTIONS:")
    assert "Moonlit Psychiatry" in manifest.clinical.smartlink_examples
    assert manifest.forensic.default_hospital == "Huntsman Mental Health Institute"


def test_load_manifest_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Manifest file not found"):
        load_manifest(tmp_path / "missing.yaml")


def test_load_manifest_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "manifest.yaml"
    path.write_text("version: [1", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML in manifest file"):
        load_manifest(path)


def test_load_manifest_requires_mapping(tmp_path: Path) -> None:
    path = tmp_path / "manifest.yaml"
    path.write_text("- one\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_manifest(path)


def test_load_manifest_invalid_schema(tmp_path: Path) -> None:
    path = tmp_path / "manifest.yaml"
    path.write_text("version: 2\nclinical: {}\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid manifest schema"):
        load_manifest(path)
