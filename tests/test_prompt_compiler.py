from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from smarttools.catalog.loader import parse_catalog
from smarttools.prompts.compiler import compile_prompt
from smarttools.prompts.fingerprint import fingerprint
from smarttools.prompts.manifest_loader import DEFAULT_MANIFEST_PATH, load_manifest
from smarttools.prompts.models import CompiledPrompt, GenerationContext
from smarttools.templates.forensic import FORENSIC_SECTIONS
from smarttools.templates.models import TemplateSection
from smarttools.utils.errors import MissingRequiredContextError

_SECTIONS = [
    TemplateSection(order=2, name="Plan", content="Continue *** and follow up in {Weeks:555}."),
    TemplateSection(order=1, name="HPI", content="@FNAME@ reports mood {Mood:304120108}. ***"),
]

_CATALOG = parse_catalog(
    {
        "mood": {
            "epicId": "304120108",
            "displayName": "Mood",
            "options": [
                {"value": "Euthymic", "order": 1},
                {"value": "Anxious", "order": 2, "isDefault": True},
            ],
        }
    }
)


def _clinical(**overrides: object) -> GenerationContext:
    payload: dict[str, object] = {
        "mode": "clinical",
        "transcript": "Patient reports feeling anxious but sleeping better.",
        "setting": "Moonlit Psychiatry",
        "visit_type": "Intake",
        "template_name": "Moonlit Intake",
    }
    payload.update(overrides)
    return GenerationContext.model_validate(payload)


def test_fingerprint_is_sha256_hex() -> None:
    digest = fingerprint("abc")

    assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
    assert fingerprint("abd") != digest


def test_compile_is_deterministic_and_fingerprinted() -> None:
    first = compile_prompt(_SECTIONS, _clinical())
    second = compile_prompt(list(_SECTIONS), _clinical())

    assert first.text == second.text
    assert first.fingerprint == second.fingerprint == fingerprint(first.text)
    assert first.prompt_version == "1"
    assert first.mode == "clinical"


def test_changing_one_character_changes_fingerprint() -> None:
    base = compile_prompt(_SECTIONS, _clinical())
    changed = compile_prompt(
        _SECTIONS, _clinical(transcript="Patient reports feeling anxious but sleeping better!")
    )

    assert base.fingerprint != changed.fingerprint


def test_clinical_prompt_orders_blocks_and_sections() -> None:
    text = compile_prompt(_SECTIONS, _clinical()).text

    markers = [
        "ROLE:",
        "TASK:",
        "CRITICAL SMARTTOOLS INSTRUCTIONS:",
        "SMARTLINK EXAMPLES FOR THIS SETTING:",
        "TEMPLATE: Moonlit Intake",
        "--- HPI ---",
        "--- Plan ---",
        "TRANSCRIPT:",
        "OUTPUT INSTRUCTIONS:",
    ]
    positions = [text.index(marker) for marker in markers]
    assert positions == sorted(positions)


def test_clinical_prompt_keeps_tokens_verbatim() -> None:
    text = compile_prompt(_SECTIONS, _clinical(), catalog=_CATALOG).text

    assert "@FNAME@ reports mood {Mood:304120108}. ***" in text
    assert "{Weeks:555}" in text
    assert "=== SMARTLIST DEFINITIONS ===" in text
    assert "SmartList: Mood (ID: 304120108)" in text


def test_clinical_prompt_omits_absent_optional_blocks() -> None:
    text = compile_prompt(_SECTIONS, _clinical(setting=None, transcript="")).text

    assert "SMARTLINK EXAMPLES" not in text
    assert "SMARTLIST DEFINITIONS" not in text
    assert "PATIENT CLINICAL CONTEXT" not in text
    assert "PREVIOUS NOTE" not in text
    assert "TRANSCRIPT:" not in text
    assert "Setting:" not in text


def test_clinical_prompt_includes_history_and_previous_note_for_intake() -> None:
    text = compile_prompt(
        _SECTIONS,
        _clinical(patient_history="Two prior admissions.", prior_note="Old note body."),
    ).text

    assert "PATIENT CLINICAL CONTEXT:\nTwo prior admissions." in text
    assert "PREVIOUS NOTE (for context only - do not copy verbatim):\nOld note body." in text
    assert "FOLLOW-UP VISIT INSTRUCTIONS" not in text


@pytest.mark.parametrize("visit_type", ["Follow-up", "Transfer of Care", "follow-up"])
def test_follow_up_requires_prior_note(visit_type: str) -> None:
    with pytest.raises(MissingRequiredContextError) as exc_info:
        compile_prompt(_SECTIONS, _clinical(visit_type=visit_type, prior_note="   "))

    assert exc_info.value.mode == "clinical"
    assert exc_info.value.field == "prior_note"


def test_follow_up_uses_extracted_prior_note_facts() -> None:
    prior_note = (
        "Patient: Jane Doe\n"
        "Provider: Dr. Smith\n"
        "Date of Service: 2024-01-05\n"
        "\n"
        "Plan:\n"
        "1. Continue sertraline 50 mg\n"
        "2. Return in 4 weeks\n"
        "\n"
        "Signed electronically\n"
    )

    text = compile_prompt(_SECTIONS, _clinical(visit_type="Follow-up", prior_note=prior_note)).text

    assert "FOLLOW-UP VISIT INSTRUCTIONS:" in text
    assert "Patient Name: Jane Doe" in text
    assert "Provider: Dr. Smith" in text
    assert "1. Continue sertraline 50 mg\n2. Return in 4 weeks" in text
    assert "PREVIOUS NOTE (for context only" not in text


def test_forensic_requires_transcript() -> None:
    context = GenerationContext(mode="forensic", transcript=" \n")

    with pytest.raises(MissingRequiredContextError) as exc_info:
        compile_prompt(FORENSIC_SECTIONS, context)

    assert exc_info.value.mode == "forensic"
    assert exc_info.value.field == "transcript"


def test_forensic_prompt_structure() -> None:
    context = GenerationContext(
        mode="forensic",
        transcript="Examiner: Why are you here? Patient: They brought me in.",
        patient_name="J. Doe",
        hearing_date="2024-03-01",
        examiner_notes="Poor eye contact.",
    )

    compiled = compile_prompt(FORENSIC_SECTIONS, context)
    text = compiled.text

    assert compiled.mode == "forensic"
    assert "UTAH INVOLUNTARY COMMITMENT LAW" in text
    assert "Keep the total report to 800-1000 words." in text
    assert "**Patient:** J. Doe" in text
    assert "**Hospital:** Huntsman Mental Health Institute" in text
    assert "**Commitment Type:** 30-day" in text
    assert "**EXAMINER'S HANDWRITTEN NOTES:**\nPoor eye contact." in text
    assert "CLINICAL NOTES (HISTORICAL CONTEXT)" not in text
    assert "SECTION 1: PATIENT IDENTIFICATION" in text
    assert "SECTION 10:" in text
    assert "Generate ALL 10 sections in order" in text
    assert text.index("SECTION 8:") < text.index("OUTPUT REQUIREMENTS")


def test_forensic_ignores_prior_note_requirement() -> None:
    context = GenerationContext(mode="forensic", transcript="text", visit_type="Follow-up")

    assert compile_prompt(FORENSIC_SECTIONS, context).mode == "forensic"


def test_custom_manifest_version_flows_into_prompt(tmp_path: Path) -> None:
    manifest_text = DEFAULT_MANIFEST_PATH.read_text(encoding="utf-8")
    path = tmp_path / "manifest.yaml"
    path.write_text(manifest_text.replace('version: "1"', 'version: "7"'), encoding="utf-8")

    compiled = compile_prompt(_SECTIONS, _clinical(), manifest=load_manifest(path))

    assert compiled.prompt_version == "7"


def test_compiled_prompt_rejects_foreign_fingerprint() -> None:
    compiled = compile_prompt(_SECTIONS, _clinical())

    assert CompiledPrompt.model_validate(compiled.model_dump()) == compiled
    with pytest.raises(ValidationError, match="fingerprint does not match prompt text"):
        CompiledPrompt(
            text="real prompt", fingerprint="deadbeef", prompt_version="1", mode="clinical"
        )
