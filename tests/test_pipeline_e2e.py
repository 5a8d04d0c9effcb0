from __future__ import annotations

import logging

import pytest

from smarttools.catalog.loader import parse_catalog
from smarttools.orchestrator.pipeline import prepare_prompt, review_output
from smarttools.prompts.models import GenerationContext
from smarttools.templates.forensic import CRITERION_TITLES, FORENSIC_SECTIONS, FORENSIC_TEMPLATE
from smarttools.templates.models import NoteTemplate, TemplateSection
from smarttools.utils.errors import MissingRequiredContextError


def _template() -> NoteTemplate:
    return NoteTemplate(
        name="Moonlit Follow-up",
        setting="Moonlit Psychiatry",
        visit_type="Intake",
        sections=[
            TemplateSection(order=1, name="Interval History", content="@FNAME@ reports ***"),
            TemplateSection(order=2, name="Plan", content="Sleep {Sleep:304120106}"),
        ],
    )


def _forensic_report(verdicts: tuple[str, ...]) -> str:
    lines = [f"{section.name.upper()}\nDocumented." for section in FORENSIC_SECTIONS]
    for number, (title, verdict) in enumerate(zip(CRITERION_TITLES, verdicts), start=1):
        lines.append(f"**Criterion {number}: {title}**\n{verdict} — supported by interview")
    return "\n\n".join(lines)


def test_prepare_prompt_fills_context_from_template(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="smarttools.pipeline")

    compiled = prepare_prompt(_template(), GenerationContext(transcript="Slept well."))

    assert "TEMPLATE: Moonlit Follow-up" in compiled.text
    assert "Setting: Moonlit Psychiatry" in compiled.text
    assert "Visit Type: Intake" in compiled.text
    assert f"hash={compiled.fingerprint}" in caplog.text


def test_prepare_prompt_aborts_before_generation_without_prior_note() -> None:
    template = _template().model_copy(update={"visit_type": "Follow-up"})

    with pytest.raises(MissingRequiredContextError) as exc_info:
        prepare_prompt(template, GenerationContext(transcript="Slept well."))

    assert exc_info.value.field == "prior_note"


def test_review_output_clinical_receipt(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="smarttools.pipeline")
    template = _template()
    compiled = prepare_prompt(template, GenerationContext(transcript="Slept well."))
    catalog = parse_catalog(
        {
            "sleep": {
                "epicId": "304120106",
                "displayName": "Sleep Quality",
                "options": [{"value": "Good quality", "order": 1}],
            }
        }
    )

    receipt = review_output(
        'Interval History: John reports improvement.\nPlan: Sleep {Sleep:304120106:: "Bad"}',
        template,
        compiled,
        catalog=catalog,
    )

    assert receipt.criteria is None
    assert receipt.prompt_hash == compiled.fingerprint
    codes = [issue.code for issue in receipt.validation_result.issues]
    assert codes == ["UNTRANSLATED_ARTIFACT", "SMARTLIST_INVALID_VALUE"]
    assert "note invalid" in caplog.text


def test_review_output_forensic_attaches_criteria() -> None:
    context = GenerationContext(mode="forensic", transcript="Interview text.")
    compiled = prepare_prompt(FORENSIC_TEMPLATE, context)

    receipt = review_output(
        _forensic_report(("YES", "NO", "YES", "YES", "YES")),
        FORENSIC_TEMPLATE,
        compiled,
    )

    assert compiled.mode == "forensic"
    assert receipt.validation_result.valid is True
    assert receipt.validation_result.issues[0].code == "WORD_COUNT_OUT_OF_RANGE"
    assert receipt.criteria is not None
    assert receipt.criteria.criterion_2 is False
    assert receipt.criteria.all_met is False

    payload = receipt.to_payload()
    assert sorted(payload) == ["criteria", "promptHash", "promptVersion", "validationResult"]
    assert payload["promptVersion"] == "1"
    assert payload["criteria"]["criterion_4"] is True


def test_review_output_checks_formatting_for_clinical_notes_only() -> None:
    template = _template()
    compiled = prepare_prompt(template, GenerationContext(transcript="Slept well."))

    receipt = review_output(
        "Interval History\n- sleeping better\n\nPlan\n- continue current dose",
        template,
        compiled,
    )

    assert [issue.code for issue in receipt.validation_result.issues] == [
        "FORMAT_BULLETS_OUTSIDE_PLAN"
    ]

    forensic = prepare_prompt(
        FORENSIC_TEMPLATE, GenerationContext(mode="forensic", transcript="Interview text.")
    )
    report = "- " + _forensic_report(("YES",) * 5)
    forensic_receipt = review_output(report, FORENSIC_TEMPLATE, forensic)

    codes = [issue.code for issue in forensic_receipt.validation_result.issues]
    assert "FORMAT_BULLETS_OUTSIDE_PLAN" not in codes
    assert forensic_receipt.validation_result.valid is True
