from __future__ import annotations

from apps.cli.format_human import render_validation_summary
from smarttools.validate.models import CriteriaAssessment, ValidationIssue, ValidationResult


def test_render_summary_for_valid_result() -> None:
    text = render_validation_summary(ValidationResult.from_issues([]))

    assert text.splitlines() == [
        "validation_summary:",
        "strict=false",
        "result=VALID",
        "errors: none",
        "warnings: none",
        "suggestion: none",
    ]


def test_render_summary_counts_codes_and_suggests_review_for_artifacts() -> None:
    result = ValidationResult.from_issues(
        [
            ValidationIssue(code="SECTION_MISSING", message="Section 'Plan' missing"),
            ValidationIssue(code="SECTION_MISSING", message="Section 'HPI' missing"),
            ValidationIssue(code="UNTRANSLATED_ARTIFACT", message="artifact"),
            ValidationIssue(code="UNRESOLVED_WILDCARD", message="wildcard", severity="warn"),
        ]
    )

    text = render_validation_summary(result, strict=True)

    assert "result=INVALID" in text
    assert "errors: SECTION_MISSING=2, UNTRANSLATED_ARTIFACT=1" in text
    assert "warnings: UNRESOLVED_WILDCARD=1" in text
    assert "error: Section 'Plan' missing" in text
    assert "warning: wildcard" in text
    assert text.endswith(
        "suggestion: SmartTools survived generation; review the note before pasting into Epic."
    )


def test_render_summary_includes_criteria() -> None:
    criteria = CriteriaAssessment(criterion_1=True, criterion_3=True)
    result = ValidationResult.from_issues(
        [ValidationIssue(code="WORD_COUNT_OUT_OF_RANGE", message="long", severity="warn")]
    )

    text = render_validation_summary(result, criteria=criteria)

    assert (
        "criteria: criterion_1=YES criterion_2=NO criterion_3=YES criterion_4=NO criterion_5=NO"
        in text
    )
    assert "all_criteria_met=false" in text
    assert "suggestion: warn-only issues detected; note is usable after clinician review." in text
