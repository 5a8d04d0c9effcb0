"""Structural validation of generated notes against their template."""

from __future__ import annotations

import re
from collections.abc import Iterable

from smarttools.templates.models import TemplateSection
from smarttools.tokens.models import TokenType
from smarttools.tokens.scanner import scan
from smarttools.validate.models import ValidationIssue, ValidationResult

_ARTIFACT_TYPES = {TokenType.SMART_LINK, TokenType.SMART_LIST}

_PLAN_HEADING_RE = re.compile(r"^[ \t*#_]*plan\b", re.IGNORECASE | re.MULTILINE)
_BULLET_RE = re.compile(r"^[ \t]*[-*•·][ \t]+", re.MULTILINE)
_NUMBERED_RE = re.compile(r"^[ \t]*\d+[.)][ \t]+", re.MULTILINE)
_BLANK_RUN_RE = re.compile(r"\n[ \t]*\n[ \t]*\n")


def validate_note(generated_text: str, sections: Iterable[TemplateSection]) -> ValidationResult:
    """Check section completeness and leftover SmartTools in generated output.

    Missing sections and untranslated SmartLinks/SmartLists are errors;
    leftover wildcards are a single warning.
    """

    issues: list[ValidationIssue] = []
    lowered = generated_text.lower()

    for section in sorted(sections, key=lambda item: item.order):
        if section.name.lower() not in lowered:
            issues.append(
                ValidationIssue(
                    code="SECTION_MISSING",
                    message=f"Section '{section.name}' missing from generated note",
                    context={"section": section.name, "order": section.order},
                )
            )

    tokens = scan(generated_text)
    wildcards = [token for token in tokens if token.type is TokenType.WILDCARD]
    artifacts = [token for token in tokens if token.type in _ARTIFACT_TYPES]

    if wildcards:
        issues.append(
            ValidationIssue(
                code="UNRESOLVED_WILDCARD",
                message="Unresolved placeholder in output",
                severity="warn",
                context={"count": len(wildcards), "offsets": [token.start for token in wildcards]},
            )
        )

    if artifacts:
        issues.append(
            ValidationIssue(
                code="UNTRANSLATED_ARTIFACT",
                message="Untranslated SmartTool artifact in output",
                context={"tokens": [token.raw for token in artifacts]},
            )
        )

    return ValidationResult.from_issues(issues)


def validate_formatting(generated_text: str) -> ValidationResult:
    """Paragraph-format rules for clinical notes.

    Bullets and numbered lists are only allowed from the Plan heading on;
    runs of blank lines are a warning.
    """

    text = generated_text.replace("\r\n", "\n").replace("\r", "\n")
    plan = _PLAN_HEADING_RE.search(text)
    before_plan = text[: plan.start()] if plan else text
    issues: list[ValidationIssue] = []

    bullet = _BULLET_RE.search(before_plan)
    if bullet:
        issues.append(
            ValidationIssue(
                code="FORMAT_BULLETS_OUTSIDE_PLAN",
                message="Bullet points found outside Plan section. Use paragraph format only.",
                context={"offset": bullet.start()},
            )
        )

    numbered = _NUMBERED_RE.search(before_plan)
    if numbered:
        issues.append(
            ValidationIssue(
                code="FORMAT_NUMBERED_OUTSIDE_PLAN",
                message="Numbered lists found outside Plan section. Use paragraph format only.",
                context={"offset": numbered.start()},
            )
        )

    if _BLANK_RUN_RE.search(text):
        issues.append(
            ValidationIssue(
                code="FORMAT_BLANK_LINES",
                message=(
                    "Multiple consecutive blank lines found. "
                    "Use single blank lines between sections."
                ),
                severity="warn",
            )
        )

    return ValidationResult.from_issues(issues)
