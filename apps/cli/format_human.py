"""Human-readable validation summary rendering for CLI output."""

from __future__ import annotations

from collections import Counter

from smarttools.validate.models import CriteriaAssessment, ValidationResult


def render_validation_summary(
    result: ValidationResult,
    *,
    criteria: CriteriaAssessment | None = None,
    strict: bool = False,
) -> str:
    """Render one-screen human-readable validation summary."""

    lines: list[str] = []
    lines.append("validation_summary:")
    lines.append(f"strict={str(strict).lower()}")
    lines.append(f"result={'VALID' if result.valid else 'INVALID'}")

    error_counter: Counter[str] = Counter(
        issue.code for issue in result.issues if issue.severity == "error"
    )
    warning_counter: Counter[str] = Counter(
        issue.code for issue in result.issues if issue.severity == "warn"
    )
    lines.append(f"errors: {_counter_text(error_counter)}")
    lines.append(f"warnings: {_counter_text(warning_counter)}")

    for message in result.errors[:5]:
        lines.append(f"error: {message}")
    for message in result.warnings[:5]:
        lines.append(f"warning: {message}")

    if criteria is not None:
        verdicts = " ".join(
            f"{name}={'YES' if met else 'NO'}" for name, met in criteria.as_dict().items()
        )
        lines.append(f"criteria: {verdicts}")
        lines.append(f"all_criteria_met={str(criteria.all_met).lower()}")

    lines.append("suggestion: " + _build_suggestion(error_counter, warning_counter, strict))
    return "\n".join(lines)


def _counter_text(counter: Counter[str]) -> str:
    if not counter:
        return "none"
    top_items = sorted(counter.items(), key=lambda item: (-item[1], item[0]))[:5]
    return ", ".join(f"{code}={count}" for code, count in top_items)


def _build_suggestion(
    error_counter: Counter[str],
    warning_counter: Counter[str],
    strict: bool,
) -> str:
    if not error_counter and not warning_counter:
        return "none"

    if error_counter:
        if "UNTRANSLATED_ARTIFACT" in error_counter:
            return "SmartTools survived generation; review the note before pasting into Epic."
        if not strict:
            return "error-level issues detected; use --strict to fail the command on them."
        return "strict mode failed on error-level issues; correct the note and re-run."

    return "warn-only issues detected; note is usable after clinician review."
