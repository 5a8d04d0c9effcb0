"""Criteria extraction for forensic (Designated Examiner) reports.

Each criterion heading ``Criterion <n>:`` must be followed by an explicit
YES or NO. Accepted verdict positions:

- directly after the heading colon (``Criterion 1: YES``)
- after the heading's closing emphasis (``**Criterion 1: Title** YES``)
- after a separator following the title (``Criterion 1: Title - YES``)
- at the start of the next non-empty line

The verdict must be followed by end of line or a separator so that titles
such as "No Less Restrictive Alternative" are not read as a verdict.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from smarttools.templates.forensic import CRITERIA_COUNT, FORENSIC_WORD_BAND
from smarttools.validate.models import CriteriaAssessment, ValidationIssue, ValidationResult

_VERDICT_RE = re.compile(
    r"[ \t]*[*_]*[ \t]*(YES|NO)\b[*_]*[ \t]*(?=$|[-—–:,.;(])",
    re.IGNORECASE,
)
_CLOSING_EMPHASIS_RE = re.compile(r"\*\*|__")
_SEPARATOR_RE = re.compile(r"[-—–:]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class _CriterionMatch:
    number: int
    found: bool
    verdict: str | None


def count_words(text: str) -> int:
    return len([word for word in _WHITESPACE_RE.split(text) if word])


def extract_criteria(text: str) -> CriteriaAssessment:
    """Read the five YES/NO determinations; anything but YES stays False."""

    values = {
        f"criterion_{match.number}": match.verdict == "YES"
        for match in _match_all(text)
    }
    return CriteriaAssessment(**values)


def validate_criteria(
    text: str, *, word_band: tuple[int, int] = FORENSIC_WORD_BAND
) -> ValidationResult:
    issues: list[ValidationIssue] = []

    for match in _match_all(text):
        if not match.found:
            issues.append(
                ValidationIssue(
                    code="CRITERION_MISSING",
                    message=f"Criterion {match.number} heading missing from report",
                    context={"criterion": match.number},
                )
            )
        elif match.verdict is None:
            issues.append(
                ValidationIssue(
                    code="CRITERION_UNPARSEABLE",
                    message=f"Criterion {match.number} has no explicit YES/NO determination",
                    context={"criterion": match.number},
                )
            )

    minimum, maximum = word_band
    words = count_words(text)
    if not minimum <= words <= maximum:
        issues.append(
            ValidationIssue(
                code="WORD_COUNT_OUT_OF_RANGE",
                message=f"Report is {words} words; target is {minimum}-{maximum} words",
                severity="warn",
                context={"word_count": words, "minimum": minimum, "maximum": maximum},
            )
        )

    return ValidationResult.from_issues(issues)


def _match_all(text: str) -> list[_CriterionMatch]:
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return [_match_criterion(text, number) for number in range(1, CRITERIA_COUNT + 1)]


def _match_criterion(text: str, number: int) -> _CriterionMatch:
    heading_re = re.compile(rf"Criterion\s+{number}\s*:", re.IGNORECASE)
    found = False
    for heading in heading_re.finditer(text):
        found = True
        verdict = _verdict_after(text, heading.end())
        if verdict is not None:
            return _CriterionMatch(number=number, found=True, verdict=verdict)
    return _CriterionMatch(number=number, found=found, verdict=None)


def _verdict_after(text: str, position: int) -> str | None:
    line_end = text.find("\n", position)
    if line_end == -1:
        line_end = len(text)
    rest = text[position:line_end]

    match = _VERDICT_RE.match(rest)
    if match is None:
        closing = _CLOSING_EMPHASIS_RE.search(rest)
        if closing is not None:
            match = _VERDICT_RE.match(rest, closing.end())
    if match is None:
        for separator in _SEPARATOR_RE.finditer(rest):
            match = _VERDICT_RE.match(rest, separator.end())
            if match is not None:
                break
    if match is None:
        next_line = _next_non_empty_line(text, line_end)
        if next_line is not None:
            match = _VERDICT_RE.match(next_line)

    return match.group(1).upper() if match else None


def _next_non_empty_line(text: str, line_end: int) -> str | None:
    for line in text[line_end:].splitlines():
        if line.strip():
            return line
    return None
