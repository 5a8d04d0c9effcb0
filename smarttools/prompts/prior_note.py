"""Extraction of reusable facts from a previous clinical note."""

from __future__ import annotations

import re
from dataclasses import dataclass

_PATIENT_RE = re.compile(r"Patient:\s*([A-Z][a-z]+)\s+([A-Z][a-z]+)", re.IGNORECASE)
_PROVIDER_RE = re.compile(r"Provider:\s*([^\n]+)", re.IGNORECASE)
_DATE_RE = re.compile(r"Date of Service:\s*([^\n]+)", re.IGNORECASE)
_PLAN_HEADER_RE = re.compile(r"^\s*plan\s*:?\s*$", re.IGNORECASE)
# A blank line followed by a capitalized line, or a rule, ends the plan.
_SECTION_BREAK_RE = re.compile(r"^(?:[A-Z]|---)")


@dataclass(frozen=True)
class PriorNoteData:
    patient_first_name: str | None = None
    patient_last_name: str | None = None
    provider_name: str | None = None
    date_of_service: str | None = None
    plan_section: str | None = None

    @property
    def patient_name(self) -> str | None:
        if self.patient_first_name and self.patient_last_name:
            return f"{self.patient_first_name} {self.patient_last_name}"
        return None


def extract_prior_note(text: str) -> PriorNoteData:
    """Pull patient name, provider, date of service and Plan from a note.

    Fields that cannot be found are left as ``None``; this never raises.
    """

    patient = _PATIENT_RE.search(text)
    provider = _PROVIDER_RE.search(text)
    date = _DATE_RE.search(text)
    return PriorNoteData(
        patient_first_name=patient.group(1) if patient else None,
        patient_last_name=patient.group(2) if patient else None,
        provider_name=provider.group(1).strip() if provider else None,
        date_of_service=date.group(1).strip() if date else None,
        plan_section=_extract_plan(text),
    )


def format_prior_note(data: PriorNoteData) -> str:
    lines: list[str] = []
    if data.patient_name:
        lines.append(f"Patient Name: {data.patient_name}")
    if data.provider_name:
        lines.append(f"Provider: {data.provider_name}")
    if data.date_of_service:
        lines.append(f"Previous Date of Service: {data.date_of_service}")
    if data.plan_section:
        lines.append("")
        lines.append("Previous Plan (baseline to modify):")
        lines.append(data.plan_section)
    return "\n".join(lines)


def _extract_plan(text: str) -> str | None:
    lines = text.splitlines()
    start = next(
        (index + 1 for index, line in enumerate(lines) if _PLAN_HEADER_RE.match(line)),
        None,
    )
    if start is None:
        return None

    collected: list[str] = []
    previous_blank = False
    for line in lines[start:]:
        if line.startswith("---"):
            break
        if previous_blank and collected and _SECTION_BREAK_RE.match(line):
            break
        previous_blank = not line.strip()
        if line.strip():
            collected.append(line.strip())

    return "\n".join(collected) or None
