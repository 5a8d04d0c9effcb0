"""Prompt compilation models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from smarttools.prompts.fingerprint import fingerprint as compute_fingerprint

PromptMode = Literal["clinical", "forensic"]

PRIOR_NOTE_VISIT_TYPES = frozenset({"follow-up", "transfer of care"})


class ClinicalScaffold(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    role: str
    task: str
    smarttools_rules: str
    patient_history_note: str = ""
    output_instructions: str
    smartlink_examples: dict[str, list[str]] = Field(default_factory=dict)


class ForensicScaffold(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    role: str
    law: str
    instructions: str
    examiner_notes_note: str = ""
    clinical_notes_note: str = ""
    output_requirements: str
    default_hospital: str | None = None
    default_commitment_type: str | None = None


class PromptManifest(BaseModel):
    """Versioned instructional scaffolding loaded from ``manifest.yaml``."""

    model_config = ConfigDict(extra="forbid", frozen=True, coerce_numbers_to_str=True)

    version: str
    clinical: ClinicalScaffold
    forensic: ForensicScaffold


class GenerationContext(BaseModel):
    """Per-request inputs to prompt compilation.

    Blank strings are treated the same as absent values.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: PromptMode = "clinical"
    transcript: str = ""
    prior_note: str | None = None
    patient_history: str | None = None
    setting: str | None = None
    visit_type: str | None = None
    template_name: str | None = None

    patient_name: str | None = None
    hearing_date: str | None = None
    hospital: str | None = None
    commitment_type: str | None = None
    examiner_notes: str | None = None

    @property
    def requires_prior_note(self) -> bool:
        if self.mode != "clinical" or not self.visit_type:
            return False
        return self.visit_type.strip().lower() in PRIOR_NOTE_VISIT_TYPES


class CompiledPrompt(BaseModel):
    """Prompt text plus the fingerprint recorded in note receipts.

    ``fingerprint`` must be the SHA-256 of ``text``; artifacts edited after
    compilation are rejected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: str
    fingerprint: str
    prompt_version: str
    mode: PromptMode

    @model_validator(mode="after")
    def _fingerprint_matches_text(self) -> CompiledPrompt:
        if self.fingerprint != compute_fingerprint(self.text):
            raise ValueError("fingerprint does not match prompt text")
        return self
