"""Data models for structural validation, criteria extraction, and receipts."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ValidationIssue(BaseModel):
    """Single problem found in generated output."""

    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    severity: Literal["error", "warn"] = "error"
    context: dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Validation report for one generated note.

    Rules:
    - valid == (len(errors) == 0)
    - warnings never affect valid
    """

    model_config = ConfigDict(extra="forbid")

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationResult:
        errors = [issue.message for issue in issues if issue.severity == "error"]
        warnings = [issue.message for issue in issues if issue.severity == "warn"]
        return cls(valid=not errors, errors=errors, warnings=warnings, issues=list(issues))

    def merge(self, other: ValidationResult) -> ValidationResult:
        return ValidationResult.from_issues([*self.issues, *other.issues])


class CriteriaAssessment(BaseModel):
    """Determinations for the five commitment criteria; False until a YES is found."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    criterion_1: bool = False
    criterion_2: bool = False
    criterion_3: bool = False
    criterion_4: bool = False
    criterion_5: bool = False

    @property
    def all_met(self) -> bool:
        return all(self.as_dict().values())

    def as_dict(self) -> dict[str, bool]:
        return self.model_dump()


class NoteReceipt(BaseModel):
    """Audit metadata returned alongside a generated note."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    prompt_version: str = Field(alias="promptVersion")
    prompt_hash: str = Field(alias="promptHash")
    validation_result: ValidationResult = Field(alias="validationResult")
    criteria: CriteriaAssessment | None = None

    def to_payload(self) -> dict[str, Any]:
        """Flat JSON-compatible payload with camelCase keys."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
