"""Template models read by the engine (owned by an external template store)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class TemplateSection(BaseModel):
    """One ordered section of a note template.

    ``content`` is raw SmartTools micro-syntax. ``instructions`` is optional
    per-section guidance for the generation step.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    order: int
    name: str
    content: str = ""
    instructions: str | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("section name must be non-empty")
        return value


class NoteTemplate(BaseModel):
    """A template: named, ordered sections for one setting and visit type."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = "Untitled Template"
    setting: str | None = None
    visit_type: str | None = None
    sections: list[TemplateSection] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_section_names(self) -> NoteTemplate:
        seen: set[str] = set()
        for section in self.sections:
            if section.name in seen:
                raise ValueError(f"duplicate section name: {section.name}")
            seen.add(section.name)
        return self

    def ordered_sections(self) -> list[TemplateSection]:
        return sorted(self.sections, key=lambda section: section.order)
