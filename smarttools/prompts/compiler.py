"""Deterministic prompt compilation for clinical and forensic notes.

Compilation only orders and concatenates text: templates, transcripts and
catalog definitions are never rewritten, and the output carries no
timestamps, so identical inputs produce byte-identical prompts.
"""

from __future__ import annotations

from collections.abc import Iterable

from smarttools.catalog.models import Catalog
from smarttools.catalog.resolver import export_definitions
from smarttools.prompts.fingerprint import fingerprint
from smarttools.prompts.manifest_loader import load_manifest
from smarttools.prompts.models import (
    ClinicalScaffold,
    CompiledPrompt,
    ForensicScaffold,
    GenerationContext,
    PromptManifest,
)
from smarttools.prompts.prior_note import extract_prior_note, format_prior_note
from smarttools.templates.forensic import FORENSIC_WORD_BAND
from smarttools.templates.models import TemplateSection
from smarttools.tokens.inventory import extract_template_smartlists
from smarttools.utils.errors import MissingRequiredContextError

_RULE = "=" * 59
_SECTION_RULE = "-" * 53


def compile_prompt(
    sections: Iterable[TemplateSection],
    context: GenerationContext,
    *,
    manifest: PromptManifest | None = None,
    catalog: Catalog | None = None,
) -> CompiledPrompt:
    """Assemble the generation prompt for ``context.mode``.

    Raises MissingRequiredContextError when the mode's mandatory input is
    blank: the transcript for forensic reports, the prior note for clinical
    Follow-up and Transfer of Care visits.
    """

    active_manifest = manifest or load_manifest()
    ordered = sorted(sections, key=lambda section: section.order)

    if context.mode == "forensic":
        _require(
            context.transcript,
            mode="forensic",
            field="transcript",
            message="Forensic reports require an interview transcript",
        )
        blocks = _forensic_blocks(ordered, context, active_manifest.forensic)
    else:
        if context.requires_prior_note:
            _require(
                context.prior_note,
                mode="clinical",
                field="prior_note",
                message=f"{context.visit_type} visits require a previous note for context",
            )
        blocks = _clinical_blocks(ordered, context, active_manifest.clinical, catalog)

    text = "\n\n".join(block for block in blocks if block)
    return CompiledPrompt(
        text=text,
        fingerprint=fingerprint(text),
        prompt_version=active_manifest.version,
        mode=context.mode,
    )


def _require(value: str | None, *, mode: str, field: str, message: str) -> None:
    if not _present(value):
        raise MissingRequiredContextError(message, mode=mode, field=field)


def _present(value: str | None) -> bool:
    return bool(value and value.strip())


def _clinical_blocks(
    sections: list[TemplateSection],
    context: GenerationContext,
    scaffold: ClinicalScaffold,
    catalog: Catalog | None,
) -> list[str]:
    follow_up = context.requires_prior_note
    blocks = [f"ROLE:\n{scaffold.role}", f"TASK:\n{scaffold.task}"]

    if follow_up and context.prior_note:
        blocks.append(_follow_up_block(context.prior_note))

    blocks.append(_smarttools_rules(scaffold, context.setting))

    if catalog is not None:
        blocks.append(export_definitions(extract_template_smartlists(sections), catalog))

    if _present(context.patient_history):
        history = f"PATIENT CLINICAL CONTEXT:\n{context.patient_history}"
        if scaffold.patient_history_note:
            history += f"\n\n{scaffold.patient_history_note}"
        blocks.append(history)

    blocks.append(_template_block(sections, context))

    if _present(context.prior_note) and not follow_up:
        blocks.append(
            f"PREVIOUS NOTE (for context only - do not copy verbatim):\n{context.prior_note}"
        )

    if _present(context.transcript):
        blocks.append(f"TRANSCRIPT:\n{context.transcript}")

    blocks.append(f"OUTPUT INSTRUCTIONS:\n{scaffold.output_instructions}")
    return blocks


def _follow_up_block(prior_note: str) -> str:
    data = extract_prior_note(prior_note)
    lines = [
        "FOLLOW-UP VISIT INSTRUCTIONS:",
        "This is a follow-up visit. Key information has been extracted from the previous note:",
        "",
        "EXTRACTED FROM PREVIOUS NOTE:",
        format_prior_note(data) or "(nothing could be extracted)",
        "",
        "CRITICAL FOLLOW-UP RULES:",
    ]
    if data.patient_name:
        lines.append(
            f"1. Patient Name: Use the extracted name directly ({data.patient_name}) "
            "- DO NOT use @FNAME@ or @LNAME@"
        )
    else:
        lines.append("1. Patient Name: Use @FNAME@ and @LNAME@ as normal")
    if data.provider_name:
        lines.append(
            f"2. Provider: Use the extracted provider name directly ({data.provider_name})"
        )
    else:
        lines.append("2. Provider: Use .provider as normal")
    lines.append("3. Date: Use the date format shown in the template")
    if data.plan_section:
        lines.extend(
            [
                "4. PLAN SECTION:",
                "   - START with the previous plan shown above as your baseline",
                "   - MODIFY only the specific parts discussed in the transcript",
                "   - PRESERVE medications, therapy, labs, follow-up schedule UNLESS explicitly changed",
            ]
        )
    return "\n".join(lines)


def _smarttools_rules(scaffold: ClinicalScaffold, setting: str | None) -> str:
    examples = scaffold.smartlink_examples.get(setting or "", [])
    if not examples:
        return scaffold.smarttools_rules
    lines = [scaffold.smarttools_rules, "", "SMARTLINK EXAMPLES FOR THIS SETTING:"]
    lines.extend(f"  {example}" for example in examples)
    return "\n".join(lines)


def _template_block(sections: list[TemplateSection], context: GenerationContext) -> str:
    lines: list[str] = []
    if context.template_name:
        lines.append(f"TEMPLATE: {context.template_name}")
    if context.setting:
        lines.append(f"Setting: {context.setting}")
    if context.visit_type:
        lines.append(f"Visit Type: {context.visit_type}")
    if lines:
        lines.append("")

    lines.append("=== TEMPLATE SECTIONS ===")
    for section in sections:
        lines.extend(["", f"--- {section.name} ---", "Content Template:", section.content])
    lines.extend(["", "=== END TEMPLATE SECTIONS ==="])
    return "\n".join(lines)


def _forensic_blocks(
    sections: list[TemplateSection],
    context: GenerationContext,
    scaffold: ForensicScaffold,
) -> list[str]:
    min_words, max_words = FORENSIC_WORD_BAND
    values = {
        "min_words": str(min_words),
        "max_words": str(max_words),
        "section_count": str(len(sections)),
    }

    blocks = [
        scaffold.role,
        _banner("UTAH INVOLUNTARY COMMITMENT LAW", scaffold.law),
        _banner("CRITICAL INSTRUCTIONS", _fill(scaffold.instructions, values)),
        _banner("INTERVIEW INFORMATION", _interview_block(context, scaffold)),
    ]

    if _present(context.examiner_notes):
        notes = f"**EXAMINER'S HANDWRITTEN NOTES:**\n{context.examiner_notes}"
        if scaffold.examiner_notes_note:
            notes += f"\n\n({scaffold.examiner_notes_note})"
        blocks.append(notes)

    if _present(context.patient_history):
        history = f"**CLINICAL NOTES (HISTORICAL CONTEXT):**\n{context.patient_history}"
        if scaffold.clinical_notes_note:
            history += f"\n\n({scaffold.clinical_notes_note})"
        blocks.append(history)

    section_blocks = [
        _forensic_section(position, section)
        for position, section in enumerate(sections, start=1)
    ]
    blocks.append(_banner("TEMPLATE SECTIONS TO GENERATE", "\n\n".join(section_blocks)))
    blocks.append(_banner("OUTPUT REQUIREMENTS", _fill(scaffold.output_requirements, values)))
    return blocks


def _interview_block(context: GenerationContext, scaffold: ForensicScaffold) -> str:
    lines: list[str] = []
    if _present(context.patient_name):
        lines.append(f"**Patient:** {context.patient_name}")
    if _present(context.hearing_date):
        lines.append(f"**Hearing Date:** {context.hearing_date}")
    hospital = context.hospital or scaffold.default_hospital
    if hospital:
        lines.append(f"**Hospital:** {hospital}")
    commitment_type = context.commitment_type or scaffold.default_commitment_type
    if commitment_type:
        lines.append(f"**Commitment Type:** {commitment_type}")
    if lines:
        lines.append("")
    lines.append(f"**INTERVIEW TRANSCRIPT:**\n{context.transcript}")
    return "\n".join(lines)


def _forensic_section(position: int, section: TemplateSection) -> str:
    parts = [f"{_SECTION_RULE}\nSECTION {position}: {section.name.upper()}\n{_SECTION_RULE}"]
    if section.instructions:
        parts.append(section.instructions)
    if section.content and section.content.strip() != "***":
        parts.append(f"**Expected Format:**\n{section.content}")
    return "\n\n".join(parts)


def _banner(title: str, body: str) -> str:
    return f"{_RULE}\n{title}\n{_RULE}\n\n{body}"


def _fill(text: str, values: dict[str, str]) -> str:
    for key, value in values.items():
        text = text.replace("{" + key + "}", value)
    return text
