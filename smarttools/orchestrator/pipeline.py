"""Orchestration: template + context -> prompt, generated text -> receipt."""

from __future__ import annotations

import logging

from smarttools.catalog.models import Catalog
from smarttools.catalog.resolver import validate_selections
from smarttools.prompts.compiler import compile_prompt
from smarttools.prompts.models import CompiledPrompt, GenerationContext, PromptManifest
from smarttools.templates.forensic import FORENSIC_WORD_BAND
from smarttools.templates.models import NoteTemplate
from smarttools.validate.criteria import extract_criteria, validate_criteria
from smarttools.validate.models import NoteReceipt
from smarttools.validate.sections import validate_formatting, validate_note

logger = logging.getLogger("smarttools.pipeline")


def prepare_prompt(
    template: NoteTemplate,
    context: GenerationContext,
    *,
    manifest: PromptManifest | None = None,
    catalog: Catalog | None = None,
) -> CompiledPrompt:
    """Compile the prompt for one generation call.

    MissingRequiredContextError propagates so the caller can abort before
    any generation request is made.
    """

    if context.template_name is None:
        context = context.model_copy(update={"template_name": template.name})
    if context.setting is None and template.setting:
        context = context.model_copy(update={"setting": template.setting})
    if context.visit_type is None and template.visit_type:
        context = context.model_copy(update={"visit_type": template.visit_type})

    compiled = compile_prompt(
        template.ordered_sections(), context, manifest=manifest, catalog=catalog
    )
    logger.info(
        "compiled prompt mode=%s version=%s hash=%s chars=%d",
        compiled.mode,
        compiled.prompt_version,
        compiled.fingerprint,
        len(compiled.text),
    )
    return compiled


def review_output(
    generated_text: str,
    template: NoteTemplate,
    compiled: CompiledPrompt,
    *,
    catalog: Catalog | None = None,
) -> NoteReceipt:
    """Validate generated text and bundle the result with prompt metadata.

    Clinical notes are also held to paragraph formatting. With a catalog,
    selected SmartList values left in the note are checked against the
    allowed options.
    """

    result = validate_note(generated_text, template.ordered_sections())
    if compiled.mode == "clinical":
        result = result.merge(validate_formatting(generated_text))
    if catalog is not None:
        result = result.merge(validate_selections(generated_text, catalog))
    criteria = None
    if compiled.mode == "forensic":
        result = result.merge(validate_criteria(generated_text, word_band=FORENSIC_WORD_BAND))
        criteria = extract_criteria(generated_text)

    if result.valid:
        logger.info("note valid hash=%s warnings=%d", compiled.fingerprint, len(result.warnings))
    else:
        logger.warning(
            "note invalid hash=%s errors=%d warnings=%d",
            compiled.fingerprint,
            len(result.errors),
            len(result.warnings),
        )

    return NoteReceipt(
        prompt_version=compiled.prompt_version,
        prompt_hash=compiled.fingerprint,
        validation_result=result,
        criteria=criteria,
    )
