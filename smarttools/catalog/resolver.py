"""SmartList catalog lookups, example values, and prompt definitions.

Lookups never raise for unknown ids: they return ``CatalogMiss`` so callers
can render a ``List:<id>`` label and offer to create the entry.
"""

from __future__ import annotations

from collections.abc import Iterable

from smarttools.catalog.models import Catalog, CatalogMiss, SmartListCatalogEntry
from smarttools.tokens.models import SmartListRef, Token, TokenType
from smarttools.tokens.scanner import scan
from smarttools.tokens.transform import find_smartlist_selections
from smarttools.validate.models import ValidationIssue, ValidationResult

NOT_SPECIFIED = "[not specified]"
EXAMPLE_WILDCARD_TEXT = "[Patient-specific information from transcript]"
EXAMPLE_SMARTLINK_TEXT = "[Data from chart]"


def resolve(
    reference: Token | SmartListRef, catalog: Catalog
) -> SmartListCatalogEntry | CatalogMiss:
    """Look up a SmartList token or reference by catalog id."""

    catalog_id, display_name = _reference_key(reference)
    entry = catalog.get(catalog_id)
    if entry is None:
        return CatalogMiss(catalog_id=catalog_id, display_name=display_name)
    return entry


def placeholder_label(result: SmartListCatalogEntry | CatalogMiss) -> str:
    if isinstance(result, CatalogMiss):
        return result.label
    return result.display_name


def example_value(entry: SmartListCatalogEntry) -> str:
    """Default option, else the first option by order, else a fixed fallback."""

    for option in entry.options:
        if option.is_default:
            return option.value
    ordered = entry.ordered_options()
    if ordered:
        return ordered[0].value
    return NOT_SPECIFIED


def render_example(content: str, catalog: Catalog) -> str:
    """Deterministic preview of what a section could look like once filled.

    SmartLists become their example value (or ``List:<id>`` when unknown),
    wildcards and SmartLinks become fixed sample text, DotPhrases stay.
    """

    chunks: list[str] = []
    cursor = 0
    for token in scan(content):
        if token.type is TokenType.DOT_PHRASE:
            continue
        chunks.append(content[cursor : token.start])
        chunks.append(_example_for(token, catalog))
        cursor = token.end
    chunks.append(content[cursor:])
    return "".join(chunks)


def export_definitions(refs: Iterable[SmartListRef], catalog: Catalog) -> str:
    """Build the SMARTLIST DEFINITIONS prompt block; empty when nothing resolves."""

    blocks: list[str] = []
    for ref in refs:
        result = resolve(ref, catalog)
        if isinstance(result, CatalogMiss):
            continue
        blocks.append(_definition_block(result))

    if not blocks:
        return ""

    return (
        "=== SMARTLIST DEFINITIONS ===\n\n"
        "The following SmartLists appear in the template. "
        "Select appropriate values based on the transcript content.\n\n"
        + "\n---\n\n".join(blocks)
        + "\n=== END SMARTLIST DEFINITIONS ==="
    )


def validate_selections(text: str, catalog: Catalog) -> ValidationResult:
    """Check ``{Display:ID:: "value"}`` selections against catalog options."""

    issues: list[ValidationIssue] = []
    for selection in find_smartlist_selections(text):
        entry = catalog.get(selection.catalog_id)
        if entry is None:
            issues.append(
                ValidationIssue(
                    code="SMARTLIST_UNKNOWN",
                    message=f"Unknown SmartList with catalog id {selection.catalog_id}",
                    context={"catalog_id": selection.catalog_id},
                )
            )
            continue

        allowed = [option.value for option in entry.ordered_options()]
        if selection.selected_value not in allowed:
            issues.append(
                ValidationIssue(
                    code="SMARTLIST_INVALID_VALUE",
                    message=(
                        f'Invalid value "{selection.selected_value}" for SmartList '
                        f"{selection.display_name}"
                    ),
                    context={"catalog_id": selection.catalog_id, "allowed": allowed},
                )
            )

    return ValidationResult.from_issues(issues)


def _reference_key(reference: Token | SmartListRef) -> tuple[str, str]:
    if isinstance(reference, SmartListRef):
        return reference.catalog_id, reference.display_name
    if reference.type is not TokenType.SMART_LIST or reference.catalog_id is None:
        raise ValueError(f"Token is not a SmartList: {reference.raw!r}")
    return reference.catalog_id, reference.identifier


def _example_for(token: Token, catalog: Catalog) -> str:
    if token.type is TokenType.SMART_LIST:
        result = resolve(token, catalog)
        if isinstance(result, CatalogMiss):
            return result.label
        return example_value(result)
    if token.type is TokenType.WILDCARD:
        return EXAMPLE_WILDCARD_TEXT
    return EXAMPLE_SMARTLINK_TEXT


def _definition_block(entry: SmartListCatalogEntry) -> str:
    lines = [
        f"SmartList: {entry.display_name} (ID: {entry.catalog_id})",
        f"Template placeholder: {{{entry.display_name}:{entry.catalog_id}}}",
        "Allowed values (output ONLY the value text, NOT the {placeholder} format):",
    ]
    default_value: str | None = None
    for option in entry.ordered_options():
        annotation = " [DEFAULT]" if option.is_default else ""
        if option.is_default:
            default_value = option.value
        lines.append(f'  - "{option.value}"{annotation}')
    if default_value is not None:
        lines.append(f'If unsure, prefer "{default_value}".')
    return "\n".join(lines)
