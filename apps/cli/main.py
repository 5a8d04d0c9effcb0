"""Typer CLI entrypoint for the SmartTools engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal, cast

import typer

from apps.cli.format_human import render_validation_summary
from apps.cli.io import (
    load_compiled_prompt,
    read_text_input,
    write_json_atomic,
    write_text_atomic,
)
from smarttools.catalog.loader import load_catalog
from smarttools.catalog.models import Catalog, CatalogMiss
from smarttools.catalog.resolver import example_value, placeholder_label, render_example, resolve
from smarttools.orchestrator.pipeline import prepare_prompt, review_output
from smarttools.prompts.manifest_loader import load_manifest
from smarttools.prompts.models import GenerationContext
from smarttools.templates.forensic import FORENSIC_TEMPLATE, FORENSIC_WORD_BAND
from smarttools.templates.loader import load_template
from smarttools.templates.models import NoteTemplate
from smarttools.tokens.highlight import highlight, render_markup
from smarttools.tokens.inventory import (
    contains_smarttools,
    extract_dotphrase_identifiers,
    extract_smartlink_identifiers,
    extract_template_smartlists,
    summarize,
    summarize_template,
)
from smarttools.tokens.scanner import scan
from smarttools.tokens.transform import replace_wildcards, smartlinks_to_dotphrases
from smarttools.utils import env
from smarttools.utils.errors import MissingRequiredContextError
from smarttools.validate.criteria import count_words, extract_criteria, validate_criteria

app = typer.Typer(help="SmartTools template engine CLI", rich_markup_mode=None)
ReportMode = Literal["human", "json", "both"]
PromptModeOption = Literal["clinical", "forensic"]

_EXISTING_FILE = {"exists": True, "dir_okay": False, "file_okay": True}


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("scan")
def scan_command(
    input_path: Annotated[Path, typer.Option("--input", **_EXISTING_FILE)],
    markup: Annotated[
        bool, typer.Option("--markup", help="Print text with tokens wrapped as [[type:raw]].")
    ] = False,
    example: Annotated[
        bool, typer.Option("--example", help="Print a preview with placeholders filled.")
    ] = False,
    catalog: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
) -> None:
    """Scan one text file for SmartTools tokens."""

    content = input_path.read_text(encoding="utf-8")
    if markup:
        typer.echo(render_markup(content))
        raise typer.Exit(code=0)
    if example:
        try:
            catalog_model = _load_catalog_option(catalog)
        except ValueError as exc:
            typer.echo(f"ERROR: {exc}")
            raise typer.Exit(code=1) from exc
        if catalog_model is None:
            typer.echo("WARNING(catalog): no catalog configured; SmartLists shown as List:<id>")
        typer.echo(render_example(content, catalog_model or {}))
        raise typer.Exit(code=0)

    payload = {
        "tokens": [token.as_dict() for token in scan(content)],
        "spans": [span.as_dict() for span in highlight(content)],
    }
    typer.echo(_dump_json(payload))


@app.command("epic")
def epic_command(
    input_path: Annotated[Path, typer.Option("--input", **_EXISTING_FILE)],
    wildcard: Annotated[
        list[str] | None,
        typer.Option("--wildcard", help="Fill the next *** in order; repeat for each one."),
    ] = None,
    out: Annotated[Path | None, typer.Option()] = None,
) -> None:
    """Prepare text for pasting into Epic: fill wildcards, SmartLinks become DotPhrases."""

    content = input_path.read_text(encoding="utf-8")
    converted = smartlinks_to_dotphrases(replace_wildcards(content, wildcard or []))
    if out is None:
        typer.echo(converted)
    else:
        write_text_atomic(out, converted)
        typer.echo(f"INFO: wrote {out}")

    remaining = summarize(converted)
    if remaining.wildcards:
        typer.echo(f"WARNING(wildcards): {remaining.wildcards} wildcard(s) left unfilled")
    if not contains_smarttools(converted):
        typer.echo("INFO: no SmartTools left in output")


@app.command("summarize")
def summarize_command(
    template: Annotated[Path, typer.Option(..., **_EXISTING_FILE)],
    catalog: Annotated[Path | None, typer.Option()] = None,
) -> None:
    """Print token counts and identifier inventories for a template."""

    try:
        note_template = load_template(template)
        catalog_model = _load_catalog_option(catalog)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    sections = note_template.ordered_sections()
    joined = "\n\n".join(section.content for section in sections)
    payload: dict[str, Any] = {
        "template": note_template.name,
        "summary": summarize_template(sections).as_dict(),
        "smartlinks": extract_smartlink_identifiers(joined),
        "dotphrases": extract_dotphrase_identifiers(joined),
        "smartlists": [],
    }
    for ref in extract_template_smartlists(sections):
        entry: dict[str, Any] = {"catalog_id": ref.catalog_id, "display_name": ref.display_name}
        if catalog_model is not None:
            result = resolve(ref, catalog_model)
            entry["label"] = placeholder_label(result)
            entry["resolved"] = not isinstance(result, CatalogMiss)
            if not isinstance(result, CatalogMiss):
                entry["example_value"] = example_value(result)
        payload["smartlists"].append(entry)

    typer.echo(_dump_json(payload))
    if catalog_model is not None:
        misses = [item for item in payload["smartlists"] if not item["resolved"]]
        if misses:
            typer.echo(
                f"WARNING(catalog): {len(misses)} SmartList(s) not found in catalog: "
                + ", ".join(item["label"] for item in misses)
            )


@app.command("compile")
def compile_command(
    template: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
    transcript: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
    mode: Annotated[str, typer.Option()] = "clinical",
    prior_note: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
    patient_history: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
    setting: Annotated[str | None, typer.Option()] = None,
    visit_type: Annotated[str | None, typer.Option()] = None,
    patient_name: Annotated[str | None, typer.Option()] = None,
    hearing_date: Annotated[str | None, typer.Option()] = None,
    hospital: Annotated[str | None, typer.Option()] = None,
    commitment_type: Annotated[str | None, typer.Option()] = None,
    examiner_notes: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
    catalog: Annotated[Path | None, typer.Option()] = None,
    manifest: Annotated[Path | None, typer.Option()] = None,
    out: Annotated[
        Path | None,
        typer.Option("--out", help="Write the compiled prompt JSON artifact to this path."),
    ] = None,
    text_out: Annotated[
        Path | None,
        typer.Option("--text-out", help="Write the plain prompt text to this path."),
    ] = None,
) -> None:
    """Compile a generation prompt from a template and context files."""

    normalized_mode = mode.lower().strip()
    if normalized_mode not in {"clinical", "forensic"}:
        typer.echo("ERROR: --mode must be one of: clinical, forensic.")
        raise typer.Exit(code=1)
    mode_typed = cast(PromptModeOption, normalized_mode)

    if template is None and mode_typed == "clinical":
        typer.echo("ERROR: --template is required in clinical mode.")
        raise typer.Exit(code=1)

    exit_code = 1
    try:
        note_template = load_template(template) if template is not None else FORENSIC_TEMPLATE
        context = GenerationContext(
            mode=mode_typed,
            transcript=read_text_input(transcript) or "",
            prior_note=read_text_input(prior_note),
            patient_history=read_text_input(patient_history),
            setting=setting,
            visit_type=visit_type,
            patient_name=patient_name,
            hearing_date=hearing_date,
            hospital=hospital,
            commitment_type=commitment_type,
            examiner_notes=read_text_input(examiner_notes),
        )
        manifest_model = load_manifest(manifest or env.manifest_path())
        catalog_model = _load_catalog_option(catalog)

        compiled = prepare_prompt(
            note_template, context, manifest=manifest_model, catalog=catalog_model
        )
        if out is not None:
            write_json_atomic(out, compiled.model_dump(mode="json"))
            typer.echo(f"INFO: wrote prompt artifact to {out}")
        if text_out is not None:
            write_text_atomic(text_out, compiled.text)
            typer.echo(f"INFO: wrote prompt text to {text_out}")
        if out is None and text_out is None:
            typer.echo(compiled.text)

        typer.echo(
            f"INFO(prompt): mode={compiled.mode} version={compiled.prompt_version} "
            f"hash={compiled.fingerprint}"
        )
        exit_code = 0
    except MissingRequiredContextError as exc:
        exit_code = 2
        typer.echo(f"ERROR: missing required context (mode={exc.mode}, field={exc.field}): {exc}")
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")

    raise typer.Exit(code=exit_code)


@app.command("validate")
def validate_command(
    note: Annotated[Path, typer.Option(..., **_EXISTING_FILE)],
    prompt: Annotated[Path, typer.Option(..., **_EXISTING_FILE)],
    template: Annotated[Path | None, typer.Option(**_EXISTING_FILE)] = None,
    catalog: Annotated[Path | None, typer.Option()] = None,
    strict: Annotated[
        bool, typer.Option("--strict", help="Exit with code 4 when validation fails.")
    ] = False,
    report: Annotated[str, typer.Option()] = "human",
    out: Annotated[Path | None, typer.Option("--out", help="Write the receipt JSON.")] = None,
) -> None:
    """Validate a generated note against its template and prompt artifact."""

    report_typed = _normalize_report(report)

    try:
        compiled = load_compiled_prompt(prompt)
        note_template = _template_for_mode(template, compiled.mode)
        catalog_model = _load_catalog_option(catalog)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    generated_text = note.read_text(encoding="utf-8")
    receipt = review_output(generated_text, note_template, compiled, catalog=catalog_model)
    payload = receipt.to_payload()

    if report_typed in {"human", "both"}:
        typer.echo(
            render_validation_summary(
                receipt.validation_result, criteria=receipt.criteria, strict=strict
            )
        )
    if report_typed in {"json", "both"}:
        typer.echo(_dump_json(payload))

    if out is not None:
        write_json_atomic(out, payload)
        typer.echo(f"INFO: wrote receipt to {out}")

    _finish(receipt.validation_result.valid, strict)


@app.command("criteria")
def criteria_command(
    note: Annotated[Path, typer.Option(..., **_EXISTING_FILE)],
    word_min: Annotated[int, typer.Option()] = FORENSIC_WORD_BAND[0],
    word_max: Annotated[int, typer.Option()] = FORENSIC_WORD_BAND[1],
    strict: Annotated[
        bool, typer.Option("--strict", help="Exit with code 4 when validation fails.")
    ] = False,
    report: Annotated[str, typer.Option()] = "human",
) -> None:
    """Extract the five commitment-criteria determinations from a report."""

    report_typed = _normalize_report(report)
    if word_min < 0 or word_max < word_min:
        typer.echo("ERROR: --word-min/--word-max must form a non-negative range.")
        raise typer.Exit(code=1)

    text = note.read_text(encoding="utf-8")
    assessment = extract_criteria(text)
    result = validate_criteria(text, word_band=(word_min, word_max))

    if report_typed in {"human", "both"}:
        typer.echo(render_validation_summary(result, criteria=assessment, strict=strict))
    if report_typed in {"json", "both"}:
        typer.echo(
            _dump_json(
                {
                    "criteria": assessment.as_dict(),
                    "validation": result.model_dump(mode="json"),
                    "word_count": count_words(text),
                }
            )
        )

    _finish(result.valid, strict)


def _normalize_report(report: str) -> ReportMode:
    normalized = report.lower().strip()
    if normalized not in {"human", "json", "both"}:
        typer.echo("ERROR: --report must be one of: human, json, both.")
        raise typer.Exit(code=1)
    return cast(ReportMode, normalized)


def _template_for_mode(path: Path | None, mode: str) -> NoteTemplate:
    if path is not None:
        return load_template(path)
    if mode == "forensic":
        return FORENSIC_TEMPLATE
    raise ValueError("--template is required to validate clinical notes")


def _load_catalog_option(path: Path | None) -> Catalog | None:
    catalog_path = path or env.catalog_path()
    if catalog_path is None:
        return None
    return load_catalog(catalog_path)


def _finish(valid: bool, strict: bool) -> None:
    if valid:
        typer.echo("INFO: success")
        raise typer.Exit(code=0)
    if strict:
        typer.echo("ERROR: validation failed")
        raise typer.Exit(code=4)
    typer.echo("WARNING(validation): note has errors (use --strict to fail)")
    raise typer.Exit(code=0)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
