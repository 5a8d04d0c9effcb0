"""FastAPI wrapper for the SmartTools engine."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import time
import uuid
from typing import Any, TypeVar

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from smarttools.catalog.loader import load_catalog, parse_catalog
from smarttools.catalog.models import Catalog, CatalogMiss
from smarttools.catalog.resolver import (
    example_value,
    export_definitions,
    placeholder_label,
    render_example,
    resolve,
)
from smarttools.orchestrator.pipeline import prepare_prompt, review_output
from smarttools.prompts.manifest_loader import load_manifest
from smarttools.prompts.models import CompiledPrompt, GenerationContext, PromptManifest
from smarttools.templates.forensic import FORENSIC_TEMPLATE, FORENSIC_WORD_BAND
from smarttools.templates.models import NoteTemplate, TemplateSection
from smarttools.tokens.highlight import highlight
from smarttools.tokens.inventory import (
    contains_smarttools,
    extract_dotphrase_identifiers,
    extract_smartlink_identifiers,
    extract_smartlists,
    summarize,
    summarize_template,
)
from smarttools.tokens.models import SmartListRef, TokenType
from smarttools.tokens.scanner import scan
from smarttools.tokens.transform import format_smartlist_selection, parse_smartlist_selection
from smarttools.utils import env
from smarttools.utils.errors import MissingRequiredContextError
from smarttools.validate.criteria import count_words, extract_criteria, validate_criteria

app = FastAPI(title="smarttools-engine API", version="0.1.0")
logger = logging.getLogger("smarttools.api")

_REQUEST_ID_HEADER = "X-SmartTools-Request-Id"
_CONTEXT_TEXT_FIELDS = ("prior_note", "patient_history", "examiner_notes")

ModelT = TypeVar("ModelT", bound=BaseModel)


class ContentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str | None = None
    sections: list[TemplateSection] | None = None


class ResolveRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str
    catalog: dict[str, Any] | None = None


class ExampleRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str
    catalog: dict[str, Any] | None = None


class SelectRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    placeholder: str
    value: str
    catalog: dict[str, Any] | None = None


class CompileRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    template: NoteTemplate | None = None
    context: GenerationContext
    catalog: dict[str, Any] | None = None


class ValidateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    generated_text: str
    prompt: CompiledPrompt
    template: NoteTemplate | None = None
    catalog: dict[str, Any] | None = None


class CriteriaRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    generated_text: str
    word_band: tuple[int, int] = Field(default=FORENSIC_WORD_BAND)


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(_REQUEST_ID_HEADER, request_id)
    return response


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Metadata endpoint for editor/bootstrap clients."""

    request_id = _request_id_from_request(request)
    if not env.meta_enabled():
        return _error_response(
            status_code=404,
            error_code="NOT_FOUND",
            message="meta endpoint is disabled",
            request_id=request_id,
            detail={"path": request.url.path},
        )

    try:
        manifest = _load_manifest_with_api_error()
    except ApiRequestError as exc:
        return _error_response(
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
            request_id=request_id,
            detail=exc.detail,
        )

    payload = {
        "token_types": [token_type.value for token_type in TokenType],
        "modes": ["clinical", "forensic"],
        "prompt_version": manifest.version,
        "settings": sorted(manifest.clinical.smartlink_examples),
        "forensic_sections": [section.name for section in FORENSIC_TEMPLATE.ordered_sections()],
        "forensic_word_band": list(FORENSIC_WORD_BAND),
        "catalog_configured": env.catalog_path() is not None,
        "max_content_chars": env.max_content_chars(),
        "version": _package_version(),
    }
    return _json_response(payload, request_id)


@app.post("/v1/highlight")
async def highlight_v1(request: Request) -> JSONResponse:
    """Return token spans for editor rendering."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, ContentRequest)
        _check_content_size(body.content, field="content")
        return {
            "spans": [span.as_dict() for span in highlight(body.content)],
            "tokens": [token.as_dict() for token in scan(body.content)],
        }

    return await _run_endpoint(request, "highlight", handle)


@app.post("/v1/summarize")
async def summarize_v1(request: Request) -> JSONResponse:
    """Return token counts and identifier inventories."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, SummarizeRequest)
        if body.sections is not None:
            ordered = sorted(body.sections, key=lambda section: section.order)
            content = "\n\n".join(section.content for section in ordered)
            _check_content_size(content, field="sections")
            summary = summarize_template(ordered)
        elif body.content is not None:
            content = body.content
            _check_content_size(content, field="content")
            summary = summarize(content)
        else:
            raise ApiRequestError(
                status_code=400,
                error_code="INVALID_REQUEST",
                message="one of content or sections is required",
                detail={"fields": ["content", "sections"]},
            )
        return {
            "summary": summary.as_dict(),
            "smartlinks": extract_smartlink_identifiers(content),
            "dotphrases": extract_dotphrase_identifiers(content),
            "smartlists": [
                {"catalog_id": ref.catalog_id, "display_name": ref.display_name}
                for ref in extract_smartlists(content)
            ],
        }

    return await _run_endpoint(request, "summarize", handle)


@app.post("/v1/smartlists/resolve")
async def resolve_smartlists_v1(request: Request) -> JSONResponse:
    """Resolve every SmartList placeholder in content against the catalog."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, ResolveRequest)
        _check_content_size(body.content, field="content")
        catalog = _catalog_for_request(body.catalog)
        if catalog is None:
            raise ApiRequestError(
                status_code=400,
                error_code="CATALOG_NOT_CONFIGURED",
                message="no catalog supplied and SMARTTOOLS_CATALOG_PATH is not set",
                detail={"field": "catalog"},
            )

        refs = extract_smartlists(body.content)
        entries: list[dict[str, Any]] = []
        for ref in refs:
            result = resolve(ref, catalog)
            entry: dict[str, Any] = {
                "catalog_id": ref.catalog_id,
                "display_name": ref.display_name,
                "label": placeholder_label(result),
                "found": not isinstance(result, CatalogMiss),
            }
            if not isinstance(result, CatalogMiss):
                entry["example_value"] = example_value(result)
                entry["options"] = [
                    option.model_dump(mode="json") for option in result.ordered_options()
                ]
            entries.append(entry)
        return {"smartlists": entries, "definitions": export_definitions(refs, catalog)}

    return await _run_endpoint(request, "resolve", handle)


@app.post("/v1/smartlists/example")
async def example_smartlists_v1(request: Request) -> JSONResponse:
    """Render a deterministic preview of content with placeholders filled."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, ExampleRequest)
        _check_content_size(body.content, field="content")
        catalog = _catalog_for_request(body.catalog) or {}
        example = render_example(body.content, catalog)
        return {"example": example, "contains_smarttools": contains_smarttools(example)}

    return await _run_endpoint(request, "example", handle)


@app.post("/v1/smartlists/select")
async def select_smartlist_v1(request: Request) -> JSONResponse:
    """Record a catalog option as the chosen value of a SmartList placeholder."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, SelectRequest)
        _check_content_size(body.placeholder, field="placeholder")
        parsed = parse_smartlist_selection(body.placeholder)
        if parsed is None:
            raise ApiRequestError(
                status_code=400,
                error_code="INVALID_REQUEST",
                message="placeholder is not a SmartList",
                detail={"field": "placeholder"},
            )
        catalog = _catalog_for_request(body.catalog)
        if catalog is None:
            raise ApiRequestError(
                status_code=400,
                error_code="CATALOG_NOT_CONFIGURED",
                message="no catalog supplied and SMARTTOOLS_CATALOG_PATH is not set",
                detail={"field": "catalog"},
            )
        ref = SmartListRef(catalog_id=parsed.catalog_id, display_name=parsed.display_name)
        result = resolve(ref, catalog)
        if isinstance(result, CatalogMiss):
            raise ApiRequestError(
                status_code=404,
                error_code="SMARTLIST_NOT_FOUND",
                message=f"SmartList {parsed.catalog_id} not found in catalog",
                detail={"catalog_id": parsed.catalog_id},
            )
        allowed = [option.value for option in result.ordered_options()]
        if body.value not in allowed:
            raise ApiRequestError(
                status_code=400,
                error_code="SMARTLIST_INVALID_VALUE",
                message=f"'{body.value}' is not an option of SmartList {parsed.catalog_id}",
                detail={"catalog_id": parsed.catalog_id, "allowed": allowed},
            )
        return {
            "text": format_smartlist_selection(
                parsed.display_name, parsed.catalog_id, body.value
            ),
            "previous_value": parsed.selected_value,
        }

    return await _run_endpoint(request, "select", handle)


@app.post("/v1/compile")
async def compile_v1(request: Request) -> JSONResponse:
    """Compile a generation prompt; 422 when mandatory context is missing."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, CompileRequest)
        _check_context_size(body.context)
        _check_template_size(body.template)
        template = _template_for_request(body.template, body.context.mode)
        catalog = _catalog_for_request(body.catalog)
        manifest = _load_manifest_with_api_error()

        try:
            compiled = prepare_prompt(template, body.context, manifest=manifest, catalog=catalog)
        except MissingRequiredContextError as exc:
            raise ApiRequestError(
                status_code=422,
                error_code="MISSING_REQUIRED_CONTEXT",
                message=str(exc),
                detail={"mode": exc.mode, "field": exc.field},
            ) from exc
        return compiled.model_dump(mode="json")

    return await _run_endpoint(request, "compile", handle)


@app.post("/v1/validate")
async def validate_v1(request: Request) -> JSONResponse:
    """Validate generated text and return the note receipt."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, ValidateRequest)
        _check_content_size(body.generated_text, field="generated_text")
        _check_template_size(body.template)
        template = _template_for_request(body.template, body.prompt.mode)
        catalog = _catalog_for_request(body.catalog)
        receipt = review_output(body.generated_text, template, body.prompt, catalog=catalog)
        return receipt.to_payload()

    return await _run_endpoint(request, "validate", handle)


@app.post("/v1/criteria")
async def criteria_v1(request: Request) -> JSONResponse:
    """Extract commitment-criteria determinations from a forensic report."""

    async def handle() -> dict[str, Any]:
        body = await _parse_body(request, CriteriaRequest)
        _check_content_size(body.generated_text, field="generated_text")
        minimum, maximum = body.word_band
        if minimum < 0 or maximum < minimum:
            raise ApiRequestError(
                status_code=400,
                error_code="INVALID_REQUEST",
                message="word_band must be a non-negative [min, max] range",
                detail={"field": "word_band"},
            )
        result = validate_criteria(body.generated_text, word_band=body.word_band)
        return {
            "criteria": extract_criteria(body.generated_text).as_dict(),
            "validation": result.model_dump(mode="json"),
            "word_count": count_words(body.generated_text),
        }

    return await _run_endpoint(request, "criteria", handle)


async def _run_endpoint(request: Request, endpoint: str, handler) -> JSONResponse:
    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    _log_event(logging.INFO, "start", request_id, endpoint=endpoint)

    try:
        payload = await handler()
    except ApiRequestError as exc:
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            endpoint=endpoint,
            error_code=exc.error_code,
            status_code=exc.status_code,
            total_ms=_elapsed_ms(request_started),
        )
        return _error_response(
            status_code=exc.status_code,
            error_code=exc.error_code,
            message=exc.message,
            request_id=request_id,
            detail=exc.detail,
        )

    _log_event(
        logging.INFO,
        "success",
        request_id,
        endpoint=endpoint,
        status_code=200,
        total_ms=_elapsed_ms(request_started),
    )
    return _json_response(payload, request_id)


async def _parse_body(request: Request, model: type[ModelT]) -> ModelT:
    try:
        raw = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="request body must be valid JSON",
        ) from exc

    if not isinstance(raw, dict):
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_REQUEST",
            message="request body must be a JSON object",
        )

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_REQUEST",
            message="request body failed validation",
            detail={"errors": json.loads(exc.json(include_url=False))},
        ) from exc


def _check_content_size(content: str, *, field: str) -> None:
    limit = env.max_content_chars()
    if len(content) > limit:
        raise ApiRequestError(
            status_code=413,
            error_code="CONTENT_TOO_LARGE",
            message=f"{field} exceeds {limit} characters",
            detail={"field": field, "max_content_chars": limit, "length": len(content)},
        )


def _check_context_size(context: GenerationContext) -> None:
    _check_content_size(context.transcript, field="context.transcript")
    for name in _CONTEXT_TEXT_FIELDS:
        value = getattr(context, name)
        if value is not None:
            _check_content_size(value, field=f"context.{name}")


def _check_template_size(template: NoteTemplate | None) -> None:
    if template is None:
        return
    for index, section in enumerate(template.sections):
        _check_content_size(section.content, field=f"template.sections[{index}].content")


def _template_for_request(template: NoteTemplate | None, mode: str) -> NoteTemplate:
    if template is not None:
        return template
    if mode == "forensic":
        return FORENSIC_TEMPLATE
    raise ApiRequestError(
        status_code=400,
        error_code="INVALID_REQUEST",
        message="template is required in clinical mode",
        detail={"field": "template"},
    )


def _catalog_for_request(inline: dict[str, Any] | None) -> Catalog | None:
    try:
        if inline is not None:
            return parse_catalog(inline)
        configured = env.catalog_path()
        if configured is not None:
            return load_catalog(configured)
    except ValueError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_CATALOG",
            message=str(exc),
            detail={"field": "catalog"},
        ) from exc

    return None


def _load_manifest_with_api_error() -> PromptManifest:
    try:
        return load_manifest(env.manifest_path())
    except ValueError as exc:
        raise ApiRequestError(
            status_code=500,
            error_code="INVALID_MANIFEST",
            message=str(exc),
        ) from exc


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _package_version() -> str:
    try:
        return importlib.metadata.version("smarttools-engine")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _json_response(payload: dict[str, Any], request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content=payload,
    )


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={_REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))
