"""FastAPI wrapper for the form-template engine."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import time
import uuid
from pathlib import Path
from typing import Annotated, Any

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from core.config.loader import load_engine_config
from core.config.models import EngineConfig
from core.orchestrator.pipeline import parse_template, run_fill
from core.profiles.prefill import PROFILE_FIELD_MAP, Profile
from core.templates.parameters import PARAM_TAGS
from core.templates.structure import BLOCK_TAGS
from core.templates.tree import result_to_payload
from core.utils.errors import FieldValidationError

app = FastAPI(title="actform API", version="0.1.0")
logger = logging.getLogger("actform.api")

_DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
_REQUEST_ID_HEADER = "X-Actform-Request-Id"


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
    """Metadata endpoint for form-rendering clients."""

    request_id = _request_id_from_request(request)
    if not _meta_enabled():
        return _error_response(
            status_code=404,
            error_code="NOT_FOUND",
            message="meta endpoint is disabled",
            request_id=request_id,
            detail={"path": request.url.path},
        )

    try:
        config = _load_config_with_api_error()
    except ApiRequestError as exc:
        return _api_error(exc, request_id, "load_config")

    payload = {
        "field_types": list(PARAM_TAGS),
        "block_types": list(BLOCK_TAGS),
        "form_roles": config.form_roles,
        "excluded_codes": config.excluded_codes,
        "profile_field_map": dict(PROFILE_FIELD_MAP),
        "version": _package_version(),
    }
    return JSONResponse(status_code=200, headers={_REQUEST_ID_HEADER: request_id}, content=payload)


@app.post("/v1/structure", response_model=None)
async def structure_v1(
    request: Request,
    template: Annotated[UploadFile, File(...)],
    dictionary: Annotated[UploadFile, File(...)],
    excluded_codes: Annotated[str | None, Form()] = None,
) -> JSONResponse:
    """Extract the form tree and alias map from uploaded template/dictionary."""

    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    failure_stage = "init"

    try:
        failure_stage = "upload"
        max_bytes = _max_upload_bytes()
        template_text = await _read_upload_text(template, max_bytes=max_bytes, field_name="template")
        dictionary_text = await _read_upload_text(
            dictionary, max_bytes=max_bytes, field_name="dictionary"
        )

        failure_stage = "validate_inputs"
        config = _load_config_with_api_error()
        if excluded_codes is not None:
            config = config.model_copy(
                update={"excluded_codes": _parse_string_list(excluded_codes, "excluded_codes")}
            )

        _log_event(
            logging.INFO,
            "start",
            request_id,
            endpoint="structure",
            template_bytes=len(template_text),
            dictionary_bytes=len(dictionary_text),
            excluded_count=len(config.excluded_codes),
        )

        failure_stage = "extract"
        result = parse_template(template_text, dictionary_text, config)
    except ApiRequestError as exc:
        return _api_error(exc, request_id, failure_stage)

    _log_event(
        logging.INFO,
        "done",
        request_id,
        endpoint="structure",
        block_count=len(result.structure),
        alias_count=len(result.alias_map),
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content=result_to_payload(result),
    )


@app.post("/v1/fill", response_model=None)
async def fill_v1(
    request: Request,
    template: Annotated[UploadFile, File(...)],
    dictionary: Annotated[UploadFile, File(...)],
    values: Annotated[str, Form()] = "{}",
    profile: Annotated[str | None, Form()] = None,
    block_on_errors: Annotated[bool | None, Form()] = None,
) -> JSONResponse:
    """Substitute entered values into the uploaded template."""

    request_started = time.perf_counter()
    request_id = _request_id_from_request(request)
    failure_stage = "init"

    try:
        failure_stage = "upload"
        max_bytes = _max_upload_bytes()
        template_text = await _read_upload_text(template, max_bytes=max_bytes, field_name="template")
        dictionary_text = await _read_upload_text(
            dictionary, max_bytes=max_bytes, field_name="dictionary"
        )

        failure_stage = "validate_inputs"
        value_table = _parse_values(values)
        profile_model = _parse_profile(profile) if profile is not None else None
        config = _load_config_with_api_error()
        if block_on_errors is not None:
            config = config.model_copy(update={"block_on_validation_errors": block_on_errors})

        _log_event(
            logging.INFO,
            "start",
            request_id,
            endpoint="fill",
            template_bytes=len(template_text),
            value_count=len(value_table),
            profile_provided=profile_model is not None,
            block_on_errors=config.block_on_validation_errors,
        )

        failure_stage = "fill"
        try:
            output = run_fill(
                template_text,
                dictionary_text,
                value_table,
                config=config,
                profile=profile_model,
            )
        except FieldValidationError as exc:
            raise ApiRequestError(
                status_code=422,
                error_code="VALIDATION_FAILED",
                message="field validation failed",
                detail={"errors": exc.errors},
            ) from exc
    except ApiRequestError as exc:
        return _api_error(exc, request_id, failure_stage)

    summary = output.substitution.report.summary
    _log_event(
        logging.INFO,
        "done",
        request_id,
        endpoint="fill",
        replaced_count=summary.replaced_count,
        unmatched_count=summary.unmatched_count,
        validation_error_count=len(output.validation_errors),
        total_ms=_elapsed_ms(request_started),
    )
    return JSONResponse(
        status_code=200,
        headers={_REQUEST_ID_HEADER: request_id},
        content={
            "document": output.substitution.text,
            "report": output.substitution.report.model_dump(mode="json"),
            "validation_errors": output.validation_errors,
        },
    )


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _meta_enabled() -> bool:
    raw = os.getenv("ACTFORM_ENABLE_META", "1").strip().lower()
    return raw not in {"0", "false", "off", "no"}


def _max_upload_bytes() -> int:
    raw = os.getenv("ACTFORM_MAX_UPLOAD_BYTES")
    if raw is None:
        return _DEFAULT_MAX_UPLOAD_BYTES
    try:
        parsed = int(raw)
    except ValueError:
        return _DEFAULT_MAX_UPLOAD_BYTES
    return parsed if parsed > 0 else _DEFAULT_MAX_UPLOAD_BYTES


def _load_config_with_api_error() -> EngineConfig:
    raw_path = os.getenv("ACTFORM_CONFIG_PATH")
    config_path = Path(raw_path) if raw_path else None
    try:
        return load_engine_config(config_path)
    except ValueError as exc:
        raise ApiRequestError(
            status_code=500,
            error_code="INVALID_CONFIG",
            message="engine config is invalid",
            detail={"error": str(exc)},
        ) from exc


async def _read_upload_text(upload: UploadFile, *, max_bytes: int, field_name: str) -> str:
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await upload.read(1024 * 1024)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_bytes:
            raise ApiRequestError(
                status_code=413,
                error_code="UPLOAD_TOO_LARGE",
                message=f"{field_name} exceeds upload size limit",
                detail={
                    "field": field_name,
                    "max_bytes": max_bytes,
                    "received_bytes": total_size,
                },
            )
        chunks.append(chunk)
    await upload.close()

    try:
        return b"".join(chunks).decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ENCODING",
            message=f"{field_name} must be UTF-8 text",
            detail={"field": field_name},
        ) from exc


def _load_json_form(raw: str, field_name: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message=f"{field_name} must be valid JSON",
            detail={"field": field_name, "error": str(exc)},
        ) from exc


def _parse_values(raw: str) -> dict[str, str | None]:
    parsed = _load_json_form(raw, "values")
    if not isinstance(parsed, dict):
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_JSON",
            message="values JSON must be an object",
            detail={"field": "values"},
        )
    return {str(code): None if value is None else str(value) for code, value in parsed.items()}


def _parse_profile(raw: str) -> Profile:
    parsed = _load_json_form(raw, "profile")
    try:
        return Profile.model_validate(parsed)
    except ValidationError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message="profile JSON schema validation failed",
            detail={"field": "profile", "error": str(exc)},
        ) from exc


def _parse_string_list(raw: str, field_name: str) -> list[str]:
    parsed = _load_json_form(raw, field_name)
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message=f"{field_name} must be a JSON array of strings",
            detail={"field": field_name},
        )
    return parsed


def _api_error(exc: ApiRequestError, request_id: str, failure_stage: str) -> JSONResponse:
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        failure_stage=failure_stage,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


def _package_version() -> str:
    try:
        return importlib.metadata.version("actform-engine")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


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
