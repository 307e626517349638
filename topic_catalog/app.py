from __future__ import annotations

import os

from pydantic import BaseModel, Field

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from topic_catalog.ai_config import AiConfig, load_ai_config, merge_ai_config
from topic_catalog.catalog_normalizer import build_topic_catalog_file, parse_topic_catalog_file
from topic_catalog.draft_registry import DraftRegistry, ImportGuard
from topic_catalog.errors import TopicCatalogError
from topic_catalog.extraction import (
    DEFAULT_RESPONSE_LANGUAGE,
    generate_topic_payload,
    run_topic_catalog_extraction,
)
from topic_catalog.prompts import load_ai_prompts
from topic_catalog.schema_models import dump_topic_document
from topic_catalog.source_reader import SUPPORTED_EXTENSIONS, is_supported_source
from topic_catalog.topic_store import load_topic_document, replace_topic_document, validate_connection_id

app = FastAPI(title="Topic Catalog Ingestion API")

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("TOPIC_CORS_ALLOWED_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

AI_DEFAULTS = load_ai_config()
IMPORT_GUARD = ImportGuard()
DRAFTS = DraftRegistry()

STATUS_BY_CATEGORY = {
    "unsupported_input": 415,
    "malformed_container": 422,
    "decompression": 422,
    "legacy_decode": 422,
    "empty_source": 422,
    "unrecoverable_output": 422,
    "invalid_catalog_file": 400,
    "ai_configuration": 400,
    "invalid_connection": 400,
    "model_service": 502,
}


def _status_for(category: str | None) -> int:
    return STATUS_BY_CATEGORY.get(category or "", 500)


def _error_response(exc: TopicCatalogError) -> JSONResponse:
    return JSONResponse(
        status_code=_status_for(exc.category),
        content={
            "status": "error",
            "message": str(exc),
            "category": exc.category,
            "retryable": exc.retryable,
            "warnings": [],
        },
    )


@app.exception_handler(TopicCatalogError)
async def topic_catalog_error_handler(_request: Request, exc: TopicCatalogError) -> JSONResponse:
    return _error_response(exc)


class ApplyDraftRequest(BaseModel):
    confirm: bool = False


class CatalogImportRequest(BaseModel):
    catalog: dict
    confirm: bool = False


class PayloadGenerationRequest(BaseModel):
    topic: str
    description: str = ""
    base_url: str | None = Field(default=None)
    api_key: str | None = Field(default=None)
    model: str | None = Field(default=None)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/connections/{connection_id}/topics")
def get_topic_document(connection_id: str):
    return dump_topic_document(load_topic_document(connection_id))


@app.post("/connections/{connection_id}/topics/ai-import")
async def ai_import_topic_catalog(
    connection_id: str,
    file: UploadFile = File(...),
    connection_name: str | None = Form(None),
    base_url: str | None = Form(None),
    api_key: str | None = Form(None),
    model: str | None = Form(None),
    response_language: str = Form(DEFAULT_RESPONSE_LANGUAGE),
):
    validate_connection_id(connection_id)
    filename = file.filename or ""
    if not is_supported_source(filename):
        return JSONResponse(
            status_code=415,
            content={
                "status": "error",
                "message": "Unsupported document type.",
                "category": "unsupported_input",
                "retryable": False,
                "warnings": [f"Supported types: {', '.join(sorted(SUPPORTED_EXTENSIONS))}."],
            },
        )

    if not IMPORT_GUARD.try_acquire(connection_id):
        return JSONResponse(
            status_code=409,
            content={
                "status": "error",
                "message": "An AI import is already running for this connection.",
                "category": "import_in_progress",
                "retryable": True,
                "warnings": [],
            },
        )

    try:
        content = await file.read()
        result = await run_in_threadpool(
            run_topic_catalog_extraction,
            connection_id=connection_id,
            connection_name=connection_name,
            source_name=filename,
            content_bytes=content,
            ai_config=merge_ai_config(AI_DEFAULTS, AiConfig(base_url=base_url, api_key=api_key, model=model)),
            prompts=load_ai_prompts(),
            response_language=response_language,
        )
    finally:
        IMPORT_GUARD.release(connection_id)

    if result.status != "success" or result.draft is None:
        return JSONResponse(status_code=_status_for(result.category), content=result.to_dict())

    DRAFTS.put(result.draft)
    return result.to_dict()


@app.get("/drafts/{draft_id}")
def get_draft(draft_id: str):
    draft = DRAFTS.get(draft_id)
    if draft is None:
        return JSONResponse(status_code=404, content={"status": "error", "message": "Draft not found."})
    return draft.to_dict()


@app.post("/drafts/{draft_id}/accept")
def accept_draft(draft_id: str, request: ApplyDraftRequest):
    if not request.confirm:
        return JSONResponse(
            status_code=400,
            content={
                "status": "error",
                "message": "Applying a draft overwrites the connection's topic catalog; confirm to continue.",
            },
        )

    draft = DRAFTS.get(draft_id)
    if draft is None:
        return JSONResponse(status_code=404, content={"status": "error", "message": "Draft not found."})

    document = replace_topic_document(draft.connection_id, draft.topics)
    DRAFTS.pop(draft_id)
    return {
        "status": "success",
        "message": f"Imported {len(draft.topics)} topics into '{draft.connection_name}'.",
        "connection_id": draft.connection_id,
        "document": dump_topic_document(document),
    }


@app.delete("/drafts/{draft_id}")
def discard_draft(draft_id: str):
    draft = DRAFTS.pop(draft_id)
    if draft is None:
        return JSONResponse(status_code=404, content={"status": "error", "message": "Draft not found."})
    return {"status": "success", "message": "Draft discarded.", "draft_id": draft_id}


@app.get("/connections/{connection_id}/topics/export")
def export_topic_catalog(connection_id: str):
    catalog = build_topic_catalog_file(load_topic_document(connection_id))
    return catalog.model_dump(by_alias=True, exclude_none=True)


@app.post("/connections/{connection_id}/topics/import")
def import_topic_catalog(connection_id: str, request: CatalogImportRequest):
    try:
        catalog = parse_topic_catalog_file(request.catalog)
    except TopicCatalogError as exc:
        return _error_response(exc)

    if not request.confirm:
        return JSONResponse(
            status_code=400,
            content={
                "status": "error",
                "message": "Importing a catalog overwrites the connection's topic catalog; confirm to continue.",
            },
        )

    document = replace_topic_document(connection_id, catalog.topics)
    return {
        "status": "success",
        "message": f"Imported {len(catalog.topics)} topics.",
        "document": dump_topic_document(document),
    }


@app.post("/ai/payload")
def generate_payload(request: PayloadGenerationRequest):
    options = AiConfig(base_url=request.base_url, api_key=request.api_key, model=request.model)
    try:
        payload = generate_topic_payload(
            topic=request.topic,
            description=request.description,
            ai_config=merge_ai_config(AI_DEFAULTS, options),
            prompts=load_ai_prompts(),
        )
    except TopicCatalogError as exc:
        return _error_response(exc)

    return {"status": "success", "topic": request.topic.strip(), "payload": payload}
