from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

from topic_catalog.ai_config import AiConfig, resolve_ai_config
from topic_catalog.catalog_normalizer import normalize_catalog
from topic_catalog.errors import (
    AiConfigurationError,
    EmptySourceError,
    ModelServiceError,
    TopicCatalogError,
    UnrecoverableModelOutputError,
)
from topic_catalog.json_recovery import recover_json_value
from topic_catalog.llm_provider import complete_chat
from topic_catalog.prompts import AiPromptsConfig, render_prompt_template
from topic_catalog.schema_models import TopicItemModel, dump_topic_items
from topic_catalog.source_reader import read_protocol_source

logger = logging.getLogger(__name__)

TOPIC_AI_SOURCE_MAX_CHARS = 24000
DEFAULT_RESPONSE_LANGUAGE = "English"


@dataclass(frozen=True)
class ExtractionDraft:
    """Result of one import run, held until the user accepts or discards it."""

    draft_id: str
    connection_id: str
    connection_name: str
    source_name: str
    summary: str
    topics: list[TopicItemModel]
    warnings: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            "draft_id": self.draft_id,
            "connection_id": self.connection_id,
            "connection_name": self.connection_name,
            "source_name": self.source_name,
            "summary": self.summary,
            "topics": dump_topic_items(self.topics),
            "topic_count": len(self.topics),
            "warnings": list(self.warnings),
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class ExtractionResult:
    status: str
    message: str
    warnings: list[str]
    draft: ExtractionDraft | None = None
    category: str | None = None
    retryable: bool = False

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "message": self.message,
            "warnings": list(self.warnings),
            "category": self.category,
            "retryable": self.retryable,
            "draft": self.draft.to_dict() if self.draft else None,
        }


def truncate_source_text(text: str, max_chars: int = TOPIC_AI_SOURCE_MAX_CHARS) -> tuple[str, bool]:
    if len(text) <= max_chars:
        return text, False
    return text[:max_chars], True


def build_topic_catalog_prompt(
    prompts: AiPromptsConfig,
    *,
    source_name: str,
    source_text: str,
    response_language: str = DEFAULT_RESPONSE_LANGUAGE,
) -> str:
    return render_prompt_template(
        prompts.topic_catalog_user_prompt_template,
        {
            "responseLanguage": response_language,
            "sourceName": source_name,
            "sourceText": source_text,
        },
    )


def request_completion(config: AiConfig, system_prompt: str, user_prompt: str) -> str:
    """Call the completion service, raising with the service's own error text."""
    resolved = resolve_ai_config(config)
    if not user_prompt.strip():
        raise AiConfigurationError("AI user prompt is missing")

    result = complete_chat(resolved, system_prompt, user_prompt)
    if result.status != "success" or not (result.raw_response or "").strip():
        raise ModelServiceError("; ".join(result.warnings) or "AI generation request failed.")
    return result.raw_response


def extract_topic_catalog(
    *,
    connection_id: str,
    source_name: str,
    content_bytes: bytes,
    ai_config: AiConfig,
    prompts: AiPromptsConfig,
    connection_name: str | None = None,
    response_language: str = DEFAULT_RESPONSE_LANGUAGE,
) -> ExtractionDraft:
    warnings: list[str] = []

    source_text = read_protocol_source(source_name, content_bytes).strip()
    if not source_text:
        raise EmptySourceError("The document does not contain any readable text.")

    truncated_text, was_truncated = truncate_source_text(source_text)
    if was_truncated:
        logger.info(
            "Source '%s' truncated from %s to %s characters.",
            source_name,
            len(source_text),
            TOPIC_AI_SOURCE_MAX_CHARS,
        )
        warnings.append(
            f"Document text was truncated to the first {TOPIC_AI_SOURCE_MAX_CHARS} characters before extraction."
        )

    user_prompt = build_topic_catalog_prompt(
        prompts,
        source_name=source_name,
        source_text=truncated_text,
        response_language=response_language,
    )
    raw_response = request_completion(ai_config, prompts.topic_catalog_system_prompt, user_prompt)
    extraction = normalize_catalog(recover_json_value(raw_response))
    logger.info("Recovered %s topics from '%s'.", len(extraction.topics), source_name)

    return ExtractionDraft(
        draft_id=f"d_{uuid4().hex[:12]}",
        connection_id=connection_id,
        connection_name=connection_name or connection_id,
        source_name=source_name,
        summary=extraction.summary,
        topics=extraction.topics,
        warnings=warnings,
    )


def run_topic_catalog_extraction(
    *,
    connection_id: str,
    source_name: str,
    content_bytes: bytes,
    ai_config: AiConfig,
    prompts: AiPromptsConfig,
    connection_name: str | None = None,
    response_language: str = DEFAULT_RESPONSE_LANGUAGE,
) -> ExtractionResult:
    """Pipeline boundary: every failure becomes one human-readable error result."""
    try:
        draft = extract_topic_catalog(
            connection_id=connection_id,
            source_name=source_name,
            content_bytes=content_bytes,
            ai_config=ai_config,
            prompts=prompts,
            connection_name=connection_name,
            response_language=response_language,
        )
    except TopicCatalogError as exc:
        logger.warning("Topic catalog extraction failed (%s): %s", exc.category, exc)
        return ExtractionResult(
            status="error",
            message=str(exc),
            warnings=[],
            category=exc.category,
            retryable=exc.retryable,
        )

    return ExtractionResult(
        status="success",
        message=f"Recovered {len(draft.topics)} topics. Review the draft before applying it.",
        warnings=list(draft.warnings),
        draft=draft,
    )


def generate_topic_payload(
    *,
    topic: str,
    description: str,
    ai_config: AiConfig,
    prompts: AiPromptsConfig,
) -> str:
    """Ask the model for a sample payload for ``topic`` and return it as pretty JSON."""
    topic = topic.strip()
    if not topic:
        raise AiConfigurationError("Topic is required for AI generation")

    user_prompt = render_prompt_template(
        prompts.payload_user_prompt_template,
        {
            "topic": topic,
            "description": description.strip() or prompts.payload_description_fallback.strip(),
        },
    )
    raw_response = request_completion(ai_config, prompts.payload_system_prompt, user_prompt)
    try:
        value = recover_json_value(raw_response)
    except UnrecoverableModelOutputError as exc:
        raise UnrecoverableModelOutputError(f"AI payload generation failed: {exc}") from exc
    return json.dumps(value, indent=2, ensure_ascii=False)
