from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Union
from uuid import uuid4

from topic_catalog.errors import InvalidCatalogFileError, NoTopicsRecoveredError
from topic_catalog.schema_models import (
    TOPIC_CATALOG_MAGIC,
    TOPIC_DOC_VERSION,
    TopicCatalogFileModel,
    TopicDocumentModel,
    TopicItemModel,
)

logger = logging.getLogger(__name__)

DIRECTIONS = ("publish", "subscribe", "both")
DEFAULT_DIRECTION = "publish"
_TRUTHY_STRINGS = {"true", "1", "yes", "on"}


@dataclass(frozen=True)
class TopicArrayPayload:
    """Model reply shaped as a bare array of topic-like objects."""

    items: list[Any]


@dataclass(frozen=True)
class TopicEnvelopePayload:
    """Model reply shaped as ``{"summary": ..., "topics": [...]}``."""

    summary: str
    items: list[Any]


CatalogPayload = Union[TopicArrayPayload, TopicEnvelopePayload]


@dataclass(frozen=True)
class CatalogExtraction:
    summary: str
    topics: list[TopicItemModel] = field(default_factory=list)


def _sanitize_text(value: object, fallback: str = "") -> str:
    return value if isinstance(value, str) else fallback


def _optional_text(raw: dict, *keys: str) -> str | None:
    for key in keys:
        value = _sanitize_text(raw.get(key))
        if value:
            return value
    return None


def normalize_direction(value: object) -> str:
    return value if value in DIRECTIONS else DEFAULT_DIRECTION


def normalize_qos(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value) if value in (1, 2) else 0


def normalize_retain(value: object) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return bool(value)


def normalize_tags(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    tags: list[str] = []
    for tag in value:
        if isinstance(tag, str) and tag.strip() and tag not in tags:
            tags.append(tag)
    return tags


def sanitize_topic_item(raw: object) -> TopicItemModel | None:
    """Coerce one loosely-typed topic object; ``None`` when it has no topic string."""
    if not isinstance(raw, dict):
        return None

    topic = _sanitize_text(raw.get("topic"))
    if not topic.strip():
        return None

    item_id = _sanitize_text(raw.get("id")).strip()
    return TopicItemModel(
        id=item_id or str(uuid4()),
        name=_sanitize_text(raw.get("name")) or topic,
        topic=topic,
        direction=normalize_direction(raw.get("direction")),
        qos=normalize_qos(raw.get("qos")),
        retain=normalize_retain(raw.get("retain")),
        content_type=_optional_text(raw, "contentType", "content_type"),
        description=_optional_text(raw, "description"),
        tags=normalize_tags(raw.get("tags")),
        payload_template=_optional_text(raw, "payloadTemplate", "payload_template"),
        payload_example=_optional_text(raw, "payloadExample", "payload_example"),
        schema_text=_optional_text(raw, "schema", "schema_text"),
    )


def dedupe_topics(items: Iterable[TopicItemModel]) -> list[TopicItemModel]:
    seen: set[str] = set()
    unique: list[TopicItemModel] = []
    for item in items:
        key = item.topic.strip()
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def sanitize_topic_items(raw_items: Iterable[Any]) -> list[TopicItemModel]:
    sanitized = [sanitize_topic_item(item) for item in raw_items]
    return dedupe_topics(item for item in sanitized if item is not None)


def parse_catalog_payload(value: Any) -> CatalogPayload:
    if isinstance(value, list):
        return TopicArrayPayload(items=value)
    if isinstance(value, dict):
        topics = value.get("topics")
        return TopicEnvelopePayload(
            summary=_sanitize_text(value.get("summary")),
            items=topics if isinstance(topics, list) else [],
        )
    return TopicEnvelopePayload(summary="", items=[])


def normalize_catalog(value: Any) -> CatalogExtraction:
    """Turn a recovered JSON value into the final ordered topic list and summary."""
    payload = parse_catalog_payload(value)
    if isinstance(payload, TopicArrayPayload):
        summary, raw_items = "", payload.items
    elif isinstance(payload, TopicEnvelopePayload):
        summary, raw_items = payload.summary, payload.items
    else:
        raise TypeError(f"Unhandled catalog payload shape: {type(payload).__name__}")

    topics = sanitize_topic_items(raw_items)
    dropped = len(raw_items) - len(topics)
    if dropped:
        logger.info("Dropped %s topic entries without a usable or unique topic.", dropped)
    if not topics:
        raise NoTopicsRecoveredError("No topics recovered from the AI output.")
    return CatalogExtraction(summary=summary, topics=topics)


def normalize_topic_document(raw: object) -> TopicDocumentModel | None:
    if not isinstance(raw, dict):
        return None

    topics = raw.get("topics")
    updated_at = raw.get("updatedAt", raw.get("updated_at"))
    if isinstance(updated_at, bool) or not isinstance(updated_at, (int, float)) or not math.isfinite(updated_at):
        updated_at = int(time.time() * 1000)

    return TopicDocumentModel(
        version=_sanitize_text(raw.get("version"), TOPIC_DOC_VERSION) or TOPIC_DOC_VERSION,
        updated_at=int(updated_at),
        topics=sanitize_topic_items(topics) if isinstance(topics, list) else [],
    )


def parse_topic_catalog_file(raw: object) -> TopicCatalogFileModel:
    if not isinstance(raw, dict) or raw.get("magic") != TOPIC_CATALOG_MAGIC:
        raise InvalidCatalogFileError("Invalid topic catalog file: magic header does not match.")
    topics = raw.get("topics")
    if not isinstance(topics, list):
        raise InvalidCatalogFileError("Invalid topic catalog file: 'topics' must be a list.")

    return TopicCatalogFileModel(
        version=_sanitize_text(raw.get("version"), TOPIC_DOC_VERSION) or TOPIC_DOC_VERSION,
        topics=sanitize_topic_items(topics),
    )


def build_topic_catalog_file(document: TopicDocumentModel | None) -> TopicCatalogFileModel:
    if document is None:
        return TopicCatalogFileModel()
    return TopicCatalogFileModel(
        version=document.version or TOPIC_DOC_VERSION,
        topics=[item.model_copy(deep=True) for item in document.topics],
    )
