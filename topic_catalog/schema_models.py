from __future__ import annotations

import time
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TOPIC_DOC_VERSION = "1.0"
TOPIC_CATALOG_MAGIC = "MQTT_NEXUS_TOPIC_CATALOG_V1"

TopicDirection = Literal["publish", "subscribe", "both"]
TopicQos = Literal[0, 1, 2]


def _now_ms() -> int:
    return int(time.time() * 1000)


class CatalogModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TopicItemModel(CatalogModel):
    """One catalog entry describing a single messaging topic."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    topic: str = Field(min_length=1)
    direction: TopicDirection = "publish"
    qos: TopicQos = 0
    retain: bool = False
    content_type: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    payload_template: str | None = None
    payload_example: str | None = None
    schema_text: str | None = Field(default=None, alias="schema")


class TopicDocumentModel(CatalogModel):
    """The topic catalog owned by one connection."""

    version: str = TOPIC_DOC_VERSION
    updated_at: int = Field(default_factory=_now_ms)
    topics: list[TopicItemModel] = Field(default_factory=list)


class TopicCatalogFileModel(CatalogModel):
    magic: Literal["MQTT_NEXUS_TOPIC_CATALOG_V1"] = TOPIC_CATALOG_MAGIC
    version: str = TOPIC_DOC_VERSION
    topics: list[TopicItemModel] = Field(default_factory=list)


def dump_topic_items(items: list[TopicItemModel]) -> list[dict[str, Any]]:
    """Serialize topic items in their camelCase wire shape, omitting unset optionals."""

    return [item.model_dump(by_alias=True, exclude_none=True) for item in items]


def dump_topic_document(document: TopicDocumentModel) -> dict[str, Any]:
    return document.model_dump(by_alias=True, exclude_none=True)


def topic_item_json_schema() -> dict[str, Any]:
    """Expose JSON schema for tests and tooling."""

    return TopicItemModel.model_json_schema(by_alias=True)
