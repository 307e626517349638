from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")

TOPIC_CATALOG_SYSTEM_PROMPT = (
    "You are an MQTT protocol analyst. You read protocol and interface documents "
    "and turn them into a structured MQTT topic catalog. Return strict JSON only."
)

TOPIC_CATALOG_USER_PROMPT_TEMPLATE = (
    "Read the protocol document below and extract every MQTT topic it defines.\n"
    "Answer in {{responseLanguage}} for free-text fields.\n"
    "Return only JSON with this shape and no markdown fences:\n"
    '{"summary":"<one paragraph>","topics":[{"name":"<short name>","topic":"<mqtt/topic>",'
    '"direction":"publish|subscribe|both","qos":0,"retain":false,"contentType":"application/json",'
    '"description":"<purpose>","tags":["<tag>"],"payloadTemplate":"<json>",'
    '"payloadExample":"<json>","schema":"<json schema>"}]}\n'
    "Document name: {{sourceName}}\n"
    "Document content:\n"
    "{{sourceText}}"
)

PAYLOAD_SYSTEM_PROMPT = "You generate realistic MQTT payloads and return strict JSON only."

PAYLOAD_USER_PROMPT_TEMPLATE = (
    'You are an MQTT payload generator. Topic: "{{topic}}". '
    'Description: "{{description}}". Return only valid JSON with no markdown fences.'
)

PAYLOAD_DESCRIPTION_FALLBACK = "A realistic sample message for this topic."


def render_prompt_template(template: str, variables: Mapping[str, Any]) -> str:
    """Substitute ``{{name}}`` placeholders; unknown or ``None`` values render empty.

    Values are inserted literally. Nothing in the source text is escaped, so a
    document can contain text that reads like instructions to the model.
    """

    def _replace(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_replace, template)


@dataclass(frozen=True)
class AiPromptsConfig:
    payload_system_prompt: str = PAYLOAD_SYSTEM_PROMPT
    payload_user_prompt_template: str = PAYLOAD_USER_PROMPT_TEMPLATE
    payload_description_fallback: str = PAYLOAD_DESCRIPTION_FALLBACK
    topic_catalog_system_prompt: str = TOPIC_CATALOG_SYSTEM_PROMPT
    topic_catalog_user_prompt_template: str = TOPIC_CATALOG_USER_PROMPT_TEMPLATE
    source: str = "default"

    def to_dict(self) -> dict:
        return asdict(self)


_PROMPT_KEYS = {
    "payload_system_prompt": "payloadSystemPrompt",
    "payload_user_prompt_template": "payloadUserPromptTemplate",
    "payload_description_fallback": "payloadDescriptionFallback",
    "topic_catalog_system_prompt": "topicCatalogSystemPrompt",
    "topic_catalog_user_prompt_template": "topicCatalogUserPromptTemplate",
}


def normalize_ai_prompts(raw: object, *, source: str = "default") -> AiPromptsConfig:
    defaults = AiPromptsConfig()
    if not isinstance(raw, dict):
        return defaults

    values: dict[str, str] = {}
    for field_name, camel_name in _PROMPT_KEYS.items():
        value = raw.get(camel_name, raw.get(field_name))
        if isinstance(value, str) and value.strip():
            values[field_name] = value
        else:
            values[field_name] = getattr(defaults, field_name)
    return AiPromptsConfig(**values, source=source)


def load_ai_prompts(path: str | None = None) -> AiPromptsConfig:
    configured_path = path or os.getenv("TOPIC_AI_PROMPTS_PATH", "data/ai_prompts.json")
    file_path = Path(configured_path)

    if file_path.exists():
        try:
            raw = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("AI prompts file %s is not valid JSON; using defaults.", file_path)
            return AiPromptsConfig()
        return normalize_ai_prompts(raw, source=str(file_path))

    return AiPromptsConfig()
