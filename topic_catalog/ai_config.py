from __future__ import annotations

import os
from dataclasses import dataclass

from topic_catalog.errors import AiConfigurationError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 60.0


@dataclass(frozen=True)
class AiConfig:
    base_url: str | None = None
    api_key: str | None = None
    model: str | None = None

    def to_dict(self, *, redact: bool = True) -> dict:
        api_key = self.api_key
        if redact and api_key:
            api_key = "***"
        return {"base_url": self.base_url, "api_key": api_key, "model": self.model}


@dataclass(frozen=True)
class ResolvedAiConfig:
    base_url: str
    api_key: str
    model: str


def load_ai_config() -> AiConfig:
    return AiConfig(
        base_url=os.getenv("TOPIC_AI_BASE_URL", DEFAULT_BASE_URL),
        api_key=os.getenv("TOPIC_AI_API_KEY"),
        model=os.getenv("TOPIC_AI_MODEL", DEFAULT_MODEL),
    )


def load_request_timeout() -> float:
    raw = os.getenv("TOPIC_AI_TIMEOUT_SECONDS", "")
    try:
        value = float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_TIMEOUT_SECONDS


def merge_ai_config(defaults: AiConfig, options: AiConfig | None) -> AiConfig:
    """Overlay per-request options on the configured defaults, field by field."""
    if options is None:
        return defaults
    return AiConfig(
        base_url=options.base_url or defaults.base_url,
        api_key=options.api_key or defaults.api_key,
        model=options.model or defaults.model,
    )


def _required(value: str | None, message: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise AiConfigurationError(message)
    return cleaned


def validate_base_url(value: str) -> None:
    if not (value.startswith("http://") or value.startswith("https://")):
        raise AiConfigurationError("AI base URL must start with http:// or https://")


def resolve_ai_config(config: AiConfig) -> ResolvedAiConfig:
    api_key = _required(config.api_key, "AI API key is missing")
    base_url = _required(config.base_url, "AI base URL is missing")
    validate_base_url(base_url)
    model = _required(config.model, "AI model is missing")
    return ResolvedAiConfig(base_url=base_url.rstrip("/"), api_key=api_key, model=model)
