from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib import error, request

from topic_catalog.ai_config import ResolvedAiConfig, load_request_timeout

logger = logging.getLogger(__name__)

PROVIDER_NAME = "AI service"


@dataclass(frozen=True)
class LlmTextResult:
    status: str
    raw_response: str | None
    warnings: list[str]


def _post_json(url: str, payload: dict[str, Any], headers: dict[str, str], timeout: float) -> dict[str, Any]:
    body = json.dumps(payload).encode("utf-8")
    req = request.Request(url, data=body, headers=headers, method="POST")
    with request.urlopen(req, timeout=timeout) as response:
        response_body = response.read().decode("utf-8")
    return json.loads(response_body)


def _http_error_warning(provider_name: str, exc: error.HTTPError) -> str:
    response_excerpt = ""
    try:
        response_body = exc.read().decode("utf-8", errors="replace").strip()
    except Exception:
        response_body = ""

    if response_body:
        try:
            parsed = json.loads(response_body)
            if isinstance(parsed, dict):
                error_payload = parsed.get("error")
                if isinstance(error_payload, dict):
                    message = error_payload.get("message")
                    if isinstance(message, str) and message.strip():
                        response_excerpt = message.strip()
                elif isinstance(error_payload, str) and error_payload.strip():
                    response_excerpt = error_payload.strip()
        except json.JSONDecodeError:
            response_excerpt = response_body[:200]

    if response_excerpt:
        return f"{provider_name} request failed with HTTP {exc.code}: {response_excerpt}"

    return f"{provider_name} request failed with HTTP {exc.code}."


def _collect_content_parts(content: Any) -> list[str]:
    if not isinstance(content, list):
        return []

    collected: list[str] = []
    for part in content:
        if not isinstance(part, dict):
            continue

        direct_text = part.get("text")
        if isinstance(direct_text, str) and direct_text.strip():
            collected.append(direct_text.strip())
            continue

        value = part.get("value")
        if isinstance(value, str) and value.strip():
            collected.append(value.strip())

    return collected


def _extract_chat_completion_text(response_payload: dict[str, Any]) -> str | None:
    choices = response_payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None

    first = choices[0] if isinstance(choices[0], dict) else {}
    message = first.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content.strip():
        return content.strip()

    parts = _collect_content_parts(content)
    if parts:
        return "\n".join(parts)

    legacy_text = first.get("text")
    if isinstance(legacy_text, str) and legacy_text.strip():
        return legacy_text.strip()
    return None


def complete_chat(config: ResolvedAiConfig, system_prompt: str, user_prompt: str) -> LlmTextResult:
    """Run one chat completion against an OpenAI-compatible endpoint."""
    try:
        payload = {
            "model": config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        response_payload = _post_json(
            f"{config.base_url}/chat/completions",
            payload,
            {
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.api_key}",
            },
            load_request_timeout(),
        )
    except error.HTTPError as exc:
        return LlmTextResult(
            status="error",
            raw_response=None,
            warnings=[_http_error_warning(PROVIDER_NAME, exc)],
        )
    except error.URLError as exc:
        return LlmTextResult(
            status="error",
            raw_response=None,
            warnings=[f"{PROVIDER_NAME} request failed: {exc.reason}"],
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Chat completion request failed: %s", exc)
        return LlmTextResult(
            status="error",
            raw_response=None,
            warnings=[f"{PROVIDER_NAME} request failed before receiving a response: {exc}"],
        )

    extracted_text = _extract_chat_completion_text(response_payload)
    if extracted_text:
        return LlmTextResult(status="success", raw_response=extracted_text, warnings=[])

    return LlmTextResult(
        status="error",
        raw_response=json.dumps(response_payload),
        warnings=[f"{PROVIDER_NAME} response did not contain extractable text content."],
    )
