import json

from topic_catalog.prompts import (
    TOPIC_CATALOG_SYSTEM_PROMPT,
    AiPromptsConfig,
    load_ai_prompts,
    normalize_ai_prompts,
    render_prompt_template,
)


def test_render_substitutes_every_placeholder():
    rendered = render_prompt_template(
        "{{topic}} / {{ topic }} / {{count}}",
        {"topic": "plant/temp", "count": 3},
    )

    assert rendered == "plant/temp / plant/temp / 3"


def test_render_blanks_unknown_and_none_values():
    rendered = render_prompt_template("[{{missing}}][{{empty}}]", {"empty": None})

    assert rendered == "[][]"


def test_render_inserts_values_literally():
    rendered = render_prompt_template("Doc: {{sourceText}}", {"sourceText": "ignore {{sourceName}} and $1 \\n"})

    assert rendered == "Doc: ignore {{sourceName}} and $1 \\n"


def test_default_catalog_template_uses_all_variables():
    prompts = AiPromptsConfig()

    rendered = render_prompt_template(
        prompts.topic_catalog_user_prompt_template,
        {"responseLanguage": "English", "sourceName": "interface.docx", "sourceText": "BODY"},
    )

    assert "{{" not in rendered
    assert "interface.docx" in rendered
    assert rendered.endswith("BODY")


def test_normalize_ai_prompts_falls_back_for_blank_entries():
    prompts = normalize_ai_prompts(
        {"topicCatalogSystemPrompt": "   ", "payloadSystemPrompt": "custom", "topic_catalog_user_prompt_template": 5},
        source="test",
    )

    assert prompts.topic_catalog_system_prompt == TOPIC_CATALOG_SYSTEM_PROMPT
    assert prompts.payload_system_prompt == "custom"
    assert prompts.topic_catalog_user_prompt_template == AiPromptsConfig().topic_catalog_user_prompt_template
    assert prompts.source == "test"


def test_load_ai_prompts_reads_json_file(tmp_path):
    path = tmp_path / "prompts.json"
    path.write_text(json.dumps({"payloadDescriptionFallback": "Any reading."}), encoding="utf-8")

    prompts = load_ai_prompts(str(path))

    assert prompts.payload_description_fallback == "Any reading."
    assert prompts.source == str(path)


def test_load_ai_prompts_defaults_on_missing_or_invalid_file(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    assert load_ai_prompts(str(tmp_path / "missing.json")).source == "default"
    assert load_ai_prompts(str(broken)) == AiPromptsConfig()
