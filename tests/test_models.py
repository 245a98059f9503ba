import json

import pytest
from pydantic import ValidationError

from content_pipeline.errors import ErrorKind, InputValidationError
from content_pipeline.models import (
    BrandAnalysis,
    ContentPlan,
    EditedContent,
    GeneratedSchema,
    PipelineInput,
    PipelineResult,
    PipelineStages,
    WrittenContent,
)

from payloads import BRAND_REPLY, EDITED_REPLY, PLAN_REPLY, SCHEMA_REPLY, WRITTEN_REPLY


def test_pipeline_input_accepts_both_spellings() -> None:
    camel = PipelineInput.coerce({"topic": "Coffee", "targetKeyword": "coffee", "brandBible": {"tone": "warm"}})
    snake = PipelineInput.coerce({"topic": "Coffee", "target_keyword": "coffee", "brand_profile": {"tone": "warm"}})
    assert camel == snake
    assert camel.brand_profile == {"tone": "warm"}


def test_pipeline_input_strips_required_text() -> None:
    assert PipelineInput.coerce({"topic": "  Coffee ", "targetKeyword": "coffee"}).topic == "Coffee"


@pytest.mark.parametrize(
    "data",
    [
        {"targetKeyword": "coffee"},
        {"topic": "Coffee", "targetKeyword": "   "},
        {"topic": "Coffee", "targetKeyword": "coffee", "targetWordCount": 0},
        {"topic": "Coffee", "targetKeyword": "coffee", "contentType": "novel"},
    ],
)
def test_pipeline_input_rejects_invalid(data) -> None:
    with pytest.raises(InputValidationError) as exc_info:
        PipelineInput.coerce(data)
    assert exc_info.value.kind is ErrorKind.VALIDATION


def test_records_are_immutable() -> None:
    analysis = BrandAnalysis.model_validate(BRAND_REPLY)
    with pytest.raises(ValidationError):
        analysis.context_summary = "changed"


def test_to_wire_is_camel_case() -> None:
    wire = BrandAnalysis.model_validate(BRAND_REPLY).to_wire()
    assert wire["identity"]["valueProposition"] == "Fresh single-origin beans shipped weekly"
    assert "value_proposition" not in wire["identity"]
    assert json.loads(BrandAnalysis.model_validate(BRAND_REPLY).to_prompt_json()) == wire


def test_brand_fallback() -> None:
    fallback = BrandAnalysis.fallback("Acme")
    assert fallback.identity.name == "Acme"
    assert fallback.identity.industry == "general"
    assert fallback.voice.tone == "professional"
    assert fallback.voice.personality == ["helpful", "knowledgeable"]
    assert fallback.content_guidelines == ["Write clearly", "Focus on value"]
    assert fallback.key_messages == []
    assert BrandAnalysis.fallback(None).identity.name == "Brand"


def test_plan_normalizes_enums() -> None:
    plan = ContentPlan.model_validate(PLAN_REPLY)
    assert plan.search_intent == "informational"
    assert [s.type for s in plan.sections] == ["h2", "h3"]


def test_plan_requires_sections() -> None:
    with pytest.raises(ValidationError):
        ContentPlan.model_validate({**PLAN_REPLY, "sections": []})


def test_written_content_fills_missing_word_counts() -> None:
    written = WrittenContent.model_validate(WRITTEN_REPLY)
    assert [s.word_count for s in written.sections] == [6, 4]
    # intro 9 + sections 10 + conclusion 4 + faq answer 3
    assert written.total_word_count == 26


def test_edited_content_keeps_reported_total() -> None:
    assert EditedContent.model_validate({**EDITED_REPLY, "totalWordCount": 30}).total_word_count == 30
    # intro 11 + sections 10 + conclusion 4 + faq answer 3
    assert EditedContent.model_validate(EDITED_REPLY).total_word_count == 28


@pytest.mark.parametrize("field", ["seoScore", "readabilityScore"])
def test_edited_scores_are_bounded(field) -> None:
    with pytest.raises(ValidationError):
        EditedContent.model_validate({**EDITED_REPLY, field: 101})


def test_schema_builds_graph_when_json_ld_missing() -> None:
    graph = json.loads(GeneratedSchema.model_validate(SCHEMA_REPLY).to_json_ld())
    assert graph["@context"] == "https://schema.org"
    assert [node["@type"] for node in graph["@graph"]] == ["Article", "FAQPage"]
    assert graph["@graph"][1]["mainEntity"][0]["acceptedAnswer"]["text"] == "About four minutes."


def test_schema_keeps_model_json_ld() -> None:
    schema = GeneratedSchema.model_validate({**SCHEMA_REPLY, "jsonLd": {"@graph": []}})
    assert json.loads(schema.to_json_ld()) == {"@graph": []}


def test_schema_keeps_extra_properties() -> None:
    article = {**SCHEMA_REPLY["article"], "inLanguage": "en"}
    schema = GeneratedSchema.model_validate({**SCHEMA_REPLY, "article": article})
    assert schema.article.to_wire()["inLanguage"] == "en"


def test_stages_are_recorded_once_in_order() -> None:
    stages = PipelineStages()
    stages.record("content-planner", ContentPlan.model_validate(PLAN_REPLY))
    stages.record("brand-analyzer", BrandAnalysis.fallback("Acme"))

    assert stages.recorded() == ["brand-analyzer", "content-planner"]
    assert stages.get("brand-analyzer").identity.name == "Acme"
    with pytest.raises(ValueError):
        stages.record("brand-analyzer", BrandAnalysis.fallback("Other"))


def test_failed_result_has_no_content_record() -> None:
    result = PipelineResult(pipeline_id="p-1", error="Writing failed: boom")
    with pytest.raises(ValueError):
        result.to_content_record(PipelineInput(topic="Coffee", target_keyword="coffee"))
