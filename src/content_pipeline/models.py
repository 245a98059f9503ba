"""Pydantic models for the pipeline input, the per-stage hand-off records, events and results.

Python attributes are snake_case; the JSON the model reads and writes is
camelCase. Every model accepts both spellings on input.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from content_pipeline.constants import (
    DEFAULT_BRAND_NAME,
    FALLBACK_GUIDELINES,
    FALLBACK_INDUSTRY,
    FALLBACK_VOICE,
)
from content_pipeline.errors import ErrorKind, InputValidationError

SearchIntent = Literal["informational", "commercial", "transactional", "navigational"]
ContentType = Literal["article", "blog-post", "guide", "how-to"]
EventType = Literal["progress", "stage-complete", "error", "complete"]
StageStatus = Literal["pending", "running", "completed", "failed"]


def word_count(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


class Record(BaseModel):
    """Immutable camelCase-aliased base for every hand-off record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_prompt_json(self) -> str:
        return json.dumps(self.to_wire(), indent=2, ensure_ascii=False)


def _lower(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


def _item(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        camel = to_camel(name)
        return obj[camel] if camel in obj else obj.get(name)
    return getattr(obj, name, None)


def _key(data: dict, name: str) -> str:
    return name if name in data else to_camel(name)


# ---------------------------------------------------------------------------
# Pipeline input
# ---------------------------------------------------------------------------


class PipelineInput(Record):
    """The caller's request. Defaults for optional fields are applied by the orchestrator."""

    topic: str
    target_keyword: str
    secondary_keywords: Optional[list[str]] = None
    target_word_count: Optional[int] = Field(default=None, gt=0)
    content_type: Optional[ContentType] = None
    additional_notes: Optional[str] = None
    brand_name: Optional[str] = None
    website_url: Optional[str] = None
    brand_profile: Optional[dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("brand_profile", "brandProfile", "brandBible"),
    )
    site_context: Optional[str] = None
    project_id: Optional[str] = None

    @field_validator("topic", "target_keyword")
    @classmethod
    def required_text(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must be a non-empty string")
        return value

    @classmethod
    def coerce(cls, data: PipelineInput | dict[str, Any]) -> PipelineInput:
        """Return ``data`` as a PipelineInput, raising InputValidationError on bad fields."""
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in e.errors()
            )
            raise InputValidationError(f"Invalid pipeline input — {problems}") from e


# ---------------------------------------------------------------------------
# Stage 1: brand analysis
# ---------------------------------------------------------------------------


class BrandIdentity(Record):
    name: str
    industry: str = ""
    mission: Optional[str] = None
    value_proposition: Optional[str] = None
    target_audience: Optional[str] = None
    competitors: list[str] = Field(default_factory=list)
    unique_selling_points: list[str] = Field(default_factory=list)


class BrandVoice(Record):
    tone: str = ""
    personality: list[str] = Field(default_factory=list)
    writing_style: str = ""
    vocabulary_level: str = ""
    do_list: list[str] = Field(default_factory=list)
    dont_list: list[str] = Field(default_factory=list)


class BrandAnalysis(Record):
    identity: BrandIdentity
    voice: BrandVoice = Field(default_factory=BrandVoice)
    content_guidelines: list[str] = Field(default_factory=list)
    key_messages: list[str] = Field(default_factory=list)
    context_summary: str = ""

    @classmethod
    def fallback(cls, brand_name: Optional[str]) -> BrandAnalysis:
        """Generic analysis built from the brand name alone."""
        return cls(
            identity=BrandIdentity(name=brand_name or DEFAULT_BRAND_NAME, industry=FALLBACK_INDUSTRY),
            voice=BrandVoice(**FALLBACK_VOICE),
            content_guidelines=list(FALLBACK_GUIDELINES),
            key_messages=[],
            context_summary=f"Content for {brand_name or 'the brand'}",
        )


# ---------------------------------------------------------------------------
# Stage 2: content plan
# ---------------------------------------------------------------------------


class IntroductionPlan(Record):
    hook: str = ""
    key_points: list[str] = Field(default_factory=list)
    word_count_target: int = 0


class OutlineSection(Record):
    heading: str
    type: Literal["h2", "h3"] = "h2"
    key_points: list[str] = Field(default_factory=list)
    word_count_target: int = 0
    keywords: list[str] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        return _lower(value)


class ConclusionPlan(Record):
    key_takeaways: list[str] = Field(default_factory=list)
    call_to_action: str = ""
    word_count_target: int = 0


class FaqPlan(Record):
    question: str
    answer_guidance: str = ""


class ContentPlan(Record):
    title: str
    meta_description: str = ""
    target_keyword: str = ""
    secondary_keywords: list[str] = Field(default_factory=list)
    search_intent: SearchIntent = "informational"
    introduction: IntroductionPlan = Field(default_factory=IntroductionPlan)
    sections: list[OutlineSection] = Field(min_length=1)
    conclusion: ConclusionPlan = Field(default_factory=ConclusionPlan)
    faqs: list[FaqPlan] = Field(default_factory=list)
    total_word_count_target: int = 0

    @field_validator("search_intent", mode="before")
    @classmethod
    def normalize_intent(cls, value: Any) -> Any:
        return _lower(value)


# ---------------------------------------------------------------------------
# Stages 3-4: written and edited content
# ---------------------------------------------------------------------------


class WrittenSection(Record):
    heading: str
    content: str
    word_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def fill_word_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and not _item(data, "word_count"):
            data = {**data, _key(data, "word_count"): word_count(_item(data, "content") or "")}
        return data


class Faq(Record):
    question: str
    answer: str


class WrittenContent(Record):
    title: str
    meta_title: str = ""
    meta_description: str = ""
    introduction: str
    sections: list[WrittenSection] = Field(min_length=1)
    conclusion: str = ""
    faqs: list[Faq] = Field(default_factory=list)
    total_word_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def fill_total_word_count(cls, data: Any) -> Any:
        if isinstance(data, dict) and not _item(data, "total_word_count"):
            parts = [_item(data, "introduction") or "", _item(data, "conclusion") or ""]
            parts += [_item(s, "content") or "" for s in _item(data, "sections") or []]
            parts += [_item(f, "answer") or "" for f in _item(data, "faqs") or []]
            data = {**data, _key(data, "total_word_count"): sum(word_count(p) for p in parts)}
        return data


class EditedContent(WrittenContent):
    readability_score: int = Field(ge=0, le=100)
    seo_score: int = Field(ge=0, le=100)
    edit_summary: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Stage 5: structured-data schema
# ---------------------------------------------------------------------------


class SchemaRecord(Record):
    """JSON-LD node. Extra properties the model adds are kept."""

    model_config = ConfigDict(extra="allow")


class SchemaParty(SchemaRecord):
    type_: str = Field(default="Organization", alias="@type")
    name: str = ""
    url: Optional[str] = None


class ArticleSchema(SchemaRecord):
    type_: str = Field(default="Article", alias="@type")
    headline: str
    description: str = ""
    author: SchemaParty = Field(default_factory=SchemaParty)
    publisher: SchemaParty = Field(default_factory=SchemaParty)
    date_published: str = ""
    date_modified: str = ""
    main_entity_of_page: Optional[Any] = None
    image: Optional[Any] = None
    word_count: int = 0


class SchemaAnswer(SchemaRecord):
    type_: str = Field(default="Answer", alias="@type")
    text: str


class SchemaQuestion(SchemaRecord):
    type_: str = Field(default="Question", alias="@type")
    name: str
    accepted_answer: SchemaAnswer


class FaqSchema(SchemaRecord):
    type_: str = Field(default="FAQPage", alias="@type")
    main_entity: list[SchemaQuestion] = Field(default_factory=list)


class GeneratedSchema(Record):
    article: ArticleSchema
    faq: FaqSchema = Field(default_factory=FaqSchema)
    json_ld: str = ""

    @field_validator("json_ld", mode="before")
    @classmethod
    def serialize_graph(cls, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return value

    def to_json_ld(self) -> str:
        """The model's combined JSON-LD, or an @graph built from article + faq."""
        if self.json_ld.strip():
            return self.json_ld
        graph = {
            "@context": "https://schema.org",
            "@graph": [self.article.to_wire(), self.faq.to_wire()],
        }
        return json.dumps(graph, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Stage 6: rendered output
# ---------------------------------------------------------------------------


class ContentMeta(Record):
    title: str
    description: str
    keywords: list[str] = Field(default_factory=list)


class ContentBody(Record):
    title: str
    introduction: str
    sections: list[WrittenSection]
    conclusion: str
    faqs: list[Faq]


class ContentRecord(Record):
    meta: ContentMeta
    content: ContentBody
    structured_data: GeneratedSchema = Field(alias="schema")


class ContentOutput(Record):
    markdown: str
    html: str
    record: ContentRecord = Field(alias="json")
    word_count: int


# ---------------------------------------------------------------------------
# Events and results
# ---------------------------------------------------------------------------


class PipelineProgressEvent(Record):
    """One orchestration tick, shared by the log and the streaming transport."""

    type: EventType
    stage: Optional[str] = None
    status: Optional[StageStatus] = None
    message: str
    progress: int = Field(default=0, ge=0, le=100)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: Optional[dict[str, Any]] = None


_STAGE_FIELDS = {
    "brand-analyzer": "brand_analysis",
    "content-planner": "content_plan",
    "writer": "written_content",
    "editor": "edited_content",
    "schema-generator": "generated_schema",
    "output-generator": "output",
}


class PipelineStages(BaseModel):
    """Per-stage results. Filled once per stage, in order, never overwritten."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    brand_analysis: Optional[BrandAnalysis] = None
    content_plan: Optional[ContentPlan] = None
    written_content: Optional[WrittenContent] = None
    edited_content: Optional[EditedContent] = None
    generated_schema: Optional[GeneratedSchema] = Field(default=None, alias="schema")
    output: Optional[ContentOutput] = None

    def record(self, stage: str, value: Any) -> None:
        name = _STAGE_FIELDS[stage]
        if getattr(self, name) is not None:
            raise ValueError(f"Stage {stage!r} already recorded")
        setattr(self, name, value)

    def get(self, stage: str) -> Any:
        return getattr(self, _STAGE_FIELDS[stage])

    def recorded(self) -> list[str]:
        """Stage ids that have a result, in pipeline order."""
        return [stage for stage, name in _STAGE_FIELDS.items() if getattr(self, name) is not None]


class PipelineResult(BaseModel):
    """Terminal outcome of one run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = False
    pipeline_id: str
    stages: PipelineStages = Field(default_factory=PipelineStages)
    final_output: Optional[ContentOutput] = None
    error: Optional[str] = None
    failed_stage: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    duration: float = 0.0
    events: list[PipelineProgressEvent] = Field(default_factory=list)

    def to_content_record(self, pipeline_input: PipelineInput) -> dict[str, Any]:
        """Flat record a caller persists for a successful run."""
        if not self.success or self.final_output is None:
            raise ValueError("Only a successful run produces a content record")
        edited = self.stages.edited_content
        schema = self.stages.generated_schema
        return {
            "project_id": pipeline_input.project_id,
            "title": (edited.meta_title if edited else "") or pipeline_input.topic,
            "meta_description": edited.meta_description if edited else None,
            "content_markdown": self.final_output.markdown,
            "content_html": self.final_output.html,
            "content_json": self.final_output.record.to_wire(),
            "schema_json": schema.to_json_ld() if schema else None,
            "target_keyword": pipeline_input.target_keyword,
            "word_count": self.final_output.word_count,
            "seo_score": edited.seo_score if edited else None,
            "readability_score": edited.readability_score if edited else None,
            "pipeline_id": self.pipeline_id,
            "content_type": pipeline_input.content_type or "article",
            "status": "completed",
        }
