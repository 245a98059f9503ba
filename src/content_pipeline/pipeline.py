"""ContentPipeline — orchestrator for the 6-stage content generation pipeline.

Stage 1: Brand analysis
Stage 2: Content planning
Stage 3: Writing
Stage 4: Editing
Stage 5: Schema generation
Stage 6: Output rendering

Stages run strictly in order, each fed the typed results of the ones before it.
Every stage emits a "running" event and then a "stage-complete" event (or the
terminal "error" event). A stage marked recoverable in the stage table falls
back to a synthetic result instead of failing the run; any other failure ends
the run. ``run()`` never raises for a stage failure: the caller always gets a
PipelineResult with every stage result reached so far.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Optional, Sequence

from pydantic import BaseModel

from content_pipeline.agents.brand import run_brand_analyzer
from content_pipeline.agents.editor import run_editor
from content_pipeline.agents.output import render_output
from content_pipeline.agents.planner import run_content_planner
from content_pipeline.agents.schema import run_schema_generator
from content_pipeline.agents.writer import run_writer
from content_pipeline.constants import (
    DEFAULT_BRAND_NAME,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_TARGET_WORD_COUNT,
    MAX_STAGE_PROGRESS,
    STAGES,
    StageSpec,
)
from content_pipeline.errors import PipelineCancelled, StageFailure
from content_pipeline.llm_client import TextModelClient
from content_pipeline.models import (
    BrandAnalysis,
    PipelineInput,
    PipelineProgressEvent,
    PipelineResult,
    PipelineStages,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PipelineProgressEvent], None]


class PipelineState(BaseModel):
    """The request with orchestrator defaults applied."""

    request: PipelineInput
    brand_name: str
    secondary_keywords: list[str]
    target_word_count: int
    content_type: str

    @classmethod
    def from_input(cls, request: PipelineInput) -> PipelineState:
        return cls(
            request=request,
            brand_name=request.brand_name or DEFAULT_BRAND_NAME,
            secondary_keywords=list(request.secondary_keywords or []),
            target_word_count=request.target_word_count or DEFAULT_TARGET_WORD_COUNT,
            content_type=request.content_type or DEFAULT_CONTENT_TYPE,
        )


class ContentPipeline:
    """Runs the stage table against one TextModelClient."""

    def __init__(
        self,
        client: Optional[TextModelClient] = None,
        stages: Sequence[StageSpec] = STAGES,
    ):
        self.client = client or TextModelClient()
        self.stages = tuple(stages)

        self._executors: dict[str, Callable[[PipelineState, PipelineStages, dict], Any]] = {
            "brand-analyzer": self._analyze_brand,
            "content-planner": self._plan_content,
            "writer": self._write,
            "editor": self._edit,
            "schema-generator": self._generate_schema,
            "output-generator": self._render,
        }
        self._summaries: dict[str, Callable[[Any], tuple[str, dict[str, Any]]]] = {
            "brand-analyzer": lambda brand: (
                "Brand analysis complete",
                {"identity": brand.identity.to_wire()},
            ),
            "content-planner": lambda plan: (
                f'Content plan created: "{plan.title}"',
                {"title": plan.title, "sections": len(plan.sections)},
            ),
            "writer": lambda written: (
                f"Content written: {written.total_word_count} words",
                {"wordCount": written.total_word_count},
            ),
            "editor": lambda edited: (
                f"Editing complete. SEO Score: {edited.seo_score}/100",
                {"seoScore": edited.seo_score, "readabilityScore": edited.readability_score},
            ),
            "schema-generator": lambda schema: (
                f"Schema generated ({schema.article.type_} + FAQPage)",
                {"articleType": schema.article.type_, "faqCount": len(schema.faq.main_entity)},
            ),
            "output-generator": lambda output: (
                "All outputs generated successfully",
                {"wordCount": output.word_count},
            ),
        }
        self._fallbacks: dict[str, Callable[[PipelineState], Any]] = {
            "brand-analyzer": lambda state: BrandAnalysis.fallback(state.request.brand_name),
        }

        unknown = [spec.stage for spec in self.stages if spec.stage not in self._executors]
        if unknown:
            raise ValueError(f"No executor for stage(s): {', '.join(unknown)}")

    # ── Stage executors ───────────────────────────────────────────────

    def _analyze_brand(self, state: PipelineState, stages: PipelineStages, options: dict) -> BrandAnalysis:
        return run_brand_analyzer(
            self.client,
            brand_name=state.brand_name,
            website_url=state.request.website_url,
            brand_profile=state.request.brand_profile,
            site_context=state.request.site_context,
            **options,
        )

    def _plan_content(self, state: PipelineState, stages: PipelineStages, options: dict):
        return run_content_planner(
            self.client,
            brand_analysis=stages.brand_analysis,
            topic=state.request.topic,
            target_keyword=state.request.target_keyword,
            secondary_keywords=state.secondary_keywords,
            target_word_count=state.target_word_count,
            content_type=state.content_type,
            additional_notes=state.request.additional_notes,
            **options,
        )

    def _write(self, state: PipelineState, stages: PipelineStages, options: dict):
        return run_writer(
            self.client,
            brand_analysis=stages.brand_analysis,
            content_plan=stages.content_plan,
            site_context=state.request.site_context,
            **options,
        )

    def _edit(self, state: PipelineState, stages: PipelineStages, options: dict):
        return run_editor(
            self.client,
            brand_analysis=stages.brand_analysis,
            written_content=stages.written_content,
            site_context=state.request.site_context,
            **options,
        )

    def _generate_schema(self, state: PipelineState, stages: PipelineStages, options: dict):
        return run_schema_generator(
            self.client,
            brand_analysis=stages.brand_analysis,
            edited_content=stages.edited_content,
            content_type=state.content_type,
            **options,
        )

    def _render(self, state: PipelineState, stages: PipelineStages, options: dict):
        plan = stages.content_plan
        keywords = [plan.target_keyword or state.request.target_keyword, *plan.secondary_keywords]
        return render_output(stages.edited_content, stages.generated_schema, keywords)

    # ── Orchestration ─────────────────────────────────────────────────

    def _progress_before(self, index: int) -> int:
        return sum(spec.weight for spec in self.stages[:index])

    def _run_stage(
        self,
        spec: StageSpec,
        state: PipelineState,
        stages: PipelineStages,
        options: dict,
    ) -> tuple[Any, bool]:
        """Run one stage. Returns (value, used_fallback); raises StageFailure."""
        try:
            return self._executors[spec.stage](state, stages, options), False
        except PipelineCancelled as e:
            raise StageFailure(spec.stage, spec.label, e) from e
        except Exception as e:
            fallback = self._fallbacks.get(spec.stage)
            if not (spec.recoverable and fallback):
                raise StageFailure(spec.stage, spec.label, e) from e
            logger.warning("%s failed, using fallback: %s", spec.label, e)
            return fallback(state), True

    def run(
        self,
        pipeline_input: PipelineInput | dict[str, Any],
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> PipelineResult:
        """Run every stage and return the result.

        Raises:
            InputValidationError: before anything runs, if the input is invalid.
        """
        request = PipelineInput.coerce(pipeline_input)
        state = PipelineState.from_input(request)
        result = PipelineResult(pipeline_id=str(uuid.uuid4()))
        started = time.monotonic()
        options: dict[str, Any] = {"cancel": cancel} if cancel is not None else {}
        last_progress = 0

        def emit(**fields: Any) -> None:
            nonlocal last_progress
            event = PipelineProgressEvent(**fields)
            last_progress = event.progress
            result.events.append(event)

            level = logging.ERROR if event.type == "error" else logging.INFO
            logger.log(
                level,
                "[%s] %s (%d%%)",
                event.stage or "pipeline",
                event.message,
                event.progress,
                extra={
                    "pipeline_id": result.pipeline_id,
                    "event_type": event.type,
                    "stage": event.stage,
                    "status": event.status,
                    "progress": event.progress,
                },
            )

            if on_progress is not None:
                try:
                    on_progress(event)
                except Exception:
                    logger.exception("Progress listener failed on %s event", event.type)

        logger.info("Starting pipeline %s for %r", result.pipeline_id, request.topic)

        for index, spec in enumerate(self.stages):
            try:
                emit(
                    type="progress",
                    stage=spec.stage,
                    status="running",
                    message=spec.running_message,
                    progress=self._progress_before(index),
                )

                if cancel is not None and cancel.is_set():
                    raise StageFailure(spec.stage, spec.label, PipelineCancelled())

                value, used_fallback = self._run_stage(spec, state, result.stages, options)
                result.stages.record(spec.stage, value)

                if used_fallback:
                    message, data = f"{spec.label} complete (fallback)", {"fallback": True}
                else:
                    message, data = self._summaries[spec.stage](value)

                emit(
                    type="stage-complete",
                    stage=spec.stage,
                    status="completed",
                    message=message,
                    progress=min(self._progress_before(index + 1), MAX_STAGE_PROGRESS),
                    data=data,
                )
            except Exception as e:
                failure = e if isinstance(e, StageFailure) else StageFailure(spec.stage, spec.label, e)
                result.error = str(failure)
                result.failed_stage = failure.stage
                result.error_kind = failure.kind
                result.duration = round(time.monotonic() - started, 3)
                emit(
                    type="error",
                    stage=failure.stage,
                    status="failed",
                    message=f"Pipeline failed: {failure}",
                    progress=last_progress,
                )
                return result

        output = result.stages.output
        edited = result.stages.edited_content
        result.success = True
        result.final_output = output
        result.duration = round(time.monotonic() - started, 3)

        emit(
            type="complete",
            message=f"Pipeline completed in {result.duration:.1f}s",
            progress=100,
            data={
                "pipelineId": result.pipeline_id,
                "duration": result.duration,
                "summary": {
                    "title": edited.title if edited else None,
                    "wordCount": output.word_count if output else None,
                    "seoScore": edited.seo_score if edited else None,
                    "readabilityScore": edited.readability_score if edited else None,
                },
                "output": output.to_wire() if output else None,
            },
        )
        return result


def run_pipeline(
    pipeline_input: PipelineInput | dict[str, Any],
    on_progress: Optional[ProgressCallback] = None,
    client: Optional[TextModelClient] = None,
    cancel: Optional[threading.Event] = None,
) -> PipelineResult:
    """Run the full pipeline with the default stage table."""
    return ContentPipeline(client=client).run(pipeline_input, on_progress=on_progress, cancel=cancel)
